import pytest

from textcfg.config.models import InferenceBaseConfig, ModelConfig
from textcfg.state.validators import (
    validate_endpoint,
    validate_header_key,
    validate_header_value,
    validate_headers,
    validate_inference_config,
    validate_model_config,
    validate_model_name,
    validate_provider_config,
    validate_provider_name,
    validate_relative_endpoint,
    validate_temperature,
    validate_url,
    validate_url_with_protocol,
)


def test_validate_endpoint_defaults() -> None:
    assert validate_endpoint("/v1/models", "Models endpoint") == ""
    assert validate_endpoint("", "Models endpoint") == "Models endpoint cannot be empty"
    assert validate_endpoint("v1/models", "Models endpoint") == (
        "Models endpoint must start with '/' symbol"
    )
    assert validate_endpoint("/v1/models/", "Models endpoint") == (
        "Models endpoint must not end with '/' symbol"
    )


@pytest.mark.parametrize("path", ["/v1 models", "/v1\\models", "/v1/\"x\"", "/v1/<x>", "/v1/\x07"])
def test_validate_endpoint_rejects_invalid_characters(path: str) -> None:
    assert validate_endpoint(path, "Endpoint") == "Endpoint contains invalid characters"


def test_validate_endpoint_options() -> None:
    assert validate_endpoint("", "Endpoint", allow_empty=True) == ""
    assert validate_endpoint("/v1/", "Endpoint", allow_trailing_slash=True) == ""
    assert validate_endpoint("v1", "Endpoint", require_leading_slash=False) == ""
    assert validate_endpoint("/a", "Endpoint", min_length=3) == (
        "Endpoint must be at least 3 characters long"
    )
    assert validate_endpoint("/abc", "Endpoint", max_length=3) == (
        "Endpoint cannot exceed 3 characters"
    )


def test_validate_relative_endpoint() -> None:
    assert validate_relative_endpoint("v1/chat/completions", "Completion endpoint") == ""
    assert validate_relative_endpoint("/v1/chat", "Completion endpoint") == (
        "Completion endpoint must not start with '/' symbol"
    )


def test_validate_url() -> None:
    assert validate_url("http://127.0.0.1:11434/", "Base URL") == ""
    assert validate_url("https://api.openai.com", "Base URL") == ""
    assert validate_url(" ", "Base URL") == "Base URL cannot be empty"
    assert "missing scheme or host" in validate_url("localhost/api", "Base URL")
    assert "is not a valid URL" in validate_url("http://host:notaport/", "Base URL")


def test_validate_url_with_protocol() -> None:
    assert validate_url_with_protocol("https://example.com/", "Base URL") == ""
    assert validate_url_with_protocol("ftp://example.com/", "Base URL") == (
        "Base URL must use one of http, https protocols"
    )
    assert validate_url_with_protocol("ws://example.com/", "Socket", ("ws:", "wss:")) == ""


def test_validate_provider_name() -> None:
    assert validate_provider_name("LM-Studio") == ""
    assert validate_provider_name("") == "Provider name cannot be empty"
    assert validate_provider_name("x" * 101) == "Provider name cannot exceed 100 characters"
    assert validate_provider_name("bad<name>") == "Provider name contains invalid characters"


def test_validate_model_name() -> None:
    assert validate_model_name("llama3:8b") == ""
    assert validate_model_name("  ") == "Model name cannot be empty"
    assert validate_model_name("m" * 201) == "Model name cannot exceed 200 characters"


def test_validate_headers() -> None:
    assert validate_header_key("X-Org") == ""
    assert validate_header_key("") == "Header key cannot be empty"
    assert validate_header_key("X Org") == "Header key contains invalid characters"
    assert validate_header_value(None) == ""
    assert validate_header_value("line\nbreak") == "Header value contains invalid characters"
    assert validate_headers({"X-Org": "acme", "X-Empty": ""}) == ""
    assert validate_headers({"Bad:Key": "v"}) == (
        "Invalid header: Header key contains invalid characters"
    )
    assert validate_headers({"X-Key": "a\"b"}) == (
        "Invalid header value for 'X-Key': Header value contains invalid characters"
    )


def test_validate_temperature_and_model_config() -> None:
    assert validate_temperature(0.0) == ""
    assert validate_temperature(2.0) == ""
    assert validate_temperature(2.1) == "Temperature must be between 0.0 and 2.0"
    assert validate_temperature(5.0, enabled=False) == ""
    assert validate_model_config(ModelConfig(name="", temperature=0.5)) == "Model name cannot be empty"
    assert validate_model_config(ModelConfig(name="m", temperature=-1)) != ""


def test_validate_inference_config() -> None:
    assert validate_inference_config(InferenceBaseConfig()) == ""
    assert validate_inference_config(InferenceBaseConfig(timeout=601)) == (
        "Timeout must be between 1 and 600 seconds"
    )
    assert validate_inference_config(InferenceBaseConfig(max_retries=-1)) == (
        "Max retries must be between 0 and 10"
    )


def test_validate_provider_config_passes(provider_a) -> None:
    assert validate_provider_config(provider_a) == ""


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"provider_name": ""}, "Provider name cannot be empty"),
        ({"base_url": "not a url"}, "Base URL is not a valid URL: missing scheme or host"),
        ({"completion_endpoint": "/v1/chat"}, "Completion endpoint must not start with '/' symbol"),
        ({"models_endpoint": ""}, "Models endpoint cannot be empty"),
        ({"use_custom_models": True}, "Custom models cannot be empty when custom models are enabled"),
        ({"use_custom_headers": True, "headers": {"": "v"}}, "Invalid header: Header key cannot be empty"),
    ],
)
def test_validate_provider_config_reports_first_violation(provider_factory, overrides, message) -> None:
    assert validate_provider_config(provider_factory(**overrides)) == message


def test_validate_provider_config_ignores_headers_when_disabled(provider_factory) -> None:
    provider = provider_factory(use_custom_headers=False, headers={"": "v"})

    assert validate_provider_config(provider) == ""


def test_validate_provider_config_checks_custom_model_names(provider_factory) -> None:
    provider = provider_factory(models_endpoint="", use_custom_models=True, custom_models=["ok", " "])

    assert validate_provider_config(provider) == "Model name cannot be empty"


def test_validate_provider_name_rejects_whitespace() -> None:
    assert validate_provider_name("My Provider") == "Provider name contains invalid characters"
    assert validate_provider_name("LM\tStudio") == "Provider name contains invalid characters"
    assert validate_provider_name("LM_Studio") == ""
