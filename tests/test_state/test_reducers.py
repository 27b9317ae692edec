import pytest

from textcfg.config.models import InferenceBaseConfig, ModelConfig
from textcfg.state import reducers
from textcfg.state.errors import ValidationError


def test_parse_path() -> None:
    assert reducers.parse_path("available_providers[1].headers.X-Key") == [
        "available_providers",
        1,
        "headers",
        "X-Key",
    ]
    assert reducers.parse_path("model_config.name") == ["model_config", "name"]


@pytest.mark.parametrize("path", ["", "  ", "model_config..name", "providers[x]"])
def test_parse_path_rejects_malformed(path: str) -> None:
    with pytest.raises(ValidationError):
        reducers.parse_path(path)


def test_set_path_returns_new_snapshot(sample_settings) -> None:
    updated = reducers.set_path(sample_settings, "model_config.temperature", 1.2)

    assert updated.model_config.temperature == 1.2
    assert sample_settings.model_config.temperature == 0.7
    assert updated.available_providers[0] is not sample_settings.available_providers[0]


def test_set_path_into_dict_and_list(sample_settings) -> None:
    updated = reducers.set_path(sample_settings, "available_providers[0].headers.X-New", "v")

    assert updated.available_providers[0].headers["X-New"] == "v"
    assert "X-New" not in sample_settings.available_providers[0].headers


@pytest.mark.parametrize(
    "path",
    ["model_config.unknown", "available_providers[9].provider_name", "nothing"],
)
def test_set_path_rejects_unknown_targets(sample_settings, path: str) -> None:
    with pytest.raises(ValidationError):
        reducers.set_path(sample_settings, path, "x")


def test_get_path_returns_copy(sample_settings) -> None:
    headers = reducers.get_path(sample_settings, "current_provider.headers")
    headers["X-Mutated"] = "1"

    assert "X-Mutated" not in sample_settings.current_provider.headers
    with pytest.raises(ValidationError):
        reducers.get_path(sample_settings, "current_provider.headers.Missing")


def test_replace_provider_cascades_to_current(sample_settings, provider_a) -> None:
    provider_a.base_url = "http://10.0.0.1:11434/"

    updated = reducers.replace_provider(sample_settings, provider_a)

    assert updated.available_providers[0].base_url == "http://10.0.0.1:11434/"
    assert updated.current_provider.base_url == "http://10.0.0.1:11434/"
    assert updated.current_provider is not updated.available_providers[0]
    assert sample_settings.current_provider.base_url == "http://127.0.0.1:11434/"


def test_replace_provider_leaves_current_when_not_matching(sample_settings, provider_b) -> None:
    provider_b.provider_name = "Beta Prime"

    updated = reducers.replace_provider(sample_settings, provider_b)

    assert updated.available_providers[1].provider_name == "Beta Prime"
    assert updated.current_provider.provider_name == "Alpha"


def test_replace_provider_unknown_id_is_noop(sample_settings, provider_factory) -> None:
    updated = reducers.replace_provider(sample_settings, provider_factory(provider_id="zzz"))

    assert updated == sample_settings


def test_remove_and_append_provider(sample_settings, provider_factory) -> None:
    removed = reducers.remove_provider(sample_settings, "provider-b")
    appended = reducers.append_provider(removed, provider_factory(provider_id="c", provider_name="Gamma"))

    assert [p.provider_id for p in removed.available_providers] == ["provider-a"]
    assert [p.provider_id for p in appended.available_providers] == ["provider-a", "c"]
    assert len(sample_settings.available_providers) == 2


def test_language_reducers(sample_settings) -> None:
    updated = reducers.set_languages(sample_settings, ["en", "fr"])
    updated = reducers.set_default_input_language(updated, "fr")
    updated = reducers.set_default_output_language(updated, "en")

    assert updated.language_config.languages == ["en", "fr"]
    assert updated.language_config.default_input_language == "fr"
    assert updated.language_config.default_output_language == "en"
    assert sample_settings.language_config.languages == ["en", "fr", "de"]


def test_apply_patch_dispatches_and_copies_value(sample_settings) -> None:
    model = ModelConfig(name="phi3", temperature=0.1)

    updated = reducers.apply_patch(sample_settings, "model_config", model)
    model.name = "mutated"

    assert updated.model_config.name == "phi3"
    assert reducers.apply_patch(
        sample_settings, "inference_base_config", InferenceBaseConfig(timeout=5)
    ).inference_base_config.timeout == 5


def test_apply_patch_unknown_field(sample_settings) -> None:
    with pytest.raises(ValidationError, match="unknown patch field"):
        reducers.apply_patch(sample_settings, "colour", "blue")


def test_set_current_headers(sample_settings) -> None:
    updated = reducers.set_current_headers(sample_settings, {"X-A": "1"})

    assert updated.current_provider.headers == {"X-A": "1"}
    assert updated.available_providers[0].headers == {"X-A": "1"}
    assert updated.available_providers[1].headers == {}
    assert sample_settings.available_providers[0].headers == {"X-Org": "acme"}
    assert updated.current_provider.headers is not updated.available_providers[0].headers
