"""
Field validators.

Every validator is a pure function returning ``""`` when the value is valid
and a human-readable violation message otherwise, so results compose with
``or``.
"""

from __future__ import annotations

import re
from typing import Iterable, Mapping
from urllib.parse import urlparse

from textcfg.config.models import InferenceBaseConfig, ModelConfig, ProviderConfig
from textcfg.config.models.constants import (
    MAX_ENDPOINT_LENGTH,
    MAX_MAX_RETRIES,
    MAX_MODEL_NAME_LENGTH,
    MAX_PROVIDER_NAME_LENGTH,
    MAX_TEMPERATURE,
    MAX_TIMEOUT_SECONDS,
    MIN_MAX_RETRIES,
    MIN_TEMPERATURE,
    MIN_TIMEOUT_SECONDS,
)

_ENDPOINT_INVALID_RE = re.compile(r"[\s\\\"'<>\x00-\x1f\x7f]")
_PROVIDER_NAME_INVALID_RE = re.compile(r"[\s\\\"'<>\x00-\x1f\x7f]")
_HEADER_KEY_INVALID_RE = re.compile(r"[\s:\\\"'<>]")
_HEADER_VALUE_INVALID_RE = re.compile(r"[\\\"'\n\r]")


def validate_endpoint(
    endpoint_path: str,
    endpoint_name: str,
    *,
    allow_empty: bool = False,
    require_leading_slash: bool = True,
    allow_trailing_slash: bool = False,
    min_length: int = 1,
    max_length: int = MAX_ENDPOINT_LENGTH,
) -> str:
    """
    Validate a relative endpoint path.

    Args:
        endpoint_path: Candidate path.
        endpoint_name: Label used in messages.
        allow_empty: Accept an empty value.
        require_leading_slash: Require a leading '/' (when False a leading
            '/' is still accepted).
        allow_trailing_slash: Accept a trailing '/'.
        min_length: Minimum trimmed length.
        max_length: Maximum raw length.
    """
    path = endpoint_path or ""
    if not path.strip():
        if allow_empty:
            return ""
        return f"{endpoint_name} cannot be empty"

    if len(path.strip()) < min_length:
        plural = "s" if min_length != 1 else ""
        return f"{endpoint_name} must be at least {min_length} character{plural} long"

    if len(path) > max_length:
        return f"{endpoint_name} cannot exceed {max_length} characters"

    if require_leading_slash and not path.startswith("/"):
        return f"{endpoint_name} must start with '/' symbol"

    if not allow_trailing_slash and path.endswith("/"):
        return f"{endpoint_name} must not end with '/' symbol"

    if _ENDPOINT_INVALID_RE.search(path):
        return f"{endpoint_name} contains invalid characters"

    return ""


def validate_relative_endpoint(endpoint_path: str, endpoint_name: str) -> str:
    """Validate a stored endpoint, which is relative to the base URL."""
    error = validate_endpoint(endpoint_path, endpoint_name, require_leading_slash=False)
    if error:
        return error
    if endpoint_path.startswith("/"):
        return f"{endpoint_name} must not start with '/' symbol"
    return ""


def validate_url(url: str, url_name: str) -> str:
    """Validate that ``url`` is non-empty and parses with a scheme and host."""
    if not url or not url.strip():
        return f"{url_name} cannot be empty"

    try:
        parsed = urlparse(url.strip())
        # Accessing port raises ValueError for malformed ports
        parsed.port
    except ValueError as exc:
        return f"{url_name} is not a valid URL: {exc}"

    if not parsed.scheme or not parsed.netloc:
        return f"{url_name} is not a valid URL: missing scheme or host"
    return ""


def validate_url_with_protocol(
    url: str,
    url_name: str,
    required_protocols: Iterable[str] = ("http", "https"),
) -> str:
    """Validate ``url`` and require its scheme to be one of ``required_protocols``."""
    error = validate_url(url, url_name)
    if error:
        return error

    protocols = [protocol.rstrip(":").lower() for protocol in required_protocols]
    scheme = urlparse(url.strip()).scheme.lower()
    if scheme not in protocols:
        return f"{url_name} must use one of {', '.join(protocols)} protocols"
    return ""


def validate_provider_name(provider_name: str) -> str:
    if not provider_name or not provider_name.strip():
        return "Provider name cannot be empty"

    if len(provider_name.strip()) > MAX_PROVIDER_NAME_LENGTH:
        return f"Provider name cannot exceed {MAX_PROVIDER_NAME_LENGTH} characters"

    if _PROVIDER_NAME_INVALID_RE.search(provider_name):
        return "Provider name contains invalid characters"

    return ""


def validate_model_name(model_name: str) -> str:
    if not model_name or not model_name.strip():
        return "Model name cannot be empty"

    if len(model_name.strip()) > MAX_MODEL_NAME_LENGTH:
        return f"Model name cannot exceed {MAX_MODEL_NAME_LENGTH} characters"

    return ""


def validate_header_key(header_key: str) -> str:
    if not header_key or not header_key.strip():
        return "Header key cannot be empty"

    if _HEADER_KEY_INVALID_RE.search(header_key):
        return "Header key contains invalid characters"

    return ""


def validate_header_value(header_value: str | None) -> str:
    if header_value is None:
        return ""

    if _HEADER_VALUE_INVALID_RE.search(header_value):
        return "Header value contains invalid characters"

    return ""


def validate_headers(headers: Mapping[str, str]) -> str:
    """Validate every key/value pair of a headers mapping."""
    for key, value in headers.items():
        key_error = validate_header_key(key)
        if key_error:
            return f"Invalid header: {key_error}"

        value_error = validate_header_value(value)
        if value_error:
            return f"Invalid header value for '{key}': {value_error}"

    return ""


def validate_temperature(temperature: float, enabled: bool = True) -> str:
    if enabled and not (MIN_TEMPERATURE <= temperature <= MAX_TEMPERATURE):
        return f"Temperature must be between {MIN_TEMPERATURE} and {MAX_TEMPERATURE}"
    return ""


def validate_model_config(model_config: ModelConfig) -> str:
    return validate_model_name(model_config.name) or validate_temperature(
        model_config.temperature, model_config.use_temperature
    )


def validate_inference_config(inference_config: InferenceBaseConfig) -> str:
    if not (MIN_TIMEOUT_SECONDS <= inference_config.timeout <= MAX_TIMEOUT_SECONDS):
        return (
            f"Timeout must be between {MIN_TIMEOUT_SECONDS} and "
            f"{MAX_TIMEOUT_SECONDS} seconds"
        )
    if not (MIN_MAX_RETRIES <= inference_config.max_retries <= MAX_MAX_RETRIES):
        return f"Max retries must be between {MIN_MAX_RETRIES} and {MAX_MAX_RETRIES}"
    return ""


def validate_provider_config(provider: ProviderConfig) -> str:
    """Return the first violation found in a provider profile, or ``""``."""
    error = validate_provider_name(provider.provider_name)
    if error:
        return error

    error = validate_url(provider.base_url, "Base URL")
    if error:
        return error

    error = validate_relative_endpoint(provider.completion_endpoint, "Completion endpoint")
    if error:
        return error

    if not provider.use_custom_models:
        error = validate_relative_endpoint(provider.models_endpoint, "Models endpoint")
        if error:
            return error
    elif not provider.custom_models:
        return "Custom models cannot be empty when custom models are enabled"
    else:
        for model in provider.custom_models:
            error = validate_model_name(model)
            if error:
                return error

    if provider.use_custom_headers:
        error = validate_headers(provider.headers)
        if error:
            return error

    return ""
