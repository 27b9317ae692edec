"""
Pure reducers over ``Settings`` snapshots.

Every function takes a snapshot and returns a new, independently owned
snapshot. Inputs (including the patch value) are never mutated or aliased
into the result.
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import fields, is_dataclass
import re
from typing import Any, Callable, Dict, List, Union

from textcfg.config.models import (
    InferenceBaseConfig,
    ModelConfig,
    ProviderConfig,
    Settings,
)

from .errors import ValidationError

PathToken = Union[str, int]

_SEGMENT_RE = re.compile(r"^([^[\].]+)((?:\[\d+\])*)$")
_INDEX_RE = re.compile(r"\[(\d+)\]")


def parse_path(path: str) -> List[PathToken]:
    """
    Split a dotted field path into tokens.

    ``"available_providers[1].headers.X-Key"`` becomes
    ``["available_providers", 1, "headers", "X-Key"]``.
    """
    text = (path or "").strip()
    if not text:
        raise ValidationError("field path cannot be empty", field=path)

    tokens: List[PathToken] = []
    for segment in text.split("."):
        match = _SEGMENT_RE.match(segment)
        if match is None:
            raise ValidationError(f"malformed field path '{path}'", field=path)
        tokens.append(match.group(1))
        tokens.extend(int(index) for index in _INDEX_RE.findall(match.group(2)))
    return tokens


def _step(container: Any, token: PathToken, path: str) -> Any:
    if isinstance(token, int):
        if not isinstance(container, list) or token >= len(container):
            raise ValidationError(f"index {token} out of range in '{path}'", field=path)
        return container[token]
    if isinstance(container, dict):
        if token not in container:
            raise ValidationError(f"unknown key '{token}' in '{path}'", field=path)
        return container[token]
    if is_dataclass(container) and token in {f.name for f in fields(container)}:
        return getattr(container, token)
    raise ValidationError(f"unknown field '{token}' in '{path}'", field=path)


def _assign(container: Any, token: PathToken, value: Any, path: str) -> None:
    if isinstance(token, int):
        if not isinstance(container, list) or token >= len(container):
            raise ValidationError(f"index {token} out of range in '{path}'", field=path)
        container[token] = value
    elif isinstance(container, dict):
        container[token] = value
    elif is_dataclass(container) and token in {f.name for f in fields(container)}:
        setattr(container, token, value)
    else:
        raise ValidationError(f"unknown field '{token}' in '{path}'", field=path)


def set_path(settings: Settings, path: str, value: Any) -> Settings:
    """Return a copy of ``settings`` with the field at ``path`` set to ``value``."""
    tokens = parse_path(path)
    result = deepcopy(settings)
    target: Any = result
    for token in tokens[:-1]:
        target = _step(target, token, path)
    _assign(target, tokens[-1], deepcopy(value), path)
    return result


def get_path(settings: Settings, path: str) -> Any:
    """Return a copy of the value at ``path``."""
    target: Any = settings
    for token in parse_path(path):
        target = _step(target, token, path)
    return deepcopy(target)


def replace_provider(settings: Settings, provider: ProviderConfig) -> Settings:
    """
    Replace the available provider with ``provider.provider_id``.

    When that id is also the current provider, ``current_provider`` is
    replaced too. Unknown ids leave the providers list unchanged.
    """
    result = deepcopy(settings)
    result.available_providers = [
        deepcopy(provider) if item.provider_id == provider.provider_id else item
        for item in result.available_providers
    ]
    if result.current_provider.provider_id == provider.provider_id:
        result.current_provider = deepcopy(provider)
    return result


def remove_provider(settings: Settings, provider_id: str) -> Settings:
    result = deepcopy(settings)
    result.available_providers = [
        item for item in result.available_providers if item.provider_id != provider_id
    ]
    return result


def append_provider(settings: Settings, provider: ProviderConfig) -> Settings:
    result = deepcopy(settings)
    result.available_providers.append(deepcopy(provider))
    return result


def set_current_provider(settings: Settings, provider: ProviderConfig) -> Settings:
    result = deepcopy(settings)
    result.current_provider = deepcopy(provider)
    return result


def set_languages(settings: Settings, languages: List[str]) -> Settings:
    result = deepcopy(settings)
    result.language_config.languages = list(languages or [])
    return result


def set_default_input_language(settings: Settings, language: str) -> Settings:
    result = deepcopy(settings)
    result.language_config.default_input_language = language
    return result


def set_default_output_language(settings: Settings, language: str) -> Settings:
    result = deepcopy(settings)
    result.language_config.default_output_language = language
    return result


def set_model_config(settings: Settings, model_config: ModelConfig) -> Settings:
    result = deepcopy(settings)
    result.model_config = deepcopy(model_config)
    return result


def set_inference_config(settings: Settings, inference_config: InferenceBaseConfig) -> Settings:
    result = deepcopy(settings)
    result.inference_base_config = deepcopy(inference_config)
    return result


def set_current_headers(settings: Settings, headers: Dict[str, str]) -> Settings:
    """
    Set the headers of the current provider and of the available provider
    sharing its id.
    """
    result = deepcopy(settings)
    result.current_provider.headers = dict(headers)
    current_id = result.current_provider.provider_id
    for provider in result.available_providers:
        if current_id and provider.provider_id == current_id:
            provider.headers = dict(headers)
    return result


PATCH_FIELDS: Dict[str, Callable[[Settings, Any], Settings]] = {
    "provider": replace_provider,
    "provider_added": append_provider,
    "provider_removed": remove_provider,
    "current_provider": set_current_provider,
    "languages": set_languages,
    "default_input_language": set_default_input_language,
    "default_output_language": set_default_output_language,
    "model_config": set_model_config,
    "inference_base_config": set_inference_config,
}


def apply_patch(settings: Settings, field: str, value: Any) -> Settings:
    """Dispatch a named patch to its reducer."""
    reducer = PATCH_FIELDS.get(field)
    if reducer is None:
        raise ValidationError(f"unknown patch field '{field}'", field=field)
    return reducer(settings, value)
