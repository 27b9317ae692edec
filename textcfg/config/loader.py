"""
Configuration loader for the textcfg settings engine.

Handles loading settings documents from JSON/YAML files, converting them
to typed dataclass models and back, and resolving engine options from the
environment.
"""

from __future__ import annotations

import json
import os
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from dotenv import load_dotenv

from .models import (
    AppSettingsMetadata,
    EngineConfig,
    InferenceBaseConfig,
    LanguageConfig,
    ModelConfig,
    ProviderConfig,
    Settings,
)
from .models.constants import (
    AUTH_TYPE_NONE,
    DEFAULT_COMPLETION_ENDPOINT,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MODEL_NAME,
    DEFAULT_MODELS_ENDPOINT,
    DEFAULT_TEMPERATURE,
    DEFAULT_TIMEOUT_SECONDS,
    PROVIDER_TYPE_OPEN_AI_COMPATIBLE,
)

ENV_PREFIX = "TEXTCFG_"


def load_raw_config(path: Path) -> Dict[str, Any]:
    """
    Load a raw settings document from JSON or YAML file.

    Also loads environment variables from .env file if present.

    Args:
        path: Path to settings file (.json, .yaml, or .yml)

    Returns:
        Dictionary with raw settings

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If file format is unsupported
        json.JSONDecodeError: If JSON is invalid
        yaml.YAMLError: If YAML is invalid
    """
    load_dotenv()

    if not path.exists():
        raise FileNotFoundError(f"Settings file not found: {path}")

    return parse_config_text(path.read_text(encoding="utf-8"), path)


def parse_config_text(content: str, path: Path | str) -> Dict[str, Any]:
    """
    Parse raw settings content from JSON or YAML.

    Args:
        content: File content
        path: Path or filename used for extension detection
    """
    if isinstance(path, str):
        path = Path(path)

    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        return yaml.safe_load(content) or {}
    if suffix == ".json":
        return json.loads(content)
    raise ValueError(
        f"Unsupported config format: {suffix}. "
        f"Use .json, .yaml, or .yml"
    )


def build_provider_config(raw: Dict[str, Any]) -> ProviderConfig:
    """
    Build ProviderConfig from a raw provider dictionary.

    Args:
        raw: Raw provider dictionary (camelCase keys)

    Returns:
        ProviderConfig instance
    """
    if not isinstance(raw, dict):
        raise ValueError("Each provider entry must be an object")

    headers = raw.get("headers") or {}
    if not isinstance(headers, dict):
        raise ValueError("provider 'headers' must be an object")

    custom_models = raw.get("customModels") or []
    if not isinstance(custom_models, list):
        raise ValueError("provider 'customModels' must be a list")

    return ProviderConfig(
        provider_id=str(raw.get("providerId") or ""),
        provider_name=str(raw.get("providerName") or ""),
        provider_type=str(raw.get("providerType") or PROVIDER_TYPE_OPEN_AI_COMPATIBLE),
        base_url=str(raw.get("baseUrl") or ""),
        models_endpoint=str(raw.get("modelsEndpoint", DEFAULT_MODELS_ENDPOINT) or ""),
        completion_endpoint=str(raw.get("completionEndpoint", DEFAULT_COMPLETION_ENDPOINT) or ""),
        auth_type=str(raw.get("authType") or AUTH_TYPE_NONE),
        auth_token=str(raw.get("authToken") or ""),
        use_auth_token_from_env=bool(raw.get("useAuthTokenFromEnv", False)),
        env_var_token_name=str(raw.get("envVarTokenName") or ""),
        use_custom_headers=bool(raw.get("useCustomHeaders", False)),
        headers={str(key): str(value) for key, value in headers.items()},
        use_custom_models=bool(raw.get("useCustomModels", False)),
        custom_models=[str(model) for model in custom_models],
    )


def build_model_config(raw: Dict[str, Any]) -> ModelConfig:
    return ModelConfig(
        name=str(raw.get("name") or DEFAULT_MODEL_NAME),
        use_temperature=bool(raw.get("useTemperature", True)),
        temperature=float(raw.get("temperature", DEFAULT_TEMPERATURE)),
    )


def build_language_config(raw: Dict[str, Any]) -> LanguageConfig:
    languages = raw.get("languages") or []
    if not isinstance(languages, list):
        raise ValueError("languageConfig 'languages' must be a list")
    return LanguageConfig(
        languages=[str(language) for language in languages],
        default_input_language=str(raw.get("defaultInputLanguage") or ""),
        default_output_language=str(raw.get("defaultOutputLanguage") or ""),
    )


def build_inference_base_config(raw: Dict[str, Any]) -> InferenceBaseConfig:
    return InferenceBaseConfig(
        timeout=int(raw.get("timeout", DEFAULT_TIMEOUT_SECONDS)),
        max_retries=int(raw.get("maxRetries", DEFAULT_MAX_RETRIES)),
        use_markdown_for_output=bool(raw.get("useMarkdownForOutput", False)),
    )


def build_settings_from_raw(raw: Dict[str, Any]) -> Settings:
    """
    Build Settings from a raw settings document.

    Missing sections fall back to model defaults. The result is not
    validated; call ``Settings.validate()`` when a committed shape is needed.
    """
    providers_raw = raw.get("availableProviderConfigs") or []
    if not isinstance(providers_raw, list):
        raise ValueError("'availableProviderConfigs' must be a list")

    available = [build_provider_config(entry) for entry in providers_raw]

    current_raw = raw.get("currentProviderConfig")
    if current_raw:
        current = build_provider_config(current_raw)
    elif available:
        current = deepcopy(available[0])
    else:
        current = ProviderConfig()

    return Settings(
        available_providers=available,
        current_provider=current,
        model_config=build_model_config(raw.get("modelConfig") or {}),
        language_config=build_language_config(raw.get("languageConfig") or {}),
        inference_base_config=build_inference_base_config(raw.get("inferenceBaseConfig") or {}),
    )


def provider_to_raw(provider: ProviderConfig) -> Dict[str, Any]:
    return {
        "providerId": provider.provider_id,
        "providerName": provider.provider_name,
        "providerType": provider.provider_type,
        "baseUrl": provider.base_url,
        "modelsEndpoint": provider.models_endpoint,
        "completionEndpoint": provider.completion_endpoint,
        "authType": provider.auth_type,
        "authToken": provider.auth_token,
        "useAuthTokenFromEnv": provider.use_auth_token_from_env,
        "envVarTokenName": provider.env_var_token_name,
        "useCustomHeaders": provider.use_custom_headers,
        "headers": dict(provider.headers),
        "useCustomModels": provider.use_custom_models,
        "customModels": list(provider.custom_models),
    }


def settings_to_raw(settings: Settings) -> Dict[str, Any]:
    """
    Serialize Settings into a JSON/YAML-friendly dict.
    """
    return {
        "availableProviderConfigs": [provider_to_raw(p) for p in settings.available_providers],
        "currentProviderConfig": provider_to_raw(settings.current_provider),
        "inferenceBaseConfig": {
            "timeout": settings.inference_base_config.timeout,
            "maxRetries": settings.inference_base_config.max_retries,
            "useMarkdownForOutput": settings.inference_base_config.use_markdown_for_output,
        },
        "modelConfig": {
            "name": settings.model_config.name,
            "useTemperature": settings.model_config.use_temperature,
            "temperature": settings.model_config.temperature,
        },
        "languageConfig": {
            "languages": list(settings.language_config.languages),
            "defaultInputLanguage": settings.language_config.default_input_language,
            "defaultOutputLanguage": settings.language_config.default_output_language,
        },
    }


def metadata_to_raw(metadata: AppSettingsMetadata) -> Dict[str, Any]:
    return {
        "authTypes": list(metadata.auth_types),
        "providerTypes": list(metadata.provider_types),
        "settingsFolder": metadata.settings_folder,
        "settingsFile": metadata.settings_file,
    }


def clone_settings(settings: Settings) -> Settings:
    """Return a fully independent copy of ``settings``."""
    return deepcopy(settings)


def load_settings_from_file(path: Path | str) -> Settings:
    """
    Load a settings document from file.

    Args:
        path: Path to settings file (.json, .yaml, or .yml)

    Returns:
        Settings instance

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the document is malformed
    """
    if isinstance(path, str):
        path = Path(path)

    path = path.expanduser().resolve()
    return build_settings_from_raw(load_raw_config(path))


def save_settings_to_file(settings: Settings, path: Path | str) -> None:
    """
    Serialize and save settings to a JSON/YAML file.

    Args:
        settings: Settings instance to save
        path: Destination file path
    """
    if isinstance(path, str):
        path = Path(path)

    path = path.expanduser().resolve()
    raw = settings_to_raw(settings)

    suffix = path.suffix.lower()
    if suffix == ".json":
        path.write_text(json.dumps(raw, indent=2), encoding="utf-8")
    elif suffix in {".yaml", ".yml"}:
        path.write_text(yaml.safe_dump(raw, sort_keys=False), encoding="utf-8")
    else:
        raise ValueError(
            f"Unsupported config format: {suffix}. "
            f"Use .json, .yaml, or .yml"
        )


def build_engine_config(raw: Dict[str, Any]) -> EngineConfig:
    """
    Build and validate EngineConfig from a raw dictionary (snake_case keys).
    """
    config = EngineConfig(
        concurrency_policy=raw.get("concurrency_policy") or "reject",
        log_level=raw.get("log_level") or "INFO",
        log_file=raw.get("log_file") or None,
        default_language=raw.get("default_language") or EngineConfig.default_language,
        settings_file=raw.get("settings_file") or None,
    )
    config.validate()
    return config


def _env(environ: Mapping[str, str], name: str) -> Optional[str]:
    """Return a stripped env value or None when unset/empty."""
    value = environ.get(f"{ENV_PREFIX}{name}")
    if value is None:
        return None
    value = value.strip()
    return value or None


def load_engine_config(environ: Optional[Mapping[str, str]] = None) -> EngineConfig:
    """
    Resolve engine options from ``TEXTCFG_*`` environment variables.

    A ``.env`` file is loaded first (without overriding existing variables)
    when reading from the process environment.

    Args:
        environ: Optional mapping used instead of ``os.environ``.
    """
    if environ is None:
        load_dotenv(override=False)
        environ = os.environ

    raw = {
        "concurrency_policy": _env(environ, "CONCURRENCY_POLICY"),
        "log_level": _env(environ, "LOG_LEVEL"),
        "log_file": _env(environ, "LOG_FILE"),
        "default_language": _env(environ, "DEFAULT_LANGUAGE"),
        "settings_file": _env(environ, "SETTINGS_FILE"),
    }
    return build_engine_config(raw)
