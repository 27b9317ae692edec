"""
Backing store interface and in-memory reference implementation.

The backing store is the authoritative home of settings. Every call is
asynchronous and returns an explicit ``Result``: ``Ok(value)`` on success or
``Err(kind, message)`` on rejection. Implementations should not raise for
expected rejections; the orchestrator still normalizes anything raised.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import Counter
from copy import deepcopy
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence
from urllib.parse import urlparse
from uuid import uuid4

from textcfg.config.loader import load_settings_from_file, save_settings_to_file
from textcfg.config.models import (
    AppSettingsMetadata,
    InferenceBaseConfig,
    LanguageConfig,
    ModelConfig,
    ProviderConfig,
    Settings,
    contains_ignore_case,
)
from textcfg.config.models.constants import (
    AUTH_TYPE_BEARER,
    DEFAULT_INPUT_LANGUAGE,
    DEFAULT_LANGUAGES,
    DEFAULT_OUTPUT_LANGUAGE,
    DEFAULT_SETTINGS_FILE,
    DEFAULT_SETTINGS_FOLDER,
    PROVIDER_TYPE_OLLAMA,
)
from textcfg.logging import get_logger

from .results import (
    ERR_CONFLICT,
    ERR_INTERNAL,
    ERR_INVALID,
    ERR_NOT_FOUND,
    ERR_UNAVAILABLE,
    Err,
    Ok,
    Result,
)


class SettingsBackingStore(ABC):
    """
    Abstract contract of the authoritative settings store.

    Each method resolves to ``Ok`` carrying the documented value or ``Err``
    carrying a kind (see ``textcfg.state.results``) and a message.
    """

    @abstractmethod
    async def fetch_settings(self) -> Result:
        """Ok(Settings): the full current aggregate."""

    @abstractmethod
    async def fetch_default_settings(self) -> Result:
        """Ok(Settings): reset the store to factory defaults and return them."""

    @abstractmethod
    async def create_provider(self, provider: ProviderConfig) -> Result:
        """Ok(ProviderConfig): the created provider with its assigned id."""

    @abstractmethod
    async def update_provider(self, provider: ProviderConfig) -> Result:
        """Ok(ProviderConfig): the stored provider after update."""

    @abstractmethod
    async def delete_provider(self, provider_id: str) -> Result:
        """Ok(True) once the provider is removed."""

    @abstractmethod
    async def set_current_provider(self, provider_id: str) -> Result:
        """Ok(ProviderConfig): the provider now marked current."""

    @abstractmethod
    async def add_language(self, language: str) -> Result:
        """Ok(list[str]): the resulting language list."""

    @abstractmethod
    async def remove_language(self, language: str) -> Result:
        """Ok(list[str]): the resulting language list."""

    @abstractmethod
    async def set_default_input_language(self, language: str) -> Result:
        """Ok(str): the stored default input language."""

    @abstractmethod
    async def set_default_output_language(self, language: str) -> Result:
        """Ok(str): the stored default output language."""

    @abstractmethod
    async def update_model_config(self, model_config: ModelConfig) -> Result:
        """Ok(ModelConfig)."""

    @abstractmethod
    async def update_inference_config(self, inference_config: InferenceBaseConfig) -> Result:
        """Ok(InferenceBaseConfig)."""

    @abstractmethod
    async def validate_provider(
        self,
        provider: ProviderConfig,
        test_live: bool,
        model_id: Optional[str] = None,
    ) -> Result:
        """Ok(True) when the provider profile is valid (and reachable if ``test_live``)."""

    @abstractmethod
    async def save_settings(self, settings: Settings) -> Result:
        """Ok(Settings): persist a whole aggregate after holistic validation."""

    @abstractmethod
    async def fetch_metadata(self) -> Result:
        """Ok(AppSettingsMetadata)."""

    @abstractmethod
    async def list_models(self, provider: ProviderConfig) -> Result:
        """Ok(list[str]): model names offered by ``provider``."""


def default_providers() -> List[ProviderConfig]:
    """Built-in provider profiles, each with a fresh id."""
    return [
        ProviderConfig(
            provider_id=str(uuid4()),
            provider_name="Ollama",
            provider_type=PROVIDER_TYPE_OLLAMA,
            base_url="http://127.0.0.1:11434/",
        ),
        ProviderConfig(
            provider_id=str(uuid4()),
            provider_name="LM Studio",
            base_url="http://127.0.0.1:1234/",
        ),
        ProviderConfig(
            provider_id=str(uuid4()),
            provider_name="Llama.cpp",
            base_url="http://127.0.0.1:8080/",
        ),
        ProviderConfig(
            provider_id=str(uuid4()),
            provider_name="OpenRouter.ai",
            base_url="https://openrouter.ai/api/",
            auth_type=AUTH_TYPE_BEARER,
            use_auth_token_from_env=True,
            env_var_token_name="OPENROUTER_API_KEY",
        ),
        ProviderConfig(
            provider_id=str(uuid4()),
            provider_name="OpenAI",
            base_url="https://api.openai.com/",
            auth_type=AUTH_TYPE_BEARER,
            use_auth_token_from_env=True,
            env_var_token_name="OPENAI_API_KEY",
            use_custom_headers=True,
            headers={"OpenAI-Organization": "", "OpenAI-Project": ""},
        ),
    ]


def default_settings() -> Settings:
    """Factory settings: built-in providers, Ollama current, default languages."""
    providers = default_providers()
    return Settings(
        available_providers=providers,
        current_provider=deepcopy(providers[0]),
        model_config=ModelConfig(),
        language_config=LanguageConfig(
            languages=list(DEFAULT_LANGUAGES),
            default_input_language=DEFAULT_INPUT_LANGUAGE,
            default_output_language=DEFAULT_OUTPUT_LANGUAGE,
        ),
        inference_base_config=InferenceBaseConfig(),
    )


def check_provider(provider: ProviderConfig) -> str:
    """
    Apply the store-side provider rules.

    Beyond ``ProviderConfig.validate`` the base URL must be http(s) and end
    with '/', and endpoints must not start with '/'.
    """
    try:
        provider.validate()
    except ValueError as exc:
        return str(exc)

    parsed = urlparse(provider.base_url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return f"invalid base URL: invalid URL scheme {parsed.scheme!r}, must be http or https"
    if not provider.base_url.endswith("/"):
        return "invalid base URL: base URL must end with a trailing slash"
    if provider.completion_endpoint.startswith("/"):
        return "invalid completion endpoint: endpoint must not start with a forward slash"
    if not provider.use_custom_models and provider.models_endpoint.startswith("/"):
        return "invalid models endpoint: endpoint must not start with a forward slash"
    return ""


class InMemorySettingsStore(SettingsBackingStore):
    """
    Reference backing store holding settings in memory.

    Follows the settings service rules: uuid provider ids, unique provider
    names, the current provider cannot be deleted, language rules are
    case-insensitive, and inference/model values are range checked. Every
    call is counted in ``calls`` by method name.

    When ``path`` is given, every successful mutation is also written to
    that file through the config loader.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        path: Optional[Path] = None,
        models: Optional[Dict[str, Sequence[str]]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._settings = deepcopy(settings) if settings is not None else default_settings()
        self._path = Path(path).expanduser() if path is not None else None
        self._models: Dict[str, List[str]] = {
            name: list(items) for name, items in (models or {}).items()
        }
        self._logger = logger or get_logger(__name__)
        self.calls: Counter = Counter()

    @classmethod
    def from_file(
        cls,
        path: Path | str,
        *,
        default_language: str = DEFAULT_INPUT_LANGUAGE,
        logger: Optional[logging.Logger] = None,
    ) -> "InMemorySettingsStore":
        """
        Seed a store from a settings file; mutations are written back to it.

        Empty default languages in the document fall back to
        ``default_language``.
        """
        path = Path(path)
        settings = load_settings_from_file(path)
        languages = settings.language_config
        if not languages.default_input_language or not languages.default_output_language:
            languages.default_input_language = languages.default_input_language or default_language
            languages.default_output_language = languages.default_output_language or default_language
            if not contains_ignore_case(languages.languages, default_language):
                languages.languages.append(default_language)
        return cls(settings, path=path, logger=logger)

    @property
    def settings(self) -> Settings:
        """Copy of the stored aggregate."""
        return deepcopy(self._settings)

    def register_models(self, provider_name: str, models: Sequence[str]) -> None:
        """Set the model list ``list_models`` reports for ``provider_name``."""
        self._models[provider_name] = list(models)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _count(self, method: str) -> None:
        self.calls[method] += 1

    def _reject(self, op: str, kind: str, message: str) -> Err:
        self._logger.error(f"{op}: {message}")
        return Err(kind, f"{op}: {message}")

    def _persist(self, settings: Settings) -> None:
        self._settings = settings
        if self._path is not None:
            save_settings_to_file(settings, self._path)

    def _commit(self, op: str, settings: Settings) -> Optional[Err]:
        try:
            self._persist(settings)
        except (OSError, ValueError) as exc:
            return self._reject(op, ERR_INTERNAL, f"failed to save settings: {exc}")
        return None

    def _name_taken(self, name: str, *, exclude_id: str = "") -> bool:
        return any(
            provider.provider_name == name and provider.provider_id != exclude_id
            for provider in self._settings.available_providers
        )

    def _available_models(self, provider: ProviderConfig) -> List[str]:
        if provider.use_custom_models:
            return list(provider.custom_models)
        return list(self._models.get(provider.provider_name, []))

    # ------------------------------------------------------------------
    # Whole aggregate
    # ------------------------------------------------------------------

    async def fetch_settings(self) -> Result:
        self._count("fetch_settings")
        return Ok(deepcopy(self._settings))

    async def fetch_default_settings(self) -> Result:
        op = "fetch_default_settings"
        self._count(op)
        self._logger.info(f"{op}: resetting settings to default")
        error = self._commit(op, default_settings())
        if error is not None:
            return error
        return Ok(deepcopy(self._settings))

    async def save_settings(self, settings: Settings) -> Result:
        op = "save_settings"
        self._count(op)
        if settings is None:
            return self._reject(op, ERR_INVALID, "cannot save nil settings")
        for provider in settings.available_providers:
            message = check_provider(provider)
            if message:
                return self._reject(
                    op,
                    ERR_INVALID,
                    f"settings validation failed: invalid provider {provider.provider_name!r}: {message}",
                )
        try:
            settings.validate()
        except ValueError as exc:
            return self._reject(op, ERR_INVALID, f"settings validation failed: {exc}")

        error = self._commit(op, deepcopy(settings))
        if error is not None:
            return error
        return Ok(deepcopy(self._settings))

    async def fetch_metadata(self) -> Result:
        self._count("fetch_metadata")
        if self._path is not None:
            folder, file_path = str(self._path.parent), str(self._path)
        else:
            folder = DEFAULT_SETTINGS_FOLDER
            file_path = str(Path(DEFAULT_SETTINGS_FOLDER) / DEFAULT_SETTINGS_FILE)
        return Ok(AppSettingsMetadata(settings_folder=folder, settings_file=file_path))

    # ------------------------------------------------------------------
    # Providers
    # ------------------------------------------------------------------

    async def create_provider(self, provider: ProviderConfig) -> Result:
        op = "create_provider"
        self._count(op)
        message = check_provider(provider)
        if message:
            return self._reject(op, ERR_INVALID, message)
        if self._name_taken(provider.provider_name):
            return self._reject(
                op, ERR_CONFLICT, f"provider name {provider.provider_name!r} already exists"
            )

        created = deepcopy(provider)
        created.provider_id = str(uuid4())
        settings = deepcopy(self._settings)
        settings.available_providers.append(created)
        error = self._commit(op, settings)
        if error is not None:
            return error
        self._logger.info(f"{op}: created provider {created.provider_name!r}")
        return Ok(deepcopy(created))

    async def update_provider(self, provider: ProviderConfig) -> Result:
        op = "update_provider"
        self._count(op)
        if not provider.provider_id:
            return self._reject(op, ERR_INVALID, "provider ID cannot be empty")
        message = check_provider(provider)
        if message:
            return self._reject(op, ERR_INVALID, message)
        if self._settings.find_provider(provider.provider_id) is None:
            return self._reject(
                op, ERR_NOT_FOUND, f"provider not found with ID {provider.provider_id}"
            )
        if self._name_taken(provider.provider_name, exclude_id=provider.provider_id):
            return self._reject(
                op, ERR_CONFLICT, f"provider name {provider.provider_name!r} already exists"
            )

        settings = deepcopy(self._settings)
        settings.available_providers = [
            deepcopy(provider) if item.provider_id == provider.provider_id else item
            for item in settings.available_providers
        ]
        if settings.current_provider.provider_id == provider.provider_id:
            settings.current_provider = deepcopy(provider)
        error = self._commit(op, settings)
        if error is not None:
            return error
        return Ok(deepcopy(provider))

    async def delete_provider(self, provider_id: str) -> Result:
        op = "delete_provider"
        self._count(op)
        if not provider_id:
            return self._reject(op, ERR_INVALID, "provider ID cannot be empty")
        if self._settings.current_provider.provider_id == provider_id:
            return self._reject(op, ERR_CONFLICT, f"cannot delete current provider {provider_id}")
        if self._settings.find_provider(provider_id) is None:
            return self._reject(op, ERR_NOT_FOUND, f"provider not found with ID {provider_id}")

        settings = deepcopy(self._settings)
        settings.available_providers = [
            item for item in settings.available_providers if item.provider_id != provider_id
        ]
        error = self._commit(op, settings)
        if error is not None:
            return error
        return Ok(True)

    async def set_current_provider(self, provider_id: str) -> Result:
        op = "set_current_provider"
        self._count(op)
        if not provider_id:
            return self._reject(op, ERR_INVALID, "provider ID cannot be empty")
        provider = self._settings.find_provider(provider_id)
        if provider is None:
            return self._reject(op, ERR_NOT_FOUND, f"provider not found with ID {provider_id}")

        settings = deepcopy(self._settings)
        settings.current_provider = deepcopy(provider)
        error = self._commit(op, settings)
        if error is not None:
            return error
        return Ok(deepcopy(provider))

    async def validate_provider(
        self,
        provider: ProviderConfig,
        test_live: bool,
        model_id: Optional[str] = None,
    ) -> Result:
        op = "validate_provider"
        self._count(op)
        message = check_provider(provider)
        if message:
            return self._reject(op, ERR_INVALID, message)
        if not test_live:
            return Ok(True)

        models = self._available_models(provider)
        if not models:
            return self._reject(
                op, ERR_UNAVAILABLE, f"no models available from provider {provider.provider_name!r}"
            )
        if model_id and model_id not in models:
            return self._reject(
                op, ERR_NOT_FOUND, f"model {model_id!r} not offered by {provider.provider_name!r}"
            )
        return Ok(True)

    async def list_models(self, provider: ProviderConfig) -> Result:
        op = "list_models"
        self._count(op)
        models = self._available_models(provider)
        if not models:
            return self._reject(
                op, ERR_UNAVAILABLE, f"no models available from provider {provider.provider_name!r}"
            )
        return Ok(models)

    # ------------------------------------------------------------------
    # Languages
    # ------------------------------------------------------------------

    async def add_language(self, language: str) -> Result:
        op = "add_language"
        self._count(op)
        language = (language or "").strip()
        if not language:
            return self._reject(op, ERR_INVALID, "language cannot be empty")

        languages = self._settings.language_config.languages
        if contains_ignore_case(languages, language):
            self._logger.info(f"{op}: language {language!r} already exists, skipping")
            return Ok(list(languages))

        settings = deepcopy(self._settings)
        settings.language_config.languages.append(language)
        error = self._commit(op, settings)
        if error is not None:
            return error
        return Ok(list(self._settings.language_config.languages))

    async def remove_language(self, language: str) -> Result:
        op = "remove_language"
        self._count(op)
        language = (language or "").strip()
        if not language:
            return self._reject(op, ERR_INVALID, "language cannot be empty")

        config = self._settings.language_config
        lowered = language.lower()
        if lowered == config.default_input_language.lower():
            return self._reject(
                op, ERR_CONFLICT, f"cannot remove default input language {language!r}"
            )
        if lowered == config.default_output_language.lower():
            return self._reject(
                op, ERR_CONFLICT, f"cannot remove default output language {language!r}"
            )
        if not contains_ignore_case(config.languages, language):
            self._logger.warning(f"{op}: language {language!r} not found in supported languages")
            return Ok(list(config.languages))

        settings = deepcopy(self._settings)
        settings.language_config.languages = [
            item for item in config.languages if item.lower() != lowered
        ]
        error = self._commit(op, settings)
        if error is not None:
            return error
        return Ok(list(self._settings.language_config.languages))

    async def set_default_input_language(self, language: str) -> Result:
        return self._set_default_language("set_default_input_language", "default_input_language", language)

    async def set_default_output_language(self, language: str) -> Result:
        return self._set_default_language("set_default_output_language", "default_output_language", language)

    def _set_default_language(self, op: str, field: str, language: str) -> Result:
        self._count(op)
        language = (language or "").strip()
        if not language:
            return self._reject(op, ERR_INVALID, "language cannot be empty")
        if not contains_ignore_case(self._settings.language_config.languages, language):
            return self._reject(
                op, ERR_INVALID, f"language {language!r} not in supported languages list"
            )

        settings = deepcopy(self._settings)
        setattr(settings.language_config, field, language)
        error = self._commit(op, settings)
        if error is not None:
            return error
        return Ok(language)

    # ------------------------------------------------------------------
    # Model and inference
    # ------------------------------------------------------------------

    async def update_model_config(self, model_config: ModelConfig) -> Result:
        op = "update_model_config"
        self._count(op)
        try:
            model_config.validate()
        except ValueError as exc:
            return self._reject(op, ERR_INVALID, str(exc))

        settings = deepcopy(self._settings)
        settings.model_config = deepcopy(model_config)
        error = self._commit(op, settings)
        if error is not None:
            return error
        return Ok(deepcopy(model_config))

    async def update_inference_config(self, inference_config: InferenceBaseConfig) -> Result:
        op = "update_inference_config"
        self._count(op)
        try:
            inference_config.validate()
        except ValueError as exc:
            return self._reject(op, ERR_INVALID, str(exc))

        settings = deepcopy(self._settings)
        settings.inference_base_config = deepcopy(inference_config)
        error = self._commit(op, settings)
        if error is not None:
            return error
        return Ok(deepcopy(inference_config))
