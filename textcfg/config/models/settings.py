"""
Settings aggregate models.

The aggregate root is ``Settings``; every other model hangs off it. Models are
plain mutable dataclasses: ownership and copy discipline are enforced by the
draft store, not by the models themselves.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .constants import (
    AUTH_TYPE_NONE,
    AUTH_TYPES,
    DEFAULT_COMPLETION_ENDPOINT,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MODEL_NAME,
    DEFAULT_MODELS_ENDPOINT,
    DEFAULT_TEMPERATURE,
    DEFAULT_TIMEOUT_SECONDS,
    MAX_MAX_RETRIES,
    MAX_TEMPERATURE,
    MAX_TIMEOUT_SECONDS,
    MIN_MAX_RETRIES,
    MIN_TEMPERATURE,
    MIN_TIMEOUT_SECONDS,
    PROVIDER_TYPE_OPEN_AI_COMPATIBLE,
    PROVIDER_TYPES,
)


def contains_ignore_case(items: List[str], item: str) -> bool:
    """Return True when ``item`` is in ``items`` ignoring case."""
    lowered = (item or "").lower()
    return any((entry or "").lower() == lowered for entry in items)


@dataclass
class ProviderConfig:
    """
    Connection profile for one LLM provider.
    """

    provider_id: str = ""
    """Identity assigned by the backing store. Empty for a not-yet-created provider."""

    provider_name: str = ""
    """Display name, unique across available providers."""

    provider_type: str = PROVIDER_TYPE_OPEN_AI_COMPATIBLE
    """One of PROVIDER_TYPES."""

    base_url: str = ""
    """Root URL of the provider API."""

    models_endpoint: str = DEFAULT_MODELS_ENDPOINT
    """Relative path listing available models."""

    completion_endpoint: str = DEFAULT_COMPLETION_ENDPOINT
    """Relative path for chat completions."""

    auth_type: str = AUTH_TYPE_NONE
    """One of AUTH_TYPES."""

    auth_token: str = ""
    """Literal token, used when ``use_auth_token_from_env`` is False."""

    use_auth_token_from_env: bool = False
    """Read the token from ``env_var_token_name`` instead of ``auth_token``."""

    env_var_token_name: str = ""
    """Environment variable holding the token."""

    use_custom_headers: bool = False
    """Send ``headers`` with every request."""

    headers: Dict[str, str] = field(default_factory=dict)
    """Extra HTTP headers."""

    use_custom_models: bool = False
    """Use ``custom_models`` instead of querying the models endpoint."""

    custom_models: List[str] = field(default_factory=list)
    """Model names offered when ``use_custom_models`` is set."""

    def __post_init__(self) -> None:
        self.headers = dict(self.headers or {})
        self.custom_models = list(self.custom_models or [])

    def validate(self) -> None:
        """Validate provider fields and their relationships."""
        if not self.provider_name:
            raise ValueError("provider name cannot be empty")
        if self.provider_type not in PROVIDER_TYPES:
            raise ValueError(f"invalid provider type {self.provider_type!r}")
        if not self.base_url:
            raise ValueError("base URL cannot be empty")
        if not self.completion_endpoint:
            raise ValueError("completion endpoint cannot be empty")
        if self.auth_type not in AUTH_TYPES:
            raise ValueError(f"invalid auth type {self.auth_type!r}")
        if not self.use_custom_models and not self.models_endpoint:
            raise ValueError("models endpoint required when not using custom models")
        if self.use_auth_token_from_env:
            if not self.env_var_token_name:
                raise ValueError(
                    "environment variable name required when loading token from environment"
                )
        elif self.auth_type != AUTH_TYPE_NONE and not self.auth_token:
            raise ValueError(f"auth token required for auth type {self.auth_type!r}")
        if self.use_custom_models and not self.custom_models:
            raise ValueError("custom models required when using custom models")


@dataclass
class ModelConfig:
    """Model selection and sampling parameters."""

    name: str = DEFAULT_MODEL_NAME
    use_temperature: bool = True
    temperature: float = DEFAULT_TEMPERATURE

    def validate(self) -> None:
        if not self.name.strip():
            raise ValueError("model name cannot be empty")
        if self.use_temperature and not (MIN_TEMPERATURE <= self.temperature <= MAX_TEMPERATURE):
            raise ValueError(
                f"temperature must be between {MIN_TEMPERATURE} and {MAX_TEMPERATURE} when enabled"
            )


@dataclass
class LanguageConfig:
    """
    Supported languages and default input/output selections.

    ``languages`` behaves as an ordered set. A language equal to either
    default is protected and cannot be removed.
    """

    languages: List[str] = field(default_factory=list)
    default_input_language: str = ""
    default_output_language: str = ""

    def __post_init__(self) -> None:
        unique: List[str] = []
        for language in self.languages or []:
            if not contains_ignore_case(unique, language):
                unique.append(language)
        self.languages = unique

    def is_protected(self, language: str) -> bool:
        """Return True when ``language`` is one of the current defaults."""
        lowered = (language or "").strip().lower()
        if not lowered:
            return False
        return lowered in {
            self.default_input_language.lower(),
            self.default_output_language.lower(),
        }

    def validate(self) -> None:
        if not self.languages:
            raise ValueError("languages list cannot be empty")
        if self.default_input_language and not contains_ignore_case(
            self.languages, self.default_input_language
        ):
            raise ValueError("default input language not in supported languages list")
        if self.default_output_language and not contains_ignore_case(
            self.languages, self.default_output_language
        ):
            raise ValueError("default output language not in supported languages list")


@dataclass
class InferenceBaseConfig:
    """Request-level inference options."""

    timeout: int = DEFAULT_TIMEOUT_SECONDS
    max_retries: int = DEFAULT_MAX_RETRIES
    use_markdown_for_output: bool = False

    def validate(self) -> None:
        if not (MIN_TIMEOUT_SECONDS <= self.timeout <= MAX_TIMEOUT_SECONDS):
            raise ValueError(
                f"timeout must be between {MIN_TIMEOUT_SECONDS} and {MAX_TIMEOUT_SECONDS} seconds"
            )
        if not (MIN_MAX_RETRIES <= self.max_retries <= MAX_MAX_RETRIES):
            raise ValueError(
                f"max retries must be between {MIN_MAX_RETRIES} and {MAX_MAX_RETRIES}"
            )


@dataclass
class Settings:
    """
    Aggregate root of the configuration graph.

    In a committed state ``current_provider.provider_id`` matches exactly one
    element of ``available_providers``. Drafts may violate this transiently.
    """

    available_providers: List[ProviderConfig] = field(default_factory=list)
    current_provider: ProviderConfig = field(default_factory=ProviderConfig)
    model_config: ModelConfig = field(default_factory=ModelConfig)
    language_config: LanguageConfig = field(default_factory=LanguageConfig)
    inference_base_config: InferenceBaseConfig = field(default_factory=InferenceBaseConfig)

    def find_provider(self, provider_id: str) -> Optional[ProviderConfig]:
        """Return the available provider with ``provider_id``, if any."""
        for provider in self.available_providers:
            if provider.provider_id == provider_id:
                return provider
        return None

    def validate(self) -> None:
        """Holistic validation of the whole aggregate."""
        names: set[str] = set()
        for provider in self.available_providers:
            try:
                provider.validate()
            except ValueError as exc:
                raise ValueError(f"invalid provider {provider.provider_name!r}: {exc}") from exc
            if provider.provider_name in names:
                raise ValueError(f"duplicate provider name: {provider.provider_name}")
            names.add(provider.provider_name)

        matches = [
            provider
            for provider in self.available_providers
            if provider.provider_id == self.current_provider.provider_id
        ]
        if len(matches) != 1:
            raise ValueError(
                f"current provider {self.current_provider.provider_name!r} "
                "not found in available providers"
            )
        self.current_provider.validate()
        self.inference_base_config.validate()
        self.model_config.validate()
        self.language_config.validate()


@dataclass
class AppSettingsMetadata:
    """Static metadata describing the settings backend."""

    auth_types: List[str] = field(default_factory=lambda: list(AUTH_TYPES))
    provider_types: List[str] = field(default_factory=lambda: list(PROVIDER_TYPES))
    settings_folder: str = ""
    settings_file: str = ""
