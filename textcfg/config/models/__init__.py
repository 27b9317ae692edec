"""
Configuration data models.
"""

from __future__ import annotations

from .constants import (
    AUTH_TYPE_API_KEY,
    AUTH_TYPE_BEARER,
    AUTH_TYPE_NONE,
    AUTH_TYPES,
    CONCURRENCY_POLICIES,
    CONCURRENCY_QUEUE,
    CONCURRENCY_REJECT,
    DEFAULT_LANGUAGES,
    PROVIDER_TYPE_OLLAMA,
    PROVIDER_TYPE_OPEN_AI_COMPATIBLE,
    PROVIDER_TYPES,
)
from .engine import EngineConfig
from .settings import (
    AppSettingsMetadata,
    InferenceBaseConfig,
    LanguageConfig,
    ModelConfig,
    ProviderConfig,
    Settings,
    contains_ignore_case,
)

__all__ = [
    "AUTH_TYPE_API_KEY",
    "AUTH_TYPE_BEARER",
    "AUTH_TYPE_NONE",
    "AUTH_TYPES",
    "CONCURRENCY_POLICIES",
    "CONCURRENCY_QUEUE",
    "CONCURRENCY_REJECT",
    "DEFAULT_LANGUAGES",
    "PROVIDER_TYPE_OLLAMA",
    "PROVIDER_TYPE_OPEN_AI_COMPATIBLE",
    "PROVIDER_TYPES",
    "AppSettingsMetadata",
    "EngineConfig",
    "InferenceBaseConfig",
    "LanguageConfig",
    "ModelConfig",
    "ProviderConfig",
    "Settings",
    "contains_ignore_case",
]
