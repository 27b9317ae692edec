"""
Shared pytest fixtures for textcfg tests.

Provides sample settings aggregates, raw settings documents, a deterministic
id factory for header rows, and wired draft/backing stores.
"""

import json
from itertools import count
from pathlib import Path
from typing import Any, Callable, Dict

import pytest

from textcfg.config.models import (
    InferenceBaseConfig,
    LanguageConfig,
    ModelConfig,
    ProviderConfig,
    Settings,
)
from textcfg.state.backing_store import InMemorySettingsStore
from textcfg.state.draft_store import SettingsDraftStore
from textcfg.state.orchestrator import SettingsOrchestrator


# -----------------------------------------------------------------------------
# Settings Fixtures
# -----------------------------------------------------------------------------

def make_provider(**overrides: Any) -> ProviderConfig:
    """Build a provider that passes both local and store-side validation."""
    values: Dict[str, Any] = {
        "provider_id": "provider-a",
        "provider_name": "Alpha",
        "base_url": "http://127.0.0.1:11434/",
    }
    values.update(overrides)
    return ProviderConfig(**values)


@pytest.fixture
def provider_factory() -> Callable[..., ProviderConfig]:
    return make_provider


@pytest.fixture
def provider_a() -> ProviderConfig:
    return make_provider(
        provider_id="provider-a",
        provider_name="Alpha",
        use_custom_headers=True,
        headers={"X-Org": "acme"},
    )


@pytest.fixture
def provider_b() -> ProviderConfig:
    return make_provider(
        provider_id="provider-b",
        provider_name="Beta",
        base_url="http://127.0.0.1:1234/",
    )


@pytest.fixture
def sample_settings(provider_a: ProviderConfig, provider_b: ProviderConfig) -> Settings:
    """
    Two providers (Alpha current), three languages with en/fr defaults.
    """
    return Settings(
        available_providers=[provider_a, provider_b],
        current_provider=ProviderConfig(**vars(provider_a)),
        model_config=ModelConfig(name="llama3", use_temperature=True, temperature=0.7),
        language_config=LanguageConfig(
            languages=["en", "fr", "de"],
            default_input_language="en",
            default_output_language="fr",
        ),
        inference_base_config=InferenceBaseConfig(timeout=60, max_retries=3),
    )


@pytest.fixture
def sample_settings_raw() -> Dict[str, Any]:
    """Raw camelCase settings document as stored on disk."""
    alpha = {
        "providerId": "provider-a",
        "providerName": "Alpha",
        "providerType": "ollama",
        "baseUrl": "http://127.0.0.1:11434/",
        "modelsEndpoint": "v1/models",
        "completionEndpoint": "v1/chat/completions",
        "authType": "none",
        "authToken": "",
        "useAuthTokenFromEnv": False,
        "envVarTokenName": "",
        "useCustomHeaders": True,
        "headers": {"X-Org": "acme"},
        "useCustomModels": False,
        "customModels": [],
    }
    beta = dict(alpha, providerId="provider-b", providerName="Beta", headers={})
    return {
        "availableProviderConfigs": [alpha, beta],
        "currentProviderConfig": alpha,
        "inferenceBaseConfig": {"timeout": 30, "maxRetries": 2, "useMarkdownForOutput": True},
        "modelConfig": {"name": "llama3", "useTemperature": True, "temperature": 0.4},
        "languageConfig": {
            "languages": ["English", "French"],
            "defaultInputLanguage": "English",
            "defaultOutputLanguage": "French",
        },
    }


@pytest.fixture
def sample_settings_file(tmp_path: Path, sample_settings_raw: Dict[str, Any]) -> Path:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps(sample_settings_raw, indent=2), encoding="utf-8")
    return path


# -----------------------------------------------------------------------------
# Store Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def id_factory() -> Callable[[], str]:
    """Deterministic, increasing header row ids."""
    counter = count(1)
    return lambda: f"row-{next(counter):04d}"


@pytest.fixture
def draft_store(sample_settings: Settings, id_factory: Callable[[], str]) -> SettingsDraftStore:
    return SettingsDraftStore(sample_settings, id_factory=id_factory)


@pytest.fixture
def memory_store(sample_settings: Settings) -> InMemorySettingsStore:
    return InMemorySettingsStore(sample_settings, models={"Alpha": ["llama3", "mistral"]})


@pytest.fixture
def orchestrator(
    draft_store: SettingsDraftStore,
    memory_store: InMemorySettingsStore,
) -> SettingsOrchestrator:
    return SettingsOrchestrator(draft_store, memory_store)
