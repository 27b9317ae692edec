from __future__ import annotations

from importlib import import_module
from typing import Any

__version__ = "0.1.0"

_LAZY_EXPORTS = {
    "SettingsDraftStore": ("textcfg.state.draft_store", "SettingsDraftStore"),
    "SettingsOrchestrator": ("textcfg.state.orchestrator", "SettingsOrchestrator"),
    "InMemorySettingsStore": ("textcfg.state.backing_store", "InMemorySettingsStore"),
    "create_engine": ("textcfg.state.orchestrator", "create_engine"),
}

__all__ = [
    "__version__",
    "SettingsDraftStore",
    "SettingsOrchestrator",
    "InMemorySettingsStore",
    "create_engine",
]


def __getattr__(name: str) -> Any:
    if name in _LAZY_EXPORTS:
        module_name, attr_name = _LAZY_EXPORTS[name]
        module = import_module(module_name)
        value = getattr(module, attr_name)
        globals()[name] = value
        return value
    raise AttributeError(f"module 'textcfg' has no attribute '{name}'")
