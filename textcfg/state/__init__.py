"""
Settings state: draft store, header rows, derived selection, validators and
the async orchestrator that synchronizes them with a backing store.
"""

from .backing_store import InMemorySettingsStore, SettingsBackingStore
from .draft_store import DraftStoreSnapshot, SettingsActionResult, SettingsDraftStore
from .errors import (
    InvariantViolation,
    OperationInProgressError,
    RemoteOperationError,
    SettingsError,
    ValidationError,
    normalize_error_message,
)
from .headers import HeaderCollection, HeaderEntry
from .orchestrator import (
    OperationEvent,
    OperationOutcome,
    OperationPhase,
    SettingsOrchestrator,
    create_engine,
)
from .results import Err, Ok, Result
from .selection import EMPTY_SELECTION, DerivedSelection, SelectItem, derive_selection

__all__ = [
    "DerivedSelection",
    "DraftStoreSnapshot",
    "EMPTY_SELECTION",
    "Err",
    "HeaderCollection",
    "HeaderEntry",
    "InMemorySettingsStore",
    "InvariantViolation",
    "Ok",
    "OperationEvent",
    "OperationInProgressError",
    "OperationOutcome",
    "OperationPhase",
    "RemoteOperationError",
    "Result",
    "SelectItem",
    "SettingsActionResult",
    "SettingsBackingStore",
    "SettingsDraftStore",
    "SettingsError",
    "SettingsOrchestrator",
    "ValidationError",
    "create_engine",
    "derive_selection",
    "normalize_error_message",
]
