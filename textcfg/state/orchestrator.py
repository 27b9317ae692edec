"""
Async operation orchestrator.

Wraps every backing-store call in the same lifecycle:
``Idle -> Pending -> {Fulfilled, Rejected}``. Pending marks the engine busy
and clears the operation's previous messages; Fulfilled applies the result
to the draft store as a patch; Rejected records a normalized message under
the operation's key and leaves baseline and draft untouched. Busy is always
cleared on the way out.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
import logging
from typing import Any, Awaitable, Callable, List, Optional

from textcfg.config.models import (
    AppSettingsMetadata,
    EngineConfig,
    InferenceBaseConfig,
    ModelConfig,
    ProviderConfig,
    Settings,
)
from textcfg.config.models.constants import CONCURRENCY_QUEUE
from textcfg.logging import configure_logging, format_exception_summary, get_logger

from .backing_store import InMemorySettingsStore, SettingsBackingStore
from .draft_store import SettingsDraftStore
from .errors import (
    InvariantViolation,
    OperationInProgressError,
    RemoteOperationError,
    SettingsError,
    ValidationError,
    normalize_error_message,
)
from .results import ERR_INTERNAL, Err, Ok, Result
from .validators import (
    validate_inference_config,
    validate_model_config,
    validate_provider_config,
)

OP_FETCH_SETTINGS = "fetch_settings"
OP_FETCH_DEFAULT_SETTINGS = "fetch_default_settings"
OP_CREATE_PROVIDER = "create_provider"
OP_UPDATE_PROVIDER = "update_provider"
OP_DELETE_PROVIDER = "delete_provider"
OP_SET_CURRENT_PROVIDER = "set_current_provider"
OP_ADD_LANGUAGE = "add_language"
OP_REMOVE_LANGUAGE = "remove_language"
OP_SET_DEFAULT_INPUT_LANGUAGE = "set_default_input_language"
OP_SET_DEFAULT_OUTPUT_LANGUAGE = "set_default_output_language"
OP_UPDATE_MODEL_CONFIG = "update_model_config"
OP_UPDATE_INFERENCE_CONFIG = "update_inference_config"
OP_VALIDATE_PROVIDER = "validate_provider"
OP_SAVE_SETTINGS = "save_settings"
OP_FETCH_METADATA = "fetch_metadata"
OP_LOAD_MODELS = "load_models"

SUCCESS_MESSAGES = {
    OP_CREATE_PROVIDER: "Provider created successfully",
    OP_UPDATE_PROVIDER: "Provider updated successfully",
    OP_DELETE_PROVIDER: "Provider deleted successfully",
    OP_SET_CURRENT_PROVIDER: "Provider selected successfully",
    OP_VALIDATE_PROVIDER: "Provider validation successful",
    OP_ADD_LANGUAGE: "Language added successfully",
    OP_REMOVE_LANGUAGE: "Language removed successfully",
    OP_SET_DEFAULT_INPUT_LANGUAGE: "Default input language saved",
    OP_SET_DEFAULT_OUTPUT_LANGUAGE: "Default output language saved",
    OP_UPDATE_MODEL_CONFIG: "Model settings saved",
    OP_UPDATE_INFERENCE_CONFIG: "Inference settings saved",
    OP_SAVE_SETTINGS: "Settings saved successfully",
    OP_FETCH_DEFAULT_SETTINGS: "Settings reset to defaults",
}


class OperationPhase(str, Enum):
    """Lifecycle phase reported to subscribers."""

    REQUESTED = "requested"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class OperationEvent:
    """Lifecycle notification for one orchestrated operation."""

    operation: str
    phase: OperationPhase
    message: str = ""


@dataclass(frozen=True)
class OperationOutcome:
    """Value returned by every orchestrated operation."""

    operation: str
    ok: bool
    value: Any = None
    error: Optional[str] = None
    exception: Optional[SettingsError] = None


EventListener = Callable[[OperationEvent], None]
BusyListener = Callable[[bool], None]
StoreCall = Callable[[], Awaitable[Result]]
ApplyFunc = Callable[[Any], None]
PrecheckFunc = Callable[[], None]


class SettingsOrchestrator:
    """
    Runs backing-store operations against a draft store.

    Only one operation is in flight at a time. With the default ``"reject"``
    policy a dispatch made while busy returns a failed outcome carrying
    ``OperationInProgressError`` without touching the store; with
    ``"queue"`` dispatches wait their turn.
    """

    def __init__(
        self,
        draft_store: SettingsDraftStore,
        backing_store: SettingsBackingStore,
        *,
        config: Optional[EngineConfig] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._draft_store = draft_store
        self._store = backing_store
        self._config = config or EngineConfig()
        self._config.validate()
        self._logger = logger or get_logger(__name__)
        self._busy = False
        self._lock = asyncio.Lock()
        self._event_listeners: List[EventListener] = []
        self._busy_listeners: List[BusyListener] = []
        self._metadata: Optional[AppSettingsMetadata] = None

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def draft_store(self) -> SettingsDraftStore:
        return self._draft_store

    @property
    def backing_store(self) -> SettingsBackingStore:
        return self._store

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def metadata(self) -> Optional[AppSettingsMetadata]:
        """Metadata from the last successful ``fetch_metadata``."""
        return self._metadata

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def subscribe(self, listener: EventListener) -> Callable[[], None]:
        """Register a lifecycle listener; returns a function that unsubscribes it."""
        self._event_listeners.append(listener)
        return lambda: self._remove(self._event_listeners, listener)

    def on_busy_changed(self, listener: BusyListener) -> Callable[[], None]:
        """Register a busy-flag listener; returns a function that unsubscribes it."""
        self._busy_listeners.append(listener)
        return lambda: self._remove(self._busy_listeners, listener)

    @staticmethod
    def _remove(listeners: List[Any], listener: Any) -> None:
        if listener in listeners:
            listeners.remove(listener)

    def _emit(self, operation: str, phase: OperationPhase, message: str = "") -> None:
        event = OperationEvent(operation=operation, phase=phase, message=message)
        for listener in list(self._event_listeners):
            try:
                listener(event)
            except Exception as exc:
                self._logger.warning(
                    f"Operation listener failed for {operation}: {format_exception_summary(exc)}"
                )

    def _set_busy(self, busy: bool) -> None:
        if self._busy == busy:
            return
        self._busy = busy
        for listener in list(self._busy_listeners):
            try:
                listener(busy)
            except Exception as exc:
                self._logger.warning(f"Busy listener failed: {format_exception_summary(exc)}")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def _dispatch(
        self,
        operation: str,
        call: StoreCall,
        apply: ApplyFunc,
        precheck: Optional[PrecheckFunc] = None,
    ) -> OperationOutcome:
        if self._config.concurrency_policy == CONCURRENCY_QUEUE:
            async with self._lock:
                return await self._execute(operation, call, apply, precheck)

        if self._busy:
            error = OperationInProgressError(
                f"Cannot start {operation} while another operation is in progress"
            )
            self._logger.warning(str(error))
            return OperationOutcome(
                operation=operation, ok=False, error=str(error), exception=error
            )
        return await self._execute(operation, call, apply, precheck)

    async def _execute(
        self,
        operation: str,
        call: StoreCall,
        apply: ApplyFunc,
        precheck: Optional[PrecheckFunc],
    ) -> OperationOutcome:
        if precheck is not None:
            try:
                precheck()
            except SettingsError as exc:
                return self._reject_locally(operation, exc)

        self._logger.info(f"Attempting to {operation.replace('_', ' ')}")
        self._set_busy(True)
        try:
            self._draft_store.clear_messages(operation)
            self._emit(operation, OperationPhase.REQUESTED)

            result = await self._call_store(operation, call)
            if isinstance(result, Err):
                return self._fail(operation, RemoteOperationError(result.message, kind=result.kind))

            try:
                apply(result.value)
            except SettingsError as exc:
                return self._fail(operation, exc)
            except Exception as exc:
                self._logger.error(
                    f"Could not apply {operation} result: {format_exception_summary(exc)}"
                )
                return self._fail(
                    operation,
                    RemoteOperationError(normalize_error_message(exc), kind=ERR_INTERNAL),
                )

            message = SUCCESS_MESSAGES.get(operation, "")
            if message:
                self._draft_store.set_success(operation, message)
            self._logger.info(f"Completed {operation.replace('_', ' ')}")
            self._emit(operation, OperationPhase.SUCCEEDED, message)
            return OperationOutcome(operation=operation, ok=True, value=result.value)
        finally:
            self._set_busy(False)

    async def _call_store(self, operation: str, call: StoreCall) -> Result:
        try:
            result = await call()
        except Exception as exc:
            self._logger.error(
                f"Backing store raised during {operation}: {format_exception_summary(exc)}"
            )
            return Err(ERR_INTERNAL, normalize_error_message(exc))

        if isinstance(result, (Ok, Err)):
            return result
        return Err(ERR_INTERNAL, f"Backing store returned an unexpected result for {operation}")

    def _fail(self, operation: str, error: SettingsError) -> OperationOutcome:
        message = normalize_error_message(error)
        self._draft_store.set_error(operation, message)
        self._logger.error(f"Failed to {operation.replace('_', ' ')}: {message}")
        self._emit(operation, OperationPhase.FAILED, message)
        return OperationOutcome(operation=operation, ok=False, error=message, exception=error)

    def _reject_locally(self, operation: str, error: SettingsError) -> OperationOutcome:
        message = " ".join(str(error).split()) or normalize_error_message(error)
        self._draft_store.set_error(operation, message)
        self._logger.warning(f"Rejected {operation.replace('_', ' ')} before dispatch: {message}")
        return OperationOutcome(operation=operation, ok=False, error=message, exception=error)

    # ------------------------------------------------------------------
    # Whole aggregate
    # ------------------------------------------------------------------

    async def fetch_settings(self) -> OperationOutcome:
        """Load the authoritative settings into baseline and draft."""
        return await self._dispatch(
            OP_FETCH_SETTINGS,
            self._store.fetch_settings,
            self._draft_store.commit_full_replace,
        )

    async def fetch_default_settings(self) -> OperationOutcome:
        """Reset the store to factory defaults and load them."""
        return await self._dispatch(
            OP_FETCH_DEFAULT_SETTINGS,
            self._store.fetch_default_settings,
            self._draft_store.commit_full_replace,
        )

    async def save_settings(self, settings: Optional[Settings] = None) -> OperationOutcome:
        """
        Persist a whole aggregate, the current draft by default.

        The draft is read when the operation starts, so a save queued behind
        another operation sends the draft as that operation left it. Every
        provider is validated locally first.
        """
        candidate = settings

        def precheck() -> None:
            nonlocal candidate
            if candidate is None:
                candidate = self._draft_store.draft
            for provider in candidate.available_providers:
                _require_valid_provider(provider)

        return await self._dispatch(
            OP_SAVE_SETTINGS,
            lambda: self._store.save_settings(candidate),
            self._draft_store.commit_full_replace,
            precheck,
        )

    async def fetch_metadata(self) -> OperationOutcome:
        def apply(value: AppSettingsMetadata) -> None:
            self._metadata = value

        return await self._dispatch(OP_FETCH_METADATA, self._store.fetch_metadata, apply)

    # ------------------------------------------------------------------
    # Providers
    # ------------------------------------------------------------------

    async def create_provider(self, provider: ProviderConfig) -> OperationOutcome:
        """Create a provider; the stored copy is appended to baseline and draft."""

        def precheck() -> None:
            _require_valid_provider(provider)
            names = {item.provider_name for item in self._draft_store.baseline.available_providers}
            if provider.provider_name in names:
                raise ValidationError(
                    f"Provider name '{provider.provider_name}' already exists",
                    field="provider_name",
                )

        return await self._dispatch(
            OP_CREATE_PROVIDER,
            lambda: self._store.create_provider(provider),
            lambda value: self._draft_store.commit_patch("provider_added", value),
            precheck,
        )

    async def update_provider(self, provider: ProviderConfig) -> OperationOutcome:
        """Update a provider by id, cascading into the current provider when it matches."""
        return await self._dispatch(
            OP_UPDATE_PROVIDER,
            lambda: self._store.update_provider(provider),
            lambda value: self._draft_store.commit_patch("provider", value),
            lambda: _require_valid_provider(provider),
        )

    async def delete_provider(self, provider: ProviderConfig) -> OperationOutcome:
        """Delete a provider. The current provider can never be deleted."""
        provider_id = provider.provider_id

        def precheck() -> None:
            current_ids = {
                self._draft_store.baseline.current_provider.provider_id,
                self._draft_store.draft.current_provider.provider_id,
            }
            if provider_id in current_ids:
                raise InvariantViolation(
                    f"Cannot delete current provider '{provider.provider_name}'"
                )

        def apply(value: Any) -> None:
            if not value:
                raise RemoteOperationError("Failed to delete provider")
            self._draft_store.commit_patch("provider_removed", provider_id)

        return await self._dispatch(
            OP_DELETE_PROVIDER,
            lambda: self._store.delete_provider(provider_id),
            apply,
            precheck,
        )

    async def set_current_provider(self, provider: ProviderConfig) -> OperationOutcome:
        return await self._dispatch(
            OP_SET_CURRENT_PROVIDER,
            lambda: self._store.set_current_provider(provider.provider_id),
            lambda value: self._draft_store.commit_patch("current_provider", value),
        )

    async def validate_provider(
        self,
        provider: ProviderConfig,
        test_live: bool = False,
        model_id: Optional[str] = None,
    ) -> OperationOutcome:
        """Check a provider profile with the store; nothing is patched."""

        def apply(value: Any) -> None:
            if not value:
                raise RemoteOperationError("Provider validation failed")

        return await self._dispatch(
            OP_VALIDATE_PROVIDER,
            lambda: self._store.validate_provider(provider, test_live, model_id),
            apply,
            lambda: _require_valid_provider(provider),
        )

    async def load_models(self, provider: Optional[ProviderConfig] = None) -> OperationOutcome:
        """
        Load the model list of ``provider`` (the draft's current provider by
        default) and attach it to the selection.
        """
        target = provider if provider is not None else self._draft_store.draft.current_provider
        return await self._dispatch(
            OP_LOAD_MODELS,
            lambda: self._store.list_models(target),
            self._draft_store.set_model_list,
        )

    # ------------------------------------------------------------------
    # Languages
    # ------------------------------------------------------------------

    async def add_language(self, language: str) -> OperationOutcome:
        def precheck() -> None:
            if not (language or "").strip():
                raise ValidationError("Language cannot be empty", field="language")

        return await self._dispatch(
            OP_ADD_LANGUAGE,
            lambda: self._store.add_language(language),
            lambda value: self._draft_store.commit_patch("languages", value),
            precheck,
        )

    async def remove_language(self, language: str) -> OperationOutcome:
        """Remove a language. A default input or output language is protected."""

        def precheck() -> None:
            if not (language or "").strip():
                raise ValidationError("Language cannot be empty", field="language")
            baseline = self._draft_store.baseline.language_config
            draft = self._draft_store.draft.language_config
            if baseline.is_protected(language) or draft.is_protected(language):
                raise InvariantViolation(
                    f"Cannot remove default language '{language}'"
                )

        return await self._dispatch(
            OP_REMOVE_LANGUAGE,
            lambda: self._store.remove_language(language),
            lambda value: self._draft_store.commit_patch("languages", value),
            precheck,
        )

    async def set_default_input_language(self, language: str) -> OperationOutcome:
        return await self._dispatch(
            OP_SET_DEFAULT_INPUT_LANGUAGE,
            lambda: self._store.set_default_input_language(language),
            lambda value: self._draft_store.commit_patch("default_input_language", value),
        )

    async def set_default_output_language(self, language: str) -> OperationOutcome:
        return await self._dispatch(
            OP_SET_DEFAULT_OUTPUT_LANGUAGE,
            lambda: self._store.set_default_output_language(language),
            lambda value: self._draft_store.commit_patch("default_output_language", value),
        )

    # ------------------------------------------------------------------
    # Model and inference
    # ------------------------------------------------------------------

    async def update_model_config(self, model_config: ModelConfig) -> OperationOutcome:
        def precheck() -> None:
            error = validate_model_config(model_config)
            if error:
                raise ValidationError(error, field="model_config")

        return await self._dispatch(
            OP_UPDATE_MODEL_CONFIG,
            lambda: self._store.update_model_config(model_config),
            lambda value: self._draft_store.commit_patch("model_config", value),
            precheck,
        )

    async def update_inference_config(
        self, inference_config: InferenceBaseConfig
    ) -> OperationOutcome:
        def precheck() -> None:
            error = validate_inference_config(inference_config)
            if error:
                raise ValidationError(error, field="inference_base_config")

        return await self._dispatch(
            OP_UPDATE_INFERENCE_CONFIG,
            lambda: self._store.update_inference_config(inference_config),
            lambda value: self._draft_store.commit_patch("inference_base_config", value),
            precheck,
        )


def _require_valid_provider(provider: ProviderConfig) -> None:
    error = validate_provider_config(provider)
    if error:
        raise ValidationError(error, field="provider")


def create_engine(
    config: Optional[EngineConfig] = None,
    *,
    backing_store: Optional[SettingsBackingStore] = None,
    logger: Optional[logging.Logger] = None,
    setup_logs: bool = False,
) -> SettingsOrchestrator:
    """
    Wire a draft store, a backing store and an orchestrator together.

    Without an explicit ``backing_store`` an ``InMemorySettingsStore`` is
    used, seeded from ``config.settings_file`` when set. The draft store
    starts empty; call ``fetch_settings()`` to load it. With ``setup_logs``
    the ``textcfg`` logger is configured from ``config.log_level`` and
    ``config.log_file`` first.
    """
    config = config or EngineConfig()
    config.validate()
    if setup_logs:
        configure_logging(config)
    if backing_store is None:
        if config.settings_file is not None:
            backing_store = InMemorySettingsStore.from_file(
                config.settings_file,
                default_language=config.default_language,
                logger=logger,
            )
        else:
            backing_store = InMemorySettingsStore(logger=logger)
    return SettingsOrchestrator(
        SettingsDraftStore(logger=logger),
        backing_store,
        config=config,
        logger=logger,
    )
