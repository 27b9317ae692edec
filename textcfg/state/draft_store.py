"""Configuration draft store: persisted baseline plus editable draft."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from textcfg.config.loader import clone_settings
from textcfg.config.models import ProviderConfig, Settings, contains_ignore_case
from textcfg.logging import get_logger

from . import reducers
from .errors import SettingsError
from .headers import HeaderCollection, HeaderEntry, IdFactory
from .selection import DerivedSelection, derive_selection

_HEADER_PATCH_FIELDS = {"provider", "current_provider"}


@dataclass(frozen=True)
class DraftStoreSnapshot:
    """Immutable snapshot of draft store state."""

    baseline: Settings
    draft: Settings
    selection: DerivedSelection
    headers: Tuple[HeaderEntry, ...]
    is_dirty: bool
    errors: Dict[str, str]
    success_messages: Dict[str, str]


@dataclass(frozen=True)
class SettingsActionResult:
    """Result value for local draft actions."""

    handled: bool
    changed_fields: Tuple[str, ...] = ()
    error: Optional[str] = None


class SettingsDraftStore:
    """
    Holds the last persisted settings (baseline) and the edited copy (draft).

    Baseline and draft are never aliased: every value crossing into or out of
    the store is cloned, and every change is computed by a pure reducer that
    returns a new snapshot. Properties hand out clones so callers cannot
    mutate store state in place.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        clone_func: Callable[[Settings], Settings] = clone_settings,
        id_factory: Optional[IdFactory] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._clone = clone_func
        self._id_factory = id_factory
        self._logger = logger or get_logger(__name__)
        initial = settings if settings is not None else Settings()
        self._baseline: Settings = self._clone(initial)
        self._draft: Settings = self._clone(initial)
        self._headers = self._headers_from(self._draft)
        self._selection: DerivedSelection = derive_selection(self._draft)
        self._errors: Dict[str, str] = {}
        self._success_messages: Dict[str, str] = {}

    @property
    def baseline(self) -> Settings:
        """Last loaded or committed settings (a copy)."""
        return self._clone(self._baseline)

    @property
    def draft(self) -> Settings:
        """Settings being edited (a copy)."""
        return self._clone(self._draft)

    @property
    def selection(self) -> DerivedSelection:
        return self._selection

    @property
    def headers(self) -> HeaderCollection:
        return self._headers

    @property
    def is_dirty(self) -> bool:
        """True when the draft differs from the baseline."""
        return self._draft != self._baseline

    @property
    def errors(self) -> Dict[str, str]:
        """Error messages indexed by operation or field id."""
        return dict(self._errors)

    @property
    def success_messages(self) -> Dict[str, str]:
        return dict(self._success_messages)

    def snapshot(self) -> DraftStoreSnapshot:
        """Return an immutable copy of current store state."""
        return DraftStoreSnapshot(
            baseline=self._clone(self._baseline),
            draft=self._clone(self._draft),
            selection=self._selection,
            headers=self._headers.entries,
            is_dirty=self.is_dirty,
            errors=dict(self._errors),
            success_messages=dict(self._success_messages),
        )

    # ------------------------------------------------------------------
    # Loading and committing
    # ------------------------------------------------------------------

    def load(self, settings: Settings) -> None:
        """Replace baseline and draft with independent copies of ``settings``."""
        self._baseline = self._clone(settings)
        self._draft = self._clone(settings)
        self._headers = self._headers_from(self._draft)
        self._selection = derive_selection(self._draft)
        self.clear_messages()
        self._logger.debug(
            f"Loaded settings with {len(self._baseline.available_providers)} providers"
        )

    def commit_full_replace(self, settings: Settings) -> None:
        """Apply an operation that returned the whole aggregate."""
        self.load(settings)

    def commit_patch(self, field: str, value: Any) -> None:
        """
        Apply a sub-object patch to baseline and draft independently.

        See ``reducers.PATCH_FIELDS`` for the supported field names.
        """
        baseline = reducers.apply_patch(self._baseline, field, value)
        draft = reducers.apply_patch(self._draft, field, value)
        self._baseline, self._draft = baseline, draft
        if field in _HEADER_PATCH_FIELDS and self._touches_current(value):
            self._headers = self._headers_from(self._draft)
        self._refresh_selection()
        self._logger.debug(f"Committed patch '{field}'")

    def discard_draft(self) -> None:
        """Throw away every local edit and restore the draft from the baseline."""
        self._draft = self._clone(self._baseline)
        self._headers = self._headers_from(self._draft)
        self._selection = derive_selection(self._draft, model_items=self._selection.model_items)
        self._errors.clear()

    # ------------------------------------------------------------------
    # Local draft edits
    # ------------------------------------------------------------------

    def mutate_draft(self, path: str, value: Any) -> SettingsActionResult:
        """Set one field of the draft by dotted path; the baseline is untouched."""
        try:
            self._draft = reducers.set_path(self._draft, path, value)
        except SettingsError as exc:
            self._errors[path] = str(exc)
            return SettingsActionResult(handled=False, error=str(exc))

        if path.startswith("current_provider"):
            self._headers = self._headers_from(self._draft)
        self._errors.pop(path, None)
        self._refresh_selection()
        return SettingsActionResult(handled=True, changed_fields=(path,))

    def set_draft_current_provider(self, provider: ProviderConfig) -> SettingsActionResult:
        """Select ``provider`` as current in the draft only (no backing-store call)."""
        self._draft = reducers.set_current_provider(self._draft, provider)
        self._headers = self._headers_from(self._draft)
        self._refresh_selection()
        return SettingsActionResult(handled=True, changed_fields=("current_provider",))

    def select_provider(self, provider_name: str) -> SettingsActionResult:
        """Make the draft provider named ``provider_name`` the draft's current provider."""
        for provider in self._draft.available_providers:
            if provider.provider_name == provider_name:
                return self.set_draft_current_provider(provider)
        error = f"Provider '{provider_name}' not found"
        self._errors["current_provider"] = error
        return SettingsActionResult(handled=False, error=error)

    def set_model_name(self, name: str) -> SettingsActionResult:
        return self.mutate_draft("model_config.name", name)

    def set_temperature_enabled(self, enabled: bool) -> SettingsActionResult:
        return self.mutate_draft("model_config.use_temperature", bool(enabled))

    def set_temperature(self, temperature: float) -> SettingsActionResult:
        return self.mutate_draft("model_config.temperature", float(temperature))

    def set_use_markdown(self, enabled: bool) -> SettingsActionResult:
        return self.mutate_draft("inference_base_config.use_markdown_for_output", bool(enabled))

    def set_input_language(self, language: str) -> SettingsActionResult:
        return self._set_default_language("default_input_language", language)

    def set_output_language(self, language: str) -> SettingsActionResult:
        return self._set_default_language("default_output_language", language)

    def set_model_list(self, models: Sequence[str]) -> None:
        """
        Attach a loaded model list to the selection.

        When the draft's model is not in the list the first model is selected
        and written to the draft.
        """
        self._selection = self._selection.with_model_list(list(models))
        selected = self._selection.model_selected.item_id
        if selected and selected != self._draft.model_config.name:
            self._draft = reducers.set_path(self._draft, "model_config.name", selected)

    # ------------------------------------------------------------------
    # Header rows of the draft's current provider
    # ------------------------------------------------------------------

    def add_blank_header(self) -> None:
        self._set_headers(self._headers.add_blank_row())

    def update_header(self, entry: HeaderEntry) -> None:
        self._set_headers(self._headers.update(entry))

    def remove_header(self, entry_id: str) -> None:
        self._set_headers(self._headers.remove(entry_id))

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def set_error(self, key: str, message: str) -> None:
        self._errors[key] = message

    def set_success(self, key: str, message: str) -> None:
        self._success_messages[key] = message

    def clear_messages(self, key: Optional[str] = None) -> None:
        """Clear messages for one key, or every message when ``key`` is None."""
        if key is None:
            self._errors.clear()
            self._success_messages.clear()
            return
        self._errors.pop(key, None)
        self._success_messages.pop(key, None)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _set_default_language(self, field: str, language: str) -> SettingsActionResult:
        languages = self._draft.language_config.languages
        if language and not contains_ignore_case(languages, language):
            error = f"Language '{language}' is not in supported languages"
            self._errors[field] = error
            return SettingsActionResult(handled=False, error=error)
        return self.mutate_draft(f"language_config.{field}", language)

    def _set_headers(self, headers: HeaderCollection) -> None:
        self._headers = headers
        self._draft = reducers.set_current_headers(self._draft, headers.to_map())

    def _headers_from(self, settings: Settings) -> HeaderCollection:
        current = getattr(settings, "current_provider", None)
        return HeaderCollection.from_map(
            getattr(current, "headers", None), id_factory=self._id_factory
        )

    def _touches_current(self, value: Any) -> bool:
        provider_id = getattr(value, "provider_id", None)
        return provider_id is not None and provider_id == self._draft.current_provider.provider_id

    def _refresh_selection(self) -> None:
        self._selection = derive_selection(self._draft, model_items=self._selection.model_items)
