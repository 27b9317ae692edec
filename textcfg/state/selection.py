"""
Derived selection state.

UI-facing lists and "selected" pointers computed from a draft. Providers and
models are keyed by name, not id.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Optional, Sequence, Tuple

from textcfg.config.models import Settings


@dataclass(frozen=True)
class SelectItem:
    """One selectable item: stable key plus display text."""

    item_id: str
    display_text: str

    @property
    def is_empty(self) -> bool:
        return not self.item_id


EMPTY_SELECTION = SelectItem(item_id="", display_text="")


def select_item(value: Optional[str]) -> SelectItem:
    """Map a string to a SelectItem, falling back to EMPTY_SELECTION."""
    if not value:
        return EMPTY_SELECTION
    return SelectItem(item_id=value, display_text=value)


def select_items(values: Optional[Iterable[Optional[str]]]) -> Tuple[SelectItem, ...]:
    return tuple(select_item(value) for value in (values or ()) if value)


@dataclass(frozen=True)
class DerivedSelection:
    """Selection pointers derived from one draft snapshot."""

    provider_items: Tuple[SelectItem, ...] = ()
    provider_selected: SelectItem = EMPTY_SELECTION
    model_items: Tuple[SelectItem, ...] = ()
    model_selected: SelectItem = EMPTY_SELECTION
    language_items: Tuple[SelectItem, ...] = ()
    input_language_selected: SelectItem = EMPTY_SELECTION
    output_language_selected: SelectItem = EMPTY_SELECTION

    def with_model_list(self, models: Sequence[str]) -> "DerivedSelection":
        """
        Attach a freshly loaded model list.

        Keeps the current model when it is in ``models``, otherwise selects
        the first one. An empty list keeps the current selection.
        """
        items = select_items(models)
        if not items:
            return replace(self, model_items=())
        current = self.model_selected.item_id
        if current and current in models:
            return replace(self, model_items=items)
        return replace(self, model_items=items, model_selected=items[0])


def derive_selection(
    settings: Optional[Settings],
    *,
    model_items: Tuple[SelectItem, ...] = (),
) -> DerivedSelection:
    """
    Compute selection state from ``settings``.

    Never raises on partially initialised settings; missing pieces map to
    EMPTY_SELECTION or empty tuples.
    """
    if settings is None:
        return DerivedSelection(model_items=model_items)

    providers = getattr(settings, "available_providers", None) or []
    current = getattr(settings, "current_provider", None)
    model = getattr(settings, "model_config", None)
    languages = getattr(settings, "language_config", None)

    return DerivedSelection(
        provider_items=select_items(getattr(p, "provider_name", "") for p in providers),
        provider_selected=select_item(getattr(current, "provider_name", "")),
        model_items=model_items,
        model_selected=select_item(getattr(model, "name", "")),
        language_items=select_items(getattr(languages, "languages", None)),
        input_language_selected=select_item(getattr(languages, "default_input_language", "")),
        output_language_selected=select_item(getattr(languages, "default_output_language", "")),
    )
