"""
Ordered key/value header rows.

Provider headers are stored as a mapping but edited as a list of rows, each
with a synthetic id so the UI has a stable key even while the header name is
being typed. Rows are kept sorted by id.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterator, Mapping, Optional, Tuple

from .identity import generate_unique_id

IdFactory = Callable[[], str]


@dataclass(frozen=True)
class HeaderEntry:
    """One editable header row."""

    id: str
    key: str = ""
    value: str = ""

    @property
    def is_blank(self) -> bool:
        return not self.key.strip() and not self.value.strip()

    @property
    def has_empty_key(self) -> bool:
        return not self.key.strip()


def _sorted(entries) -> Tuple[HeaderEntry, ...]:
    return tuple(sorted(entries, key=lambda entry: entry.id))


class HeaderCollection:
    """Immutable, id-sorted sequence of header rows."""

    def __init__(self, entries=(), *, id_factory: Optional[IdFactory] = None) -> None:
        self._entries: Tuple[HeaderEntry, ...] = _sorted(entries)
        self._id_factory: IdFactory = id_factory or generate_unique_id

    @classmethod
    def from_map(
        cls,
        headers: Optional[Mapping[str, str]],
        *,
        id_factory: Optional[IdFactory] = None,
    ) -> "HeaderCollection":
        factory = id_factory or generate_unique_id
        entries = [
            HeaderEntry(id=factory(), key=key, value=value)
            for key, value in (headers or {}).items()
        ]
        return cls(entries, id_factory=factory)

    @property
    def entries(self) -> Tuple[HeaderEntry, ...]:
        return self._entries

    def __iter__(self) -> Iterator[HeaderEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HeaderCollection):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"HeaderCollection({list(self._entries)!r})"

    def get(self, entry_id: str) -> Optional[HeaderEntry]:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    def _with(self, entries) -> "HeaderCollection":
        return HeaderCollection(entries, id_factory=self._id_factory)

    def add_blank_row(self) -> "HeaderCollection":
        """Append an empty row unless an incomplete row already exists."""
        if any(entry.is_blank or entry.has_empty_key for entry in self._entries):
            return self
        return self._with(self._entries + (HeaderEntry(id=self._id_factory()),))

    def update(self, entry: HeaderEntry) -> "HeaderCollection":
        """Replace the row with ``entry.id``; an unknown id leaves the collection unchanged."""
        if self.get(entry.id) is None:
            return self
        remaining = [item for item in self._entries if item.id != entry.id]
        remaining.append(entry)
        return self._with(remaining)

    def remove(self, entry_id: str) -> "HeaderCollection":
        return self._with(item for item in self._entries if item.id != entry_id)

    def to_map(self) -> Dict[str, str]:
        """Project rows to a mapping of trimmed keys, skipping rows without a key."""
        headers: Dict[str, str] = {}
        for entry in self._entries:
            key = entry.key.strip()
            if not key:
                continue
            headers[key] = entry.value
        return headers
