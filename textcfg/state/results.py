"""Explicit result values returned by backing-store calls."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")

ERR_NOT_FOUND = "not_found"
ERR_CONFLICT = "conflict"
ERR_INVALID = "invalid"
ERR_FORBIDDEN = "forbidden"
ERR_UNAVAILABLE = "unavailable"
ERR_INTERNAL = "internal"


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful call carrying its value."""

    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    """Failed call carrying an error kind and a message."""

    kind: str
    message: str

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok[Any], Err]
