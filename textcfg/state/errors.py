"""
Error taxonomy for the settings engine and message normalization.
"""

from __future__ import annotations

from typing import Any, Optional

UNKNOWN_ERROR = "Unknown error"


class SettingsError(Exception):
    """Base class for settings engine errors."""


class ValidationError(SettingsError):
    """A candidate value failed local validation; nothing was dispatched."""

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class InvariantViolation(SettingsError):
    """The requested action would break a documented invariant."""


class OperationInProgressError(InvariantViolation):
    """Another orchestrated operation is still in flight."""


class RemoteOperationError(SettingsError):
    """The backing store rejected an operation."""

    def __init__(self, message: str, *, kind: str = "remote") -> None:
        super().__init__(message)
        self.kind = kind


def format_backend_error(message: str) -> str:
    """
    Flatten colon-wrapped backend messages.

    ``"Op: inner: cause"`` becomes ``"Op. inner. cause"``.
    """
    if ":" in message:
        parts = [part.strip() for part in message.split(":")]
        parts = [part for part in parts if part]
        if len(parts) > 1:
            return ". ".join(parts)
    return message


def normalize_error_message(error: Any) -> str:
    """
    Turn any rejection value into a single human-readable line.

    Accepts exceptions, ``Err`` results, strings, mappings with a
    ``message`` key, and ``None``.
    """
    if error is None:
        return UNKNOWN_ERROR

    if isinstance(error, BaseException):
        message = str(error).strip()
        if not message:
            return error.__class__.__name__
    elif isinstance(error, str):
        message = error
    elif isinstance(error, dict):
        message = str(error.get("message") or error)
    elif hasattr(error, "message"):
        message = str(getattr(error, "message") or "")
    else:
        message = str(error)

    message = " ".join(message.split())
    if not message:
        return UNKNOWN_ERROR
    return format_backend_error(message)
