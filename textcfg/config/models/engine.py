"""
Engine runtime options.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .constants import CONCURRENCY_POLICIES, CONCURRENCY_REJECT, DEFAULT_INPUT_LANGUAGE


@dataclass
class EngineConfig:
    """
    Options controlling the settings engine itself (not the edited settings).
    """

    concurrency_policy: str = CONCURRENCY_REJECT
    """How a dispatch is handled while another operation is in flight: 'reject' or 'queue'."""

    log_level: str = "INFO"
    """Level passed to ``setup_logging``."""

    log_file: Optional[Path] = None
    """Optional log file path."""

    default_language: str = DEFAULT_INPUT_LANGUAGE
    """Language selected when a settings document has no default input language."""

    settings_file: Optional[Path] = None
    """Optional settings document used to seed an in-memory backing store."""

    def __post_init__(self) -> None:
        self.concurrency_policy = (self.concurrency_policy or CONCURRENCY_REJECT).strip().lower()
        self.log_level = (self.log_level or "INFO").strip().upper()
        if self.log_file is not None:
            self.log_file = Path(self.log_file)
        if self.settings_file is not None:
            self.settings_file = Path(self.settings_file)

    def validate(self) -> None:
        if self.concurrency_policy not in CONCURRENCY_POLICIES:
            raise ValueError(
                f"concurrency_policy must be one of {list(CONCURRENCY_POLICIES)}, "
                f"got '{self.concurrency_policy}'"
            )
        if self.log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level '{self.log_level}'")
        if not self.default_language.strip():
            raise ValueError("default_language cannot be empty")
