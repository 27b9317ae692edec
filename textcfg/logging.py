"""
Logging for the textcfg settings engine.

Every module logs through ``get_logger(__name__)`` so output lands under the
``textcfg`` logger. ``setup_logging`` attaches console and file handlers to
that logger; ``configure_logging`` does the same from an ``EngineConfig``.
"""

from __future__ import annotations

import logging
from pathlib import Path
import sys
from typing import IO, TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from textcfg.config.models import EngineConfig

ROOT_LOGGER_NAME = "textcfg"


class Colors:
    """ANSI escape codes used by ColoredFormatter."""
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"
    BG_RED = "\033[41m"


class ColoredFormatter(logging.Formatter):
    """Formatter that tints the level name per severity."""

    LEVEL_COLORS = {
        logging.DEBUG: Colors.DIM + Colors.CYAN,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.BG_RED + Colors.WHITE,
    }

    def __init__(self, fmt: Optional[str] = None, datefmt: Optional[str] = None, use_colors: bool = True):
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        if self.use_colors and record.levelno in self.LEVEL_COLORS:
            # Copy so other handlers see the plain level name
            record = logging.makeLogRecord(record.__dict__)
            record.levelname = f"{self.LEVEL_COLORS[record.levelno]}{record.levelname}{Colors.RESET}"
        return super().format(record)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    *,
    stream: Optional[IO[str]] = None,
) -> logging.Logger:
    """
    Attach handlers to the ``textcfg`` logger, replacing any set up earlier.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL. Unknown names fall
            back to INFO.
        log_file: Optional file that receives uncolored records. Missing
            parent directories are created.
        stream: Console stream, stdout by default.

    Returns:
        The configured ``textcfg`` logger.
    """
    numeric_level = getattr(logging, str(level).upper(), logging.INFO)

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(numeric_level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(stream or sys.stdout)
    console_handler.setLevel(numeric_level)
    if numeric_level <= logging.DEBUG:
        console_handler.setFormatter(
            ColoredFormatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s", datefmt="%H:%M:%S")
        )
    else:
        console_handler.setFormatter(ColoredFormatter("[%(levelname)s] %(message)s"))
    root_logger.addHandler(console_handler)

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(
            ColoredFormatter(
                "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d - %(message)s",
                use_colors=False,
            )
        )
        root_logger.addHandler(file_handler)

    logging.getLogger("asyncio").setLevel(logging.WARNING)
    return root_logger


def configure_logging(config: "EngineConfig", *, stream: Optional[IO[str]] = None) -> logging.Logger:
    """Set up logging from the level and log file of an engine config."""
    return setup_logging(level=config.log_level, log_file=config.log_file, stream=stream)


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the ``textcfg`` namespace (pass ``__name__``)."""
    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def format_exception_summary(error: BaseException, *, max_length: int = 180) -> str:
    """
    One-line ``"ExceptionName: detail"`` summary, trimmed to ``max_length``.
    """
    exception_name = error.__class__.__name__
    detail = " ".join(str(error or "").split())
    summary = exception_name if not detail else f"{exception_name}: {detail}"
    if max_length > 3 and len(summary) > max_length:
        return summary[: max_length - 3].rstrip() + "..."
    return summary
