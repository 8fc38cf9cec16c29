"""Logging for Kanto: Rich console output plus an optional log file.

Every module logger lives under the ``kanto`` logger and propagates to it,
so the console handler, the file handler and the level are set in one place.
"""
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

console = Console()

ROOT_LOGGER = "kanto"
LOG_DIR = Path("/var/log/kanto")
LOG_FILE = LOG_DIR / "kanto.log"
FALLBACK_LOG_FILE = Path("/tmp/kanto.log")

_file_handler: Optional[logging.FileHandler] = None


def _root_logger() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)
    if not any(isinstance(h, RichHandler) for h in root.handlers):
        handler = RichHandler(console=console, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(handler)
        root.setLevel(logging.INFO)
    return root


def _open_log_file(target: Path) -> logging.FileHandler:
    target.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(target)


def setup_file_logging(log_file: Optional[str] = None, verbose: bool = False) -> Path:
    """Send Kanto logs to a file as well as the console.

    Args:
        log_file: Path to log file (defaults to /var/log/kanto/kanto.log)
        verbose: Log at DEBUG level instead of INFO

    Returns:
        The file actually written to. Falls back to /tmp/kanto.log when the
        default location is not writable. Calling again replaces the
        previous file handler.
    """
    global _file_handler

    root = _root_logger()
    target = Path(log_file) if log_file else LOG_FILE

    try:
        handler = _open_log_file(target)
    except PermissionError:
        if log_file:
            raise
        target = FALLBACK_LOG_FILE
        handler = _open_log_file(target)

    handler.setFormatter(logging.Formatter(
        "%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))

    if _file_handler is not None:
        root.removeHandler(_file_handler)
        _file_handler.close()
    _file_handler = handler
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)

    root.info(f"Kanto logging initialized: {target}")
    return target


def get_logger(name: str) -> logging.Logger:
    """Return the logger for ``name`` (typically ``__name__``).

    Module loggers carry no handlers or level of their own; output and
    verbosity come from the ``kanto`` logger.
    """
    _root_logger()
    return logging.getLogger(name)
