"""
Logging helpers for stepbar.

Library modules only ever call `get_logger(__name__)`; they never configure
handlers. A host application (or `stepbar.gui.app`) calls `setup_logging()`
once at startup.

Runner lifecycle goes to INFO, watchdog and preemption internals to DEBUG.
Task threads are named "stepbar-task[-<id>]" and the watchdog
"stepbar-watchdog", so the file format includes the thread name.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Optional, Union

from platformdirs import user_log_dir

_APP_NAME = "stepbar"
_LOG_FILENAME = "stepbar.log"
_LOG_LEVEL_ENV = "STEPBAR_LOG_LEVEL"

_CONSOLE_FMT = "[%(levelname)s] %(name)s:%(funcName)s:%(lineno)d: %(message)s"
_FILE_FMT = "%(asctime)s [%(levelname)s] %(threadName)s %(name)s:%(funcName)s:%(lineno)d: %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"

_LOG_FILE_PATH: Optional[Path] = None


def default_log_file() -> Path:
    """Per-user log file, e.g. ~/.local/state/stepbar/log/stepbar.log on Linux."""
    return Path(user_log_dir(_APP_NAME)) / _LOG_FILENAME


def _resolve_level(level: Union[str, int, None]) -> int:
    if level is None:
        level = os.getenv(_LOG_LEVEL_ENV) or "INFO"
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(
    level: Union[str, int, None] = None,
    log_file: Union[Path, str, bool, None] = None,
    max_bytes: int = 2_000_000,
    backup_count: int = 3,
) -> Optional[Path]:
    """Configure the root logger with a console handler and, optionally, a log file.

    Replaces handlers installed by a previous call, so it can be called again
    to change the level or the file.

    Args:
        level: Console level. None reads STEPBAR_LOG_LEVEL, falling back to INFO.
        log_file: Path of the rotating log file; None uses `default_log_file()`,
            False disables file logging.
        max_bytes: Rotate the file at this size.
        backup_count: Rotated files to keep.

    Returns:
        The log file path, or None when file logging is disabled.
    """
    global _LOG_FILE_PATH
    console_level = _resolve_level(level)

    root = logging.getLogger()
    for handler in root.handlers[:]:
        handler.close()
        root.removeHandler(handler)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(fmt=_CONSOLE_FMT))
    root.addHandler(console)

    if log_file is False:
        root.setLevel(console_level)
        _LOG_FILE_PATH = None
        return None

    log_path = default_log_file() if log_file is None or log_file is True else Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.handlers.RotatingFileHandler(
        filename=log_path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    # file keeps DEBUG detail regardless of the console level
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(fmt=_FILE_FMT, datefmt=_DATEFMT))
    root.addHandler(file_handler)
    root.setLevel(logging.DEBUG)

    _LOG_FILE_PATH = log_path
    return log_path


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger for `name`, or the package logger "stepbar"."""
    return logging.getLogger(name or _APP_NAME)


def get_log_file_path() -> Optional[Path]:
    """Path configured by the last `setup_logging()` call, if it logs to a file."""
    return _LOG_FILE_PATH
