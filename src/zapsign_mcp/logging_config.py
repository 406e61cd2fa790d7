"""Process-wide logging setup.

All console output goes to stderr: stdout carries the stdio JSON-RPC stream.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 5

LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

_HANDLER_MARKER = "_zapsign_mcp_handler"


def resolve_level(level: Union[str, int]) -> int:
    if isinstance(level, int):
        return level
    return LEVELS.get(level.strip().lower(), logging.INFO)


def configure_logging(level: Union[str, int] = "info", log_dir: Optional[Union[str, Path]] = None) -> logging.Logger:
    """Configure the root logger.

    Safe to call more than once; handlers installed by a previous call are
    replaced rather than duplicated.

    Args:
        level: error/warn/info/debug or a logging level number
        log_dir: Directory for rotating ``error.log`` and ``combined.log``

    Returns:
        The root logger
    """
    root = logging.getLogger()
    root.setLevel(resolve_level(level))

    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            root.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    _install(root, console)

    if log_dir is not None:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)

        error_file = RotatingFileHandler(
            directory / "error.log", maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUP_COUNT, encoding="utf-8"
        )
        error_file.setLevel(logging.ERROR)
        error_file.setFormatter(formatter)
        _install(root, error_file)

        combined_file = RotatingFileHandler(
            directory / "combined.log", maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUP_COUNT, encoding="utf-8"
        )
        combined_file.setFormatter(formatter)
        _install(root, combined_file)

    # uvicorn's access log would otherwise go to its own stdout handler
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uv_logger = logging.getLogger(name)
        uv_logger.handlers.clear()
        uv_logger.propagate = True

    return root


def _install(root: logging.Logger, handler: logging.Handler) -> None:
    setattr(handler, _HANDLER_MARKER, True)
    root.addHandler(handler)
