"""
Centralized logging configuration for the command-line tool.

Diagnostics go to stderr so they never interleave with the table output
written to stdout. No log files are written.
"""

import logging
import sys
import threading
from typing import Optional

from .config import load_settings

# Thread-safe lock for logging configuration
_config_lock = threading.Lock()
_PACKAGE_LOGGER_NAME = "portpilot"
_MODULE_LOGGER = logging.getLogger(__name__)


def _resolve_level(level: Optional[str]) -> int:
    name = (level or load_settings().log_level).upper()
    resolved = logging.getLevelName(name)
    if isinstance(resolved, int):
        return resolved
    _MODULE_LOGGER.debug("Unknown log level %r; falling back to WARNING", name)
    return logging.WARNING


def _build_console_handler(verbose: bool) -> logging.Handler:
    if verbose:
        formatter = logging.Formatter(
            "%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s",
            "%Y-%m-%d %H:%M:%S",
        )
    else:
        formatter = logging.Formatter("%(levelname)s: %(message)s")

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    return console_handler


def _close_handlers(logger: logging.Logger) -> None:
    """Close all handlers for a logger, logging any errors."""
    for handler in list(logger.handlers):
        try:
            handler.close()
        except OSError as e:  # Best-effort cleanup operation
            _MODULE_LOGGER.debug("Handler close failed for logger '%s': %s", logger.name, e)
        logger.removeHandler(handler)


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """Configure the package logger; repeated calls replace the previous handler."""

    with _config_lock:
        package_logger = logging.getLogger(_PACKAGE_LOGGER_NAME)
        resolved = _resolve_level(level)

        _close_handlers(package_logger)
        package_logger.addHandler(_build_console_handler(resolved <= logging.DEBUG))
        package_logger.setLevel(resolved)
        package_logger.propagate = False

        logging.getLogger("asyncio").setLevel(logging.WARNING)
        return package_logger


__all__ = ["setup_logging"]
