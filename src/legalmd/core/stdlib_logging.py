from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

PACKAGE_LOGGER = "legalmd"

_INSTALLED_HANDLER: logging.Handler | None = None


def _level_from_name(name: str) -> int:
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else logging.INFO


def configure_stdlib_logging(level: str = "WARNING", *, log_path: Optional[Path] = None) -> None:
    """Attach a handler to the ``legalmd`` logger.

    Writes to ``log_path`` when given, otherwise to stderr. Calling again
    replaces the previously installed handler.
    """
    global _INSTALLED_HANDLER

    pkg_logger = logging.getLogger(PACKAGE_LOGGER)
    pkg_logger.setLevel(_level_from_name(level))

    if _INSTALLED_HANDLER is not None:
        pkg_logger.removeHandler(_INSTALLED_HANDLER)
        _INSTALLED_HANDLER.close()
        _INSTALLED_HANDLER = None

    handler: logging.Handler
    if log_path is not None:
        Path(log_path).parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(str(log_path), encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(_level_from_name(level))
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    pkg_logger.addHandler(handler)
    _INSTALLED_HANDLER = handler


def reset_stdlib_logging_for_tests() -> None:
    """Test-only: remove the installed handler and reset the level."""
    global _INSTALLED_HANDLER
    pkg_logger = logging.getLogger(PACKAGE_LOGGER)
    if _INSTALLED_HANDLER is not None:
        pkg_logger.removeHandler(_INSTALLED_HANDLER)
        _INSTALLED_HANDLER.close()
        _INSTALLED_HANDLER = None
    pkg_logger.setLevel(logging.NOTSET)


__all__ = ["configure_stdlib_logging", "reset_stdlib_logging_for_tests"]
