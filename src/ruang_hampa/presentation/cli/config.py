"""CLI configuration helpers for storage locations and logging."""
from __future__ import annotations

import logging
import os
from pathlib import Path

_HOME_ENV = "RUANG_HAMPA_HOME"
_DEBUG_ENV = "RUANG_HAMPA_DEBUG"
_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def debug_enabled() -> bool:
    """Return True only when RUANG_HAMPA_DEBUG is explicitly set to '1'."""
    return os.getenv(_DEBUG_ENV) == "1"


def get_user_data_dir() -> Path:
    """Return the per-user data directory."""
    override = os.environ.get(_HOME_ENV)
    if override:
        return Path(override)
    if os.name == "nt":
        base = os.environ.get("APPDATA")
        if base:
            return Path(base) / "RuangHampa"
        return Path.home() / "RuangHampa"
    return Path.home() / ".config" / "ruang_hampa"


def get_save_dir() -> Path:
    """Return the directory holding the progression and settings records."""
    return get_user_data_dir() / "saves"


def get_log_path() -> Path:
    return get_user_data_dir() / "ruang_hampa.log"


def configure_logging(log_path: Path | None = None) -> None:
    """Send engine logs to a file so they do not interleave with the story.

    Debug mode also echoes warnings to stderr.
    """
    level = logging.DEBUG if debug_enabled() else logging.INFO
    path = log_path or get_log_path()
    handlers: list[logging.Handler] = []
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))
    except OSError:
        handlers.append(logging.NullHandler())
    if debug_enabled():
        stream = logging.StreamHandler()
        stream.setLevel(logging.WARNING)
        handlers.append(stream)
    logging.basicConfig(level=level, format=_LOG_FORMAT, handlers=handlers, force=True)
