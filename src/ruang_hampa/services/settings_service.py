"""Persistence for user preferences kept apart from story progress."""
from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass

from ruang_hampa.data.errors import StorageError
from ruang_hampa.data.storage import KeyValueStore
from ruang_hampa.domain.state import DEFAULT_TYPING_SPEED, MAX_TYPING_SPEED, MIN_TYPING_SPEED, clamp

SETTINGS_KEY = "ruang-hampa-settings"

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Settings:
    """Typing speed is the per-character delay in ms; higher is slower."""

    typing_speed: int = DEFAULT_TYPING_SPEED


def _normalize_typing_speed(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_TYPING_SPEED
    if isinstance(value, float) and not math.isfinite(value):
        return DEFAULT_TYPING_SPEED
    return clamp(int(value), MIN_TYPING_SPEED, MAX_TYPING_SPEED)


class SettingsService:
    """Loads and saves the ``{"typingSpeed": n}`` settings record."""

    def __init__(self, store: KeyValueStore, key: str = SETTINGS_KEY) -> None:
        self._store = store
        self._key = key

    def load(self) -> Settings:
        """Return stored settings or defaults when absent or unreadable."""
        raw_text = self._store.read(self._key)
        if raw_text is None:
            return Settings()
        try:
            raw = json.loads(raw_text)
        except (ValueError, RecursionError) as exc:
            logger.warning("Ignoring corrupt settings record: %s", exc)
            return Settings()
        if not isinstance(raw, dict):
            logger.warning("Ignoring settings record that is not an object.")
            return Settings()
        return Settings(typing_speed=_normalize_typing_speed(raw.get("typingSpeed")))

    def save(self, settings: Settings) -> bool:
        payload = {"typingSpeed": _normalize_typing_speed(settings.typing_speed)}
        try:
            self._store.write(self._key, json.dumps(payload, indent=2, sort_keys=True))
        except StorageError as exc:
            logger.warning("Failed to save settings: %s", exc)
            return False
        return True
