"""Repository for the introduction shown before the first play-through."""
from __future__ import annotations

from pathlib import Path

from ruang_hampa.data import paths
from ruang_hampa.data.json_loader import load_text


class IntroRepository:
    """Loads the introduction text once and caches it."""

    def __init__(self, base_path: Path | str | None = None) -> None:
        self._base_path = Path(base_path) if base_path is not None else None
        self._text: str | None = None

    def get_text(self) -> str:
        if self._text is None:
            path = paths.get_definitions_path(self._base_path) / "intro.txt"
            self._text = load_text(path).strip()
        return self._text
