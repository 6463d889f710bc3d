"""Repository for image asset keys."""
from __future__ import annotations

from typing import Dict

from ruang_hampa.data.repositories.base import RepositoryBase


class ImageAssetsRepository(RepositoryBase[str]):
    """Maps image keys used by story nodes to art file names."""

    def __init__(self, base_path=None) -> None:
        super().__init__("images.json", base_path)

    def _build(self, raw: dict[str, object]) -> Dict[str, str]:
        return {
            key: self._require_str(value, f"image '{key}'")
            for key, value in raw.items()
        }

    def keys(self) -> list[str]:
        self._ensure_loaded()
        assert self._definitions is not None
        return sorted(self._definitions)
