"""Image asset lookup and asynchronous validation."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, List

from ruang_hampa.data import paths
from ruang_hampa.data.errors import DataLoadError
from ruang_hampa.data.json_loader import load_text
from ruang_hampa.data.repositories import ImageAssetsRepository

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ImageValidationFailedEvent:
    key: str


@dataclass(slots=True)
class ImageLoadResult:
    key: str | None
    art: str | None
    ok: bool


class AssetValidator:
    """Resolves image keys to art files and checks they can be read."""

    def __init__(
        self,
        images_repo: ImageAssetsRepository | None = None,
        art_path: Path | str | None = None,
    ) -> None:
        self._images_repo = images_repo or ImageAssetsRepository()
        self._art_dir = paths.get_art_path(art_path)

    def path_for(self, key: str) -> Path | None:
        try:
            filename = self._images_repo.get(key)
        except KeyError:
            return None
        return self._art_dir / filename

    async def validate(self, key: str) -> bool:
        art = await self.read(key)
        return art is not None

    async def read(self, key: str) -> str | None:
        """Return the art for ``key`` or None when it cannot be loaded."""
        path = self.path_for(key)
        if path is None:
            logger.warning("Image key %r not found in image assets", key)
            return None
        try:
            art = await asyncio.to_thread(load_text, path)
        except DataLoadError as exc:
            logger.error("Failed to load image %s: %s", key, exc)
            return None
        logger.debug("Loaded image %s (%s)", key, path)
        return art

    async def preload_all(self) -> int:
        """Validate every known key and return how many loaded."""
        keys = self._images_repo.keys()
        results = await asyncio.gather(*(self.validate(key) for key in keys))
        loaded = sum(1 for ok in results if ok)
        logger.info("Image preload complete: %s/%s images loaded", loaded, len(keys))
        return loaded


ArtReader = Callable[[str], Awaitable[str | None]]


class ImageLoader:
    """Loads the image for the current node, discarding stale requests.

    Each call to :meth:`load` gets a fresh request id; a result whose id is no
    longer the latest is dropped so a slow check cannot overwrite a newer
    selection.
    """

    def __init__(self, reader: ArtReader) -> None:
        self._reader = reader
        self._latest_request_id = 0
        self.current: ImageLoadResult | None = None
        self._events: List[ImageValidationFailedEvent] = []

    @property
    def latest_request_id(self) -> int:
        return self._latest_request_id

    def pop_events(self) -> List[ImageValidationFailedEvent]:
        events, self._events = self._events, []
        return events

    async def load(self, key: str | None) -> ImageLoadResult | None:
        self._latest_request_id += 1
        request_id = self._latest_request_id
        if not key:
            self.current = ImageLoadResult(key=None, art=None, ok=False)
            return self.current
        art = await self._reader(key)
        if request_id != self._latest_request_id:
            logger.debug("Discarding stale image result for %s (request %s)", key, request_id)
            return None
        if art is None:
            self._events.append(ImageValidationFailedEvent(key=key))
            self.current = ImageLoadResult(key=key, art=None, ok=False)
        else:
            self.current = ImageLoadResult(key=key, art=art, ok=True)
        return self.current
