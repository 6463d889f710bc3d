"""Repository exports."""

from .images_repo import ImageAssetsRepository
from .intro_repo import IntroRepository
from .story_repo import StoryRepository

__all__ = [
    "ImageAssetsRepository",
    "IntroRepository",
    "StoryRepository",
]
