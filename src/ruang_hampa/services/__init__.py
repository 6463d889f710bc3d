"""Service layer exports."""

from .errors import SaveLoadError
from .story_service import (
    ChoiceResult,
    KeepsakeDiscoveredEvent,
    LoadFailedEvent,
    LoadSucceededEvent,
    ObjectInspectedEvent,
    SaveFailedEvent,
    SaveSucceededEvent,
    StoryEngine,
    StoryEvent,
    StoryNodeView,
)

__all__ = [
    "SaveLoadError",
    "ChoiceResult",
    "KeepsakeDiscoveredEvent",
    "LoadFailedEvent",
    "LoadSucceededEvent",
    "ObjectInspectedEvent",
    "SaveFailedEvent",
    "SaveSucceededEvent",
    "StoryEngine",
    "StoryEvent",
    "StoryNodeView",
]
