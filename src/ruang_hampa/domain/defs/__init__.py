"""Domain definition exports."""

from .story_def import (
    InteractableObjectDef,
    KeepsakeDef,
    RelationshipChangeDef,
    StoryChoiceDef,
    StoryNodeDef,
)

__all__ = [
    "InteractableObjectDef",
    "KeepsakeDef",
    "RelationshipChangeDef",
    "StoryChoiceDef",
    "StoryNodeDef",
]
