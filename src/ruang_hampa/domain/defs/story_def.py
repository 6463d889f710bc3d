"""Story definition structures used by the runtime."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from ruang_hampa.core.types import Character


@dataclass(frozen=True, slots=True)
class KeepsakeDef:
    """A collectible granted when a node is reached."""

    name: str
    description: str


@dataclass(frozen=True, slots=True)
class InteractableObjectDef:
    """Something in the scene the player can look at."""

    name: str
    description: str


@dataclass(frozen=True, slots=True)
class RelationshipChangeDef:
    character: Character
    change: int


@dataclass(frozen=True, slots=True)
class StoryChoiceDef:
    """Represents a selectable choice on a story node."""

    text: str
    next_node_id: str
    mental_energy_change: int | None = None
    relationship_change: RelationshipChangeDef | None = None


@dataclass(frozen=True, slots=True)
class StoryNodeDef:
    """Fully parsed story node."""

    id: str
    story: str
    location: str
    image: str | None = None
    mental_energy: int | None = None
    interactable_objects: Tuple[InteractableObjectDef, ...] = ()
    choices: Tuple[StoryChoiceDef, ...] = ()
    new_keepsake: KeepsakeDef | None = None

    @property
    def paragraphs(self) -> List[str]:
        """Prose split on line breaks with blank lines dropped."""
        return [line.strip() for line in self.story.split("\n") if line.strip()]

    @property
    def is_terminal(self) -> bool:
        """A node is an ending iff it offers no choices."""
        return not self.choices
