"""Domain-level progression state tracking."""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import List

from ruang_hampa.core.types import Character, RelationshipKey

START_NODE_ID = "START"

MIN_STAT = 0
MAX_STAT = 100
MIN_TYPING_SPEED = 1
MAX_TYPING_SPEED = 100

DEFAULT_MENTAL_ENERGY = 50
DEFAULT_RELATIONSHIP = 50
DEFAULT_TYPING_SPEED = 30


def clamp(value: int, low: int, high: int) -> int:
    """Return value limited to the inclusive range [low, high]."""
    return max(low, min(high, value))


def relationship_key(character: Character) -> RelationshipKey:
    key = character.lower()
    if key not in ("bapak", "ibu", "surya"):
        raise ValueError(f"Unknown relationship character: {character}")
    return key  # type: ignore[return-value]


@dataclass
class Relationships:
    """Affinity toward the three family members, each within [0, 100]."""

    bapak: int = DEFAULT_RELATIONSHIP
    ibu: int = DEFAULT_RELATIONSHIP
    surya: int = DEFAULT_RELATIONSHIP

    def get(self, character: Character) -> int:
        return getattr(self, relationship_key(character))

    def adjust(self, character: Character, delta: int) -> tuple[int, int]:
        """Apply a clamped delta and return (old, new)."""
        key = relationship_key(character)
        old_value = getattr(self, key)
        new_value = clamp(old_value + delta, MIN_STAT, MAX_STAT)
        setattr(self, key, new_value)
        return old_value, new_value


@dataclass(frozen=True)
class Keepsake:
    name: str
    description: str


@dataclass(frozen=True)
class LogbookEntry:
    """One made choice, recorded at the node it was made from."""

    node_id: str
    choice: str
    timestamp: str


@dataclass
class ProgressionState:
    """Everything that is persisted about a play-through."""

    current_node_id: str = START_NODE_ID
    mental_energy: int = DEFAULT_MENTAL_ENERGY
    relationships: Relationships = field(default_factory=Relationships)
    keepsakes: List[Keepsake] = field(default_factory=list)
    logbook: List[LogbookEntry] = field(default_factory=list)
    typing_speed: int = DEFAULT_TYPING_SPEED
    has_seen_intro: bool = False

    def copy(self) -> "ProgressionState":
        return copy.deepcopy(self)

    def adjust_mental_energy(self, delta: int) -> tuple[int, int]:
        old_value = self.mental_energy
        self.mental_energy = clamp(old_value + delta, MIN_STAT, MAX_STAT)
        return old_value, self.mental_energy

    def set_mental_energy(self, value: int) -> None:
        self.mental_energy = clamp(value, MIN_STAT, MAX_STAT)

    def has_keepsake(self, name: str) -> bool:
        return any(keepsake.name == name for keepsake in self.keepsakes)

    def add_keepsake(self, keepsake: Keepsake) -> bool:
        """Insert keyed by name; return False when already collected."""
        if self.has_keepsake(keepsake.name):
            return False
        self.keepsakes.append(keepsake)
        return True

    def append_log(self, entry: LogbookEntry) -> None:
        self.logbook.append(entry)


def create_default_state(typing_speed: int = DEFAULT_TYPING_SPEED) -> ProgressionState:
    """Return a fresh state positioned at the start node."""
    return ProgressionState(
        current_node_id=START_NODE_ID,
        mental_energy=DEFAULT_MENTAL_ENERGY,
        relationships=Relationships(),
        keepsakes=[],
        logbook=[],
        typing_speed=clamp(typing_speed, MIN_TYPING_SPEED, MAX_TYPING_SPEED),
        has_seen_intro=False,
    )
