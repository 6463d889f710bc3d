"""Serialization helpers for progression save/load."""
from __future__ import annotations

from typing import Any, Dict, List, Mapping

from ruang_hampa.data.repositories import StoryRepository
from ruang_hampa.domain.state import (
    MAX_STAT,
    MAX_TYPING_SPEED,
    MIN_STAT,
    MIN_TYPING_SPEED,
    Keepsake,
    LogbookEntry,
    ProgressionState,
    Relationships,
)
from ruang_hampa.services.errors import SaveLoadError

SAVE_KEY = "ruang-hampa-save"

SavePayload = Dict[str, Any]


class SaveService:
    """Converts progression state to/from a validated payload.

    Field names are stable across versions; a record written by an older build
    loads as long as its node key still resolves.
    """

    def __init__(self, *, story_repo: StoryRepository) -> None:
        self._story_repo = story_repo

    def serialize(self, state: ProgressionState) -> SavePayload:
        """Return a JSON-serializable payload for persistence."""
        return {
            "currentNodeId": state.current_node_id,
            "mentalEnergy": state.mental_energy,
            "relationships": {
                "bapak": state.relationships.bapak,
                "ibu": state.relationships.ibu,
                "surya": state.relationships.surya,
            },
            "mementos": [
                {"name": keepsake.name, "description": keepsake.description}
                for keepsake in state.keepsakes
            ],
            "logbookHistory": [
                {"nodeId": entry.node_id, "choice": entry.choice, "timestamp": entry.timestamp}
                for entry in state.logbook
            ],
            "typingSpeed": state.typing_speed,
            "hasSeenIntro": state.has_seen_intro,
        }

    def deserialize(self, payload: Mapping[str, Any]) -> ProgressionState:
        """Rehydrate a ProgressionState, rejecting anything malformed."""
        if not isinstance(payload, Mapping):
            raise SaveLoadError("Save data must be a JSON object.")
        # The node key is checked before anything else in the record is trusted.
        current_node_id = self._require_str(payload.get("currentNodeId"), "currentNodeId")
        if not self._story_repo.has(current_node_id):
            raise SaveLoadError(
                f"Save incompatible with current story: node '{current_node_id}' missing."
            )
        return ProgressionState(
            current_node_id=current_node_id,
            mental_energy=self._require_bounded_int(
                payload.get("mentalEnergy"), "mentalEnergy", MIN_STAT, MAX_STAT
            ),
            relationships=self._coerce_relationships(payload.get("relationships")),
            keepsakes=self._coerce_keepsakes(payload.get("mementos")),
            logbook=self._coerce_logbook(payload.get("logbookHistory")),
            typing_speed=self._require_bounded_int(
                payload.get("typingSpeed"), "typingSpeed", MIN_TYPING_SPEED, MAX_TYPING_SPEED
            ),
            has_seen_intro=self._require_bool(payload.get("hasSeenIntro"), "hasSeenIntro"),
        )

    def _coerce_relationships(self, value: Any) -> Relationships:
        if not isinstance(value, Mapping):
            raise SaveLoadError("relationships must be an object.")
        return Relationships(
            bapak=self._require_bounded_int(value.get("bapak"), "relationships.bapak", MIN_STAT, MAX_STAT),
            ibu=self._require_bounded_int(value.get("ibu"), "relationships.ibu", MIN_STAT, MAX_STAT),
            surya=self._require_bounded_int(value.get("surya"), "relationships.surya", MIN_STAT, MAX_STAT),
        )

    def _coerce_keepsakes(self, value: Any) -> List[Keepsake]:
        if not isinstance(value, list):
            raise SaveLoadError("mementos must be a list.")
        keepsakes: List[Keepsake] = []
        seen: set[str] = set()
        for index, entry in enumerate(value):
            context = f"mementos[{index}]"
            if not isinstance(entry, Mapping):
                raise SaveLoadError(f"{context} must be an object.")
            name = self._require_str(entry.get("name"), f"{context}.name")
            if name in seen:
                raise SaveLoadError(f"{context} duplicates memento '{name}'.")
            seen.add(name)
            keepsakes.append(
                Keepsake(name=name, description=self._require_str(entry.get("description"), f"{context}.description"))
            )
        return keepsakes

    def _coerce_logbook(self, value: Any) -> List[LogbookEntry]:
        if not isinstance(value, list):
            raise SaveLoadError("logbookHistory must be a list.")
        entries: List[LogbookEntry] = []
        for index, entry in enumerate(value):
            context = f"logbookHistory[{index}]"
            if not isinstance(entry, Mapping):
                raise SaveLoadError(f"{context} must be an object.")
            entries.append(
                LogbookEntry(
                    node_id=self._require_str(entry.get("nodeId"), f"{context}.nodeId"),
                    choice=self._require_str(entry.get("choice"), f"{context}.choice"),
                    timestamp=self._require_str(entry.get("timestamp"), f"{context}.timestamp"),
                )
            )
        return entries

    @staticmethod
    def _require_str(value: Any, context: str) -> str:
        if not isinstance(value, str) or not value:
            raise SaveLoadError(f"{context} must be a non-empty string.")
        return value

    @staticmethod
    def _require_bool(value: Any, context: str) -> bool:
        if not isinstance(value, bool):
            raise SaveLoadError(f"{context} must be a boolean.")
        return value

    @staticmethod
    def _require_bounded_int(value: Any, context: str, low: int, high: int) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise SaveLoadError(f"{context} must be an integer.")
        if not low <= value <= high:
            raise SaveLoadError(f"{context} must be between {low} and {high}.")
        return value
