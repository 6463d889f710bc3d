"""Repository for story node definitions."""
from __future__ import annotations

from types import MappingProxyType
from typing import Dict, List, Mapping, Tuple

from ruang_hampa.core.types import CHARACTERS
from ruang_hampa.data.errors import DataValidationError
from ruang_hampa.data.repositories.base import RepositoryBase
from ruang_hampa.domain.defs import (
    InteractableObjectDef,
    KeepsakeDef,
    RelationshipChangeDef,
    StoryChoiceDef,
    StoryNodeDef,
)


class StoryRepository(RepositoryBase[StoryNodeDef]):
    """Loads story nodes and validates their structure."""

    def __init__(self, base_path=None) -> None:
        super().__init__("story.json", base_path)

    def as_mapping(self) -> Mapping[str, StoryNodeDef]:
        """Read-only view of every node keyed by id."""
        self._ensure_loaded()
        assert self._definitions is not None
        return MappingProxyType(self._definitions)

    def _build(self, raw: dict[str, object]) -> Dict[str, StoryNodeDef]:
        nodes: Dict[str, StoryNodeDef] = {}
        for node_id, node_payload in raw.items():
            context = f"story node '{node_id}'"
            node_data = self._require_mapping(node_payload, context)
            keepsake = None
            if node_data.get("newMemento") is not None:
                keepsake = self._parse_keepsake(node_data["newMemento"], f"{context} newMemento")
            nodes[node_id] = StoryNodeDef(
                id=node_id,
                story=self._require_str(node_data.get("story"), f"{context} story"),
                location=self._require_str(node_data.get("location"), f"{context} location"),
                image=self._require_optional_str(node_data.get("image"), f"{context} image"),
                mental_energy=self._require_optional_int(
                    node_data.get("mentalEnergy"), f"{context} mentalEnergy"
                ),
                interactable_objects=self._parse_objects(
                    node_data.get("interactableObjects"), f"{context} interactableObjects"
                ),
                choices=self._parse_choices(node_data.get("actions"), node_id),
                new_keepsake=keepsake,
            )
        return nodes

    def _parse_keepsake(self, raw: object, context: str) -> KeepsakeDef:
        data = self._require_mapping(raw, context)
        return KeepsakeDef(
            name=self._require_str(data.get("name"), f"{context} name"),
            description=self._require_str(data.get("description"), f"{context} description"),
        )

    def _parse_objects(self, raw_objects: object, context: str) -> Tuple[InteractableObjectDef, ...]:
        if raw_objects is None:
            return ()
        if not isinstance(raw_objects, list):
            raise DataValidationError(f"{context} must be a list if provided.")
        objects: List[InteractableObjectDef] = []
        for index, entry in enumerate(raw_objects):
            object_ctx = f"{context}[{index}]"
            data = self._require_mapping(entry, object_ctx)
            objects.append(
                InteractableObjectDef(
                    name=self._require_str(data.get("name"), f"{object_ctx} name"),
                    description=self._require_str(data.get("description"), f"{object_ctx} description"),
                )
            )
        return tuple(objects)

    def _parse_choices(self, raw_choices: object, node_id: str) -> Tuple[StoryChoiceDef, ...]:
        if raw_choices is None:
            return ()
        if not isinstance(raw_choices, list):
            raise DataValidationError(f"story node '{node_id}' actions must be a list if provided.")
        choices: List[StoryChoiceDef] = []
        for index, entry in enumerate(raw_choices):
            choice_ctx = f"story node '{node_id}' actions[{index}]"
            choice_mapping = self._require_mapping(entry, choice_ctx)
            relationship_change = None
            if choice_mapping.get("relationshipChange") is not None:
                relationship_change = self._parse_relationship_change(
                    choice_mapping["relationshipChange"], f"{choice_ctx} relationshipChange"
                )
            choices.append(
                StoryChoiceDef(
                    text=self._require_str(choice_mapping.get("text"), f"{choice_ctx} text"),
                    next_node_id=self._require_str(
                        choice_mapping.get("nextNodeId"), f"{choice_ctx} nextNodeId"
                    ),
                    mental_energy_change=self._require_optional_int(
                        choice_mapping.get("mentalEnergyChange"), f"{choice_ctx} mentalEnergyChange"
                    ),
                    relationship_change=relationship_change,
                )
            )
        return tuple(choices)

    def _parse_relationship_change(self, raw: object, context: str) -> RelationshipChangeDef:
        data = self._require_mapping(raw, context)
        character = self._require_str(data.get("character"), f"{context} character")
        if character not in CHARACTERS:
            raise DataValidationError(
                f"{context} character must be one of {', '.join(CHARACTERS)}."
            )
        change = self._require_optional_int(data.get("change"), f"{context} change")
        if change is None:
            raise DataValidationError(f"{context} change is required.")
        return RelationshipChangeDef(character=character, change=change)  # type: ignore[arg-type]

    @staticmethod
    def _require_optional_str(value: object, context: str) -> str | None:
        if value is None:
            return None
        if not isinstance(value, str):
            raise DataValidationError(f"{context} must be a string if provided.")
        return value
