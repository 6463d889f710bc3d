"""Story progression services."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List

from ruang_hampa.core.types import SessionPhase
from ruang_hampa.data.errors import StorageError
from ruang_hampa.data.repositories import IntroRepository, StoryRepository
from ruang_hampa.data.storage import KeyValueStore
from ruang_hampa.domain.defs import InteractableObjectDef, StoryChoiceDef, StoryNodeDef
from ruang_hampa.domain.state import (
    DEFAULT_TYPING_SPEED,
    MAX_TYPING_SPEED,
    MIN_TYPING_SPEED,
    START_NODE_ID,
    Keepsake,
    LogbookEntry,
    ProgressionState,
    Relationships,
    clamp,
    create_default_state,
)
from ruang_hampa.services.errors import SaveLoadError
from ruang_hampa.services.save_service import SAVE_KEY, SaveService
from ruang_hampa.services.settings_service import Settings, SettingsService

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


@dataclass(slots=True)
class StoryNodeView:
    """Data returned to the presentation layer for rendering."""

    node_id: str
    location: str
    paragraphs: List[str]
    image: str | None
    mental_energy: int
    objects: List[InteractableObjectDef]
    choices: List[StoryChoiceDef]
    is_ending: bool


@dataclass(slots=True)
class StoryEvent:
    """Base class for notifications raised by the engine."""


@dataclass(slots=True)
class KeepsakeDiscoveredEvent(StoryEvent):
    name: str
    description: str


@dataclass(slots=True)
class ObjectInspectedEvent(StoryEvent):
    name: str
    description: str


@dataclass(slots=True)
class SaveSucceededEvent(StoryEvent):
    pass


@dataclass(slots=True)
class SaveFailedEvent(StoryEvent):
    reason: str


@dataclass(slots=True)
class LoadSucceededEvent(StoryEvent):
    node_id: str


@dataclass(slots=True)
class LoadFailedEvent(StoryEvent):
    reason: str


@dataclass(slots=True)
class ChoiceResult:
    """Result returned after applying a choice."""

    events: List[StoryEvent] = field(default_factory=list)
    node_view: StoryNodeView | None = None


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a trailing Z."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def resolve_session_phase(started: bool, state: ProgressionState, node: StoryNodeDef) -> SessionPhase:
    """Derive where a play session stands without storing an 'ended' flag."""
    if not started:
        return "not_started"
    if not state.has_seen_intro:
        return "intro"
    if node.is_terminal:
        return "ending"
    return "playing"


class StoryEngine:
    """Application service that owns progression state and drives the story graph.

    The story graph is only ever read. Every public call runs to completion
    before the next; there is no internal concurrency.
    """

    def __init__(
        self,
        story_repo: StoryRepository,
        store: KeyValueStore,
        *,
        settings_service: SettingsService | None = None,
        intro_repo: IntroRepository | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._story_repo = story_repo
        self._store = store
        self._save_service = SaveService(story_repo=story_repo)
        self._settings_service = settings_service
        self._intro_repo = intro_repo or IntroRepository()
        self._clock = clock or _utc_now
        self._events: List[StoryEvent] = []
        self._preferred_typing_speed = DEFAULT_TYPING_SPEED
        if settings_service is not None:
            self._preferred_typing_speed = settings_service.load().typing_speed
        self._state = create_default_state(self._preferred_typing_speed)
        logger.debug("Story engine initialized at node %s", self._state.current_node_id)

    def get_state(self) -> ProgressionState:
        """Return a deep copy; mutating it never touches engine state."""
        return self._state.copy()

    def get_intro_text(self) -> str:
        return self._intro_repo.get_text()

    def get_keepsakes(self) -> List[Keepsake]:
        return list(self._state.keepsakes)

    def get_logbook(self) -> List[LogbookEntry]:
        return list(self._state.logbook)

    def get_relationships(self) -> Relationships:
        return self._state.copy().relationships

    def pop_events(self) -> List[StoryEvent]:
        """Return and clear notifications raised since the last call."""
        events, self._events = self._events, []
        return events

    def get_current_node(self) -> StoryNodeDef:
        return self._resolve(self._state.current_node_id)

    def get_current_node_view(self) -> StoryNodeView:
        node = self.get_current_node()
        return StoryNodeView(
            node_id=node.id,
            location=node.location,
            paragraphs=node.paragraphs,
            image=node.image,
            mental_energy=self._state.mental_energy,
            objects=list(node.interactable_objects),
            choices=list(node.choices),
            is_ending=node.is_terminal,
        )

    def is_ending(self) -> bool:
        return self.get_current_node().is_terminal

    def session_phase(self, started: bool) -> SessionPhase:
        return resolve_session_phase(started, self._state, self.get_current_node())

    def apply_choice(self, choice: StoryChoiceDef) -> ChoiceResult:
        """Apply the selected choice, advance the story and persist."""
        logger.debug("Player chose %r -> %s", choice.text, choice.next_node_id)
        state = self._state
        state.append_log(
            LogbookEntry(
                node_id=state.current_node_id,
                choice=choice.text,
                timestamp=format_timestamp(self._clock()),
            )
        )
        if choice.mental_energy_change is not None:
            old, new = state.adjust_mental_energy(choice.mental_energy_change)
            logger.debug("Mental energy %s -> %s (%+d)", old, new, choice.mental_energy_change)
        if choice.relationship_change is not None:
            change = choice.relationship_change
            old, new = state.relationships.adjust(change.character, change.change)
            logger.debug("Relationship %s %s -> %s (%+d)", change.character, old, new, change.change)

        node = self._resolve(choice.next_node_id)
        state.current_node_id = node.id
        if node.mental_energy is not None:
            state.set_mental_energy(node.mental_energy)
            logger.debug("Mental energy set to %s by node %s", state.mental_energy, node.id)
        if node.new_keepsake is not None:
            keepsake = Keepsake(name=node.new_keepsake.name, description=node.new_keepsake.description)
            if state.add_keepsake(keepsake):
                logger.info("New keepsake discovered: %s", keepsake.name)
                self._events.append(
                    KeepsakeDiscoveredEvent(name=keepsake.name, description=keepsake.description)
                )

        self._persist(report_success=False)
        return ChoiceResult(events=self.pop_events(), node_view=self.get_current_node_view())

    def interact_with_object(self, obj: InteractableObjectDef) -> ObjectInspectedEvent:
        """Looking at an object never changes progression state."""
        logger.debug("Interacting with %r: %s", obj.name, obj.description)
        return ObjectInspectedEvent(name=obj.name, description=obj.description)

    def set_typing_speed(self, speed: int) -> int:
        """Store the clamped speed in progression and settings, saving both."""
        value = clamp(int(speed), MIN_TYPING_SPEED, MAX_TYPING_SPEED)
        self._state.typing_speed = value
        self._preferred_typing_speed = value
        logger.debug("Typing speed set to %s", value)
        self._persist(report_success=False)
        if self._settings_service is not None and not self._settings_service.save(Settings(typing_speed=value)):
            self._events.append(SaveFailedEvent(reason="Settings could not be saved."))
        return value

    def mark_intro_as_seen(self) -> None:
        self._state.has_seen_intro = True

    def start_new_game(self) -> None:
        logger.info("Starting new game")
        self._state = create_default_state(self._preferred_typing_speed)
        self._persist(report_success=False)

    def reset_game(self) -> None:
        """Forget all progress; nothing is written back afterwards."""
        logger.info("Resetting game completely")
        try:
            self._store.delete(SAVE_KEY)
        except StorageError as exc:
            logger.warning("Failed to remove saved game: %s", exc)
            self._events.append(SaveFailedEvent(reason=str(exc)))
        self._state = create_default_state(self._preferred_typing_speed)

    def save_game(self) -> bool:
        return self._persist(report_success=True)

    def load_game(self) -> bool:
        """Adopt the saved record wholesale, or leave state untouched."""
        serialized = self._store.read(SAVE_KEY)
        if serialized is None:
            logger.info("No saved game found")
            self._events.append(LoadFailedEvent(reason="No saved game found."))
            return False
        try:
            loaded = self._save_service.deserialize(json.loads(serialized))
        except (ValueError, RecursionError, SaveLoadError) as exc:
            logger.warning("Discarding corrupt save: %s", exc)
            self._events.append(LoadFailedEvent(reason=f"Saved game is corrupt: {exc}"))
            return False
        self._state = loaded
        logger.info(
            "Game loaded: node=%s energy=%s", loaded.current_node_id, loaded.mental_energy
        )
        self._events.append(LoadSucceededEvent(node_id=loaded.current_node_id))
        return True

    def has_saved_game(self) -> bool:
        return self._store.exists(SAVE_KEY)

    def describe_state(self) -> str:
        state = self._state
        rel = state.relationships
        return (
            f"node={state.current_node_id} energy={state.mental_energy} "
            f"relationships=bapak:{rel.bapak},ibu:{rel.ibu},surya:{rel.surya} "
            f"keepsakes={len(state.keepsakes)} logbook={len(state.logbook)} "
            f"typing_speed={state.typing_speed} intro_seen={state.has_seen_intro}"
        )

    def _resolve(self, node_id: str) -> StoryNodeDef:
        try:
            return self._story_repo.get(node_id)
        except KeyError:
            logger.error("Story node not found: %s; falling back to %s", node_id, START_NODE_ID)
            return self._story_repo.get(START_NODE_ID)

    def _persist(self, *, report_success: bool) -> bool:
        payload = self._save_service.serialize(self._state)
        try:
            self._store.write(SAVE_KEY, json.dumps(payload, ensure_ascii=False))
        except (StorageError, OSError) as exc:
            logger.warning("Failed to save game: %s", exc)
            self._events.append(SaveFailedEvent(reason=str(exc)))
            return False
        logger.debug("Game saved")
        if report_success:
            self._events.append(SaveSucceededEvent())
        return True
