"""Shared type aliases for the core and domain layers."""
from typing import Literal

Character = Literal["Bapak", "Ibu", "Surya"]
RelationshipKey = Literal["bapak", "ibu", "surya"]
NotificationKind = Literal["success", "error"]
SessionPhase = Literal["not_started", "intro", "playing", "ending"]

CHARACTERS: tuple[Character, ...] = ("Bapak", "Ibu", "Surya")

__all__ = ["CHARACTERS", "Character", "NotificationKind", "RelationshipKey", "SessionPhase"]
