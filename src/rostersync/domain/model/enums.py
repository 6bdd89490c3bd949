"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class ProfileStatus(StrEnum):
    AVAILABLE = "available"
    SIGNED = "signed"
    COOLDOWN = "cooldown"


class RoleKind(StrEnum):
    """League roles projected onto the guild, in grant order."""

    PLAYER = "player"
    CAPTAIN = "captain"
    VICE_CAPTAIN = "vice_captain"


class RoleAction(StrEnum):
    ADD = "add"
    REMOVE = "remove"
