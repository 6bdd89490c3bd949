"""Persistent records mirrored by the stores.

Records reference each other only through opaque keys. Resolving a key always
goes back through a store lookup, and a lookup is allowed to come back empty.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from rostersync.domain.model.enums import ProfileStatus

if TYPE_CHECKING:
    from datetime import datetime


def new_key() -> UUID:
    return uuid4()


@dataclass(frozen=True, kw_only=True)
class Identity:
    """A verified guild member as last seen by the bot."""

    key: UUID = field(default_factory=new_key)
    external_id: str
    display_name: str
    joined_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True, kw_only=True)
class Profile:
    """A league participant.

    ``identity_ref`` is a back-reference to the Identity row for the same
    ``external_id``. The Identity may disappear (member left the guild) while
    the Profile keeps its history.
    """

    key: UUID = field(default_factory=new_key)
    external_id: str
    display_name: str
    identity_ref: UUID | None = None
    team_ref: UUID | None = None
    status: ProfileStatus = ProfileStatus.AVAILABLE
    cooldown_ends: datetime | None = None
    join_date: datetime | None = None
    release_date: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def has_team(self) -> bool:
        return self.team_ref is not None


@dataclass(frozen=True, kw_only=True)
class Team:
    key: UUID = field(default_factory=new_key)
    name: str
    captain_ref: UUID
    vice_captain_ref: UUID
    roster: frozenset[UUID] = field(default_factory=frozenset[UUID])
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def leadership_in_roster(self) -> bool:
        """Whether captain and vice captain are both on the roster (not enforced)."""

        return self.captain_ref in self.roster and self.vice_captain_ref in self.roster


PROFILE_FIELDS: frozenset[str] = frozenset(
    {
        "display_name",
        "identity_ref",
        "team_ref",
        "status",
        "cooldown_ends",
        "join_date",
        "release_date",
    }
)
