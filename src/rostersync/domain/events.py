"""Inbound membership events.

The gateway adapter translates platform callbacks into these values so the
reconciler can be driven from a queue, a replay file or a test without a live
connection.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(frozen=True, slots=True)
class MembershipGranted:
    """A member gained verified membership (or was found verified at startup)."""

    external_id: str
    display_name: str
    joined_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class MembershipRevoked:
    external_id: str


@dataclass(frozen=True, slots=True)
class ProfileRenamed:
    external_id: str
    old_display_name: str
    new_display_name: str

    @property
    def changed(self) -> bool:
        return self.old_display_name != self.new_display_name


type MembershipEvent = MembershipGranted | MembershipRevoked | ProfileRenamed


def event_key(event: MembershipEvent) -> str:
    """Return the external id an event is serialised on."""

    return event.external_id
