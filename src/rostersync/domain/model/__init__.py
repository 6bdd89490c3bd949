"""Public domain model surface."""

from __future__ import annotations

from rostersync.domain.model.enums import ProfileStatus, RoleAction, RoleKind
from rostersync.domain.model.records import PROFILE_FIELDS, Identity, Profile, Team, new_key

__all__ = [
    "PROFILE_FIELDS",
    "Identity",
    "Profile",
    "ProfileStatus",
    "RoleAction",
    "RoleKind",
    "Team",
    "new_key",
]
