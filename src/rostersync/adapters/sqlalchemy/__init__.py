"""SQLAlchemy adapter package for rostersync."""

from __future__ import annotations

from .mappings import (
    identity_table,
    metadata,
    profile_table,
    team_roster_table,
    team_table,
)
from .repositories import (
    SqlAlchemyIdentityStore,
    SqlAlchemyProfileStore,
    SqlAlchemyTeamStore,
    store_errors,
)

__all__ = [
    "SqlAlchemyIdentityStore",
    "SqlAlchemyProfileStore",
    "SqlAlchemyTeamStore",
    "identity_table",
    "metadata",
    "profile_table",
    "store_errors",
    "team_roster_table",
    "team_table",
]
