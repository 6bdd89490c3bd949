"""Domain port definitions for adapters."""

from __future__ import annotations

from .authority import ExternalAuthority, MemberSnapshot
from .persistence import IdentityStore, ProfileStore, TeamStore
from .unit_of_work import StoreRepositories, StoreUnitOfWork, UnitOfWorkFactory

__all__ = [
    "ExternalAuthority",
    "IdentityStore",
    "MemberSnapshot",
    "ProfileStore",
    "StoreRepositories",
    "StoreUnitOfWork",
    "TeamStore",
    "UnitOfWorkFactory",
]
