"""Ports for the three record stores.

All lookups are single-key. ``upsert`` and ``delete`` are idempotent: repeating
an upsert with identical fields only touches ``updated_at``, and deleting a
missing key returns ``False``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from datetime import datetime
    from uuid import UUID

    from rostersync.domain.model import Identity, Profile, Team


@runtime_checkable
class IdentityStore(Protocol):
    """Identity rows keyed by external id."""

    def upsert(
        self,
        external_id: str,
        *,
        display_name: str,
        joined_at: datetime | None = None,
    ) -> Identity: ...

    def rename(self, external_id: str, display_name: str) -> Identity | None: ...

    def get(self, external_id: str) -> Identity | None: ...

    def get_by_key(self, key: UUID) -> Identity | None: ...

    def delete(self, external_id: str) -> bool: ...

    def delete_by_key(self, key: UUID) -> bool: ...

    def list_all(self) -> Sequence[Identity]: ...


@runtime_checkable
class ProfileStore(Protocol):
    """Profile rows keyed by external id. Profiles are created out-of-band."""

    def upsert(self, external_id: str, **fields: object) -> Profile: ...

    def get(self, external_id: str) -> Profile | None: ...

    def get_by_key(self, key: UUID) -> Profile | None: ...

    def delete(self, external_id: str) -> bool: ...

    def list_all(self) -> Sequence[Profile]: ...


@runtime_checkable
class TeamStore(Protocol):
    """Team rows keyed by name. Read-only from the reconciler's point of view."""

    def upsert(
        self,
        name: str,
        *,
        captain_ref: UUID,
        vice_captain_ref: UUID,
        roster: Iterable[UUID] = (),
        is_active: bool = True,
    ) -> Team: ...

    def get(self, name: str) -> Team | None: ...

    def get_by_key(self, key: UUID) -> Team | None: ...

    def delete(self, name: str) -> bool: ...
