"""Capability port for the external group-membership authority."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from rostersync.domain.model import RoleKind


@dataclass(frozen=True, slots=True)
class MemberSnapshot:
    """Membership state of one person as reported by the authority."""

    external_id: str
    display_name: str
    joined_at: datetime | None = None
    role_ids: frozenset[str] = field(default_factory=frozenset[str])


@runtime_checkable
class ExternalAuthority(Protocol):
    """What the core may ask of the authority.

    Granting an already-held role and revoking an absent one are no-ops on the
    authority's side. Failures raise ``ExternalAuthorityError``.
    """

    def fetch_membership(self, external_id: str) -> MemberSnapshot | None: ...

    def list_verified_members(self) -> Sequence[MemberSnapshot]: ...

    def grant_role(self, external_id: str, kind: RoleKind) -> None: ...

    def revoke_role(self, external_id: str, kind: RoleKind) -> None: ...
