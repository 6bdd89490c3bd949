"""Explicit role commands and the grant/revoke primitive they share with projection."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from rostersync.domain.errors import InvalidArgument
from rostersync.domain.model import RoleAction, RoleKind
from rostersync.domain.reconciliation.locks import KeyedLock

if TYPE_CHECKING:
    from rostersync.domain.ports.authority import ExternalAuthority

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RoleChangeResult:
    external_id: str
    kind: RoleKind
    action: RoleAction
    success: bool = True


def parse_role_kind(value: RoleKind | str) -> RoleKind:
    try:
        return RoleKind(value)
    except ValueError:
        options = ", ".join(f"'{kind.value}'" for kind in RoleKind)
        raise InvalidArgument(f"Invalid role {value!r}. Use one of {options}.") from None


def parse_role_action(value: RoleAction | str) -> RoleAction:
    try:
        return RoleAction(value)
    except ValueError:
        raise InvalidArgument("Invalid action. Use 'add' or 'remove'.") from None


def apply_role_change(
    authority: ExternalAuthority,
    external_id: str,
    kind: RoleKind,
    action: RoleAction,
) -> None:
    """Issue a single grant or revoke. Idempotent on the authority's side."""

    match action:
        case RoleAction.ADD:
            authority.grant_role(external_id, kind)
            log.info("Role %s added to %s", kind, external_id)
        case RoleAction.REMOVE:
            authority.revoke_role(external_id, kind)
            log.info("Role %s removed from %s", kind, external_id)


class RoleCommands:
    """Operator-facing role changes. Bypasses the reconciler."""

    def __init__(self, *, authority: ExternalAuthority, locks: KeyedLock | None = None) -> None:
        self._authority = authority
        self._locks = locks or KeyedLock()

    def assign_role(
        self,
        external_id: str,
        role_kind: RoleKind | str,
        action: RoleAction | str,
    ) -> RoleChangeResult:
        if not external_id or not external_id.strip():
            raise InvalidArgument("A member id is required.")
        kind = parse_role_kind(role_kind)
        parsed_action = parse_role_action(action)
        external_id = external_id.strip()

        with self._locks.hold(external_id):
            apply_role_change(self._authority, external_id, kind, parsed_action)
        return RoleChangeResult(external_id=external_id, kind=kind, action=parsed_action)
