"""Project team structure onto guild roles."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from rostersync.domain.errors import DanglingReference, ExternalAuthorityError
from rostersync.domain.model import RoleAction, RoleKind
from rostersync.domain.reconciliation.commands import apply_role_change

if TYPE_CHECKING:
    from rostersync.domain.model import Profile, Team
    from rostersync.domain.ports.authority import ExternalAuthority
    from rostersync.domain.ports.unit_of_work import UnitOfWorkFactory

log = getLogger(__name__)


class ProjectionStatus(StrEnum):
    NO_PROFILE = "no_profile"
    NO_TEAM = "no_team"
    DANGLING_TEAM = "dangling_team"
    PROJECTED = "projected"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass(slots=True)
class ProjectionResult:
    external_id: str
    status: ProjectionStatus
    granted: list[RoleKind] = field(default_factory=list["RoleKind"])
    failures: dict[RoleKind, ExternalAuthorityError] = field(
        default_factory=dict["RoleKind", "ExternalAuthorityError"]
    )
    dangling: DanglingReference | None = None

    @property
    def ok(self) -> bool:
        return not self.failures


def desired_roles(profile: Profile, team: Team) -> tuple[RoleKind, ...]:
    """Roles a rostered profile should hold, in grant order."""

    roles = [RoleKind.PLAYER]
    if team.captain_ref == profile.key:
        roles.append(RoleKind.CAPTAIN)
    if team.vice_captain_ref == profile.key:
        roles.append(RoleKind.VICE_CAPTAIN)
    return tuple(roles)


class RoleProjector:
    """Grant the roles implied by a profile's team. Holds no state between calls.

    Only grants: a profile without a team keeps whatever roles it has, and
    revocation goes through :class:`RoleCommands`.
    """

    def __init__(
        self,
        *,
        authority: ExternalAuthority,
        unit_of_work_factory: UnitOfWorkFactory,
    ) -> None:
        self._authority = authority
        self._uow_factory = unit_of_work_factory

    def project_roles(self, external_id: str) -> ProjectionResult:
        with self._uow_factory() as uow:
            profile = uow.repositories.profiles.get(external_id)
            if profile is None:
                return ProjectionResult(external_id=external_id, status=ProjectionStatus.NO_PROFILE)
            if profile.team_ref is None:
                return ProjectionResult(external_id=external_id, status=ProjectionStatus.NO_TEAM)
            team = uow.repositories.teams.get_by_key(profile.team_ref)

        if team is None:
            dangling = DanglingReference("profile", "team_ref", profile.team_ref)
            log.warning("Skipping role projection for %s: %s", external_id, dangling)
            return ProjectionResult(
                external_id=external_id,
                status=ProjectionStatus.DANGLING_TEAM,
                dangling=dangling,
            )

        return self._grant(profile, desired_roles(profile, team))

    def _grant(self, profile: Profile, roles: tuple[RoleKind, ...]) -> ProjectionResult:
        external_id = profile.external_id
        result = ProjectionResult(external_id=external_id, status=ProjectionStatus.PROJECTED)

        player, *leadership = roles
        if not self._try_grant(result, player):
            result.status = ProjectionStatus.FAILED
            return result

        for kind in leadership:
            self._try_grant(result, kind)

        if result.failures:
            result.status = ProjectionStatus.PARTIAL
        return result

    def _try_grant(self, result: ProjectionResult, kind: RoleKind) -> bool:
        try:
            apply_role_change(self._authority, result.external_id, kind, RoleAction.ADD)
        except ExternalAuthorityError as exc:
            log.error("Granting %s to %s failed: %s", kind, result.external_id, exc)
            result.failures[kind] = exc
            return False
        result.granted.append(kind)
        return True
