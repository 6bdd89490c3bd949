"""Fold inbound membership events into the stores."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from rostersync.domain.errors import InvalidArgument, RoleProjectionError, RosterSyncError
from rostersync.domain.events import (
    MembershipEvent,
    MembershipGranted,
    MembershipRevoked,
    ProfileRenamed,
    event_key,
)
from rostersync.domain.reconciliation.integrity import RelinkStatus
from rostersync.domain.reconciliation.locks import KeyedLock
from rostersync.domain.reconciliation.retry import RetrySchedule

if TYPE_CHECKING:
    import threading
    from collections.abc import Iterable

    from rostersync.domain.model import Identity
    from rostersync.domain.ports.authority import MemberSnapshot
    from rostersync.domain.ports.unit_of_work import UnitOfWorkFactory
    from rostersync.domain.reconciliation.integrity import (
        ReferenceIntegrityManager,
        RelinkResult,
    )
    from rostersync.domain.reconciliation.projection import ProjectionResult, RoleProjector

log = getLogger(__name__)


@dataclass(slots=True)
class ReconcileOutcome:
    """What handling one event did to the stores and the guild."""

    event: MembershipEvent
    identity: Identity | None = None
    relink: RelinkResult | None = None
    projection: ProjectionResult | None = None
    identity_deleted: bool = False
    renamed: bool = False
    skipped: bool = False


@dataclass(slots=True)
class InitialSyncResult:
    total: int = 0
    processed: int = 0
    failures: dict[str, RosterSyncError] = field(default_factory=dict[str, RosterSyncError])
    cancelled: bool = False


class EventReconciler:
    """Apply membership events.

    Every handler is safe to repeat (delivery is at-least-once) and runs under
    a per-member lock, so a rename and a grant for the same person never
    interleave. Events for different members may run concurrently.
    """

    def __init__(
        self,
        *,
        unit_of_work_factory: UnitOfWorkFactory,
        integrity: ReferenceIntegrityManager,
        projector: RoleProjector,
        locks: KeyedLock | None = None,
        retry: RetrySchedule | None = None,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._integrity = integrity
        self._projector = projector
        self._locks = locks or KeyedLock()
        self._retry = retry or RetrySchedule()

    def handle(self, event: MembershipEvent) -> ReconcileOutcome:
        """Apply ``event``; raise ``RoleProjectionError`` if a grant failed after the writes."""

        key = event_key(event)
        if not key or not key.strip():
            raise InvalidArgument(f"Event without member id: {event!r}")

        with self._locks.hold(key):
            outcome = self._retry.call(
                lambda: self._dispatch(event),
                describe=f"{type(event).__name__}({key})",
            )

        if outcome.projection is not None and not outcome.projection.ok:
            raise RoleProjectionError(outcome.projection)
        return outcome

    def initial_sync(
        self,
        members: Iterable[MemberSnapshot],
        *,
        cancel_event: threading.Event | None = None,
    ) -> InitialSyncResult:
        """Replay a snapshot of verified members as grants.

        Each member is committed on its own, so cancelling part-way leaves the
        stores consistent, only incomplete.
        """

        result = InitialSyncResult()
        for member in members:
            if cancel_event is not None and cancel_event.is_set():
                result.cancelled = True
                log.warning("Initial sync cancelled after %s members", result.processed)
                break
            result.total += 1
            event = MembershipGranted(
                external_id=member.external_id,
                display_name=member.display_name,
                joined_at=member.joined_at,
            )
            try:
                self.handle(event)
            except RosterSyncError as exc:
                log.error("Initial sync failed for %s: %s", member.external_id, exc)
                result.failures[member.external_id] = exc
                continue
            result.processed += 1

        log.info(
            "Initial sync of verified members complete: processed=%s failed=%s",
            result.processed,
            len(result.failures),
        )
        return result

    def _dispatch(self, event: MembershipEvent) -> ReconcileOutcome:
        match event:
            case MembershipGranted():
                return self._on_granted(event)
            case MembershipRevoked():
                return self._on_revoked(event)
            case ProfileRenamed():
                return self._on_renamed(event)
            case _:
                raise InvalidArgument(f"Unsupported event: {event!r}")

    def _on_granted(self, event: MembershipGranted) -> ReconcileOutcome:
        with self._uow_factory() as uow:
            identity = uow.repositories.identities.upsert(
                event.external_id,
                display_name=event.display_name,
                joined_at=event.joined_at,
            )
            uow.commit()
        log.info("Verified member stored: %s (%s)", event.display_name, event.external_id)

        outcome = ReconcileOutcome(event=event, identity=identity)
        outcome.relink = self._integrity.relink_identity(
            event.external_id,
            identity.key,
            event.display_name,
        )
        if outcome.relink.status is RelinkStatus.NO_PROFILE:
            return outcome

        profile = outcome.relink.profile
        if profile is not None and profile.has_team:
            outcome.projection = self._projector.project_roles(event.external_id)
        return outcome

    def _on_revoked(self, event: MembershipRevoked) -> ReconcileOutcome:
        with self._uow_factory() as uow:
            deleted = uow.repositories.identities.delete(event.external_id)
            uow.commit()
        if deleted:
            log.info("Member removed from store: %s", event.external_id)
        return ReconcileOutcome(event=event, identity_deleted=deleted)

    def _on_renamed(self, event: ProfileRenamed) -> ReconcileOutcome:
        if not event.changed:
            return ReconcileOutcome(event=event, skipped=True)

        with self._uow_factory() as uow:
            identity = uow.repositories.identities.rename(
                event.external_id,
                event.new_display_name,
            )
            profile = uow.repositories.profiles.get(event.external_id)
            if profile is not None:
                uow.repositories.profiles.upsert(
                    event.external_id,
                    display_name=event.new_display_name,
                )
            uow.commit()

        renamed = identity is not None or profile is not None
        if renamed:
            log.info(
                "Updated username in store: %s -> %s",
                event.old_display_name,
                event.new_display_name,
            )
        return ReconcileOutcome(event=event, identity=identity, renamed=renamed)
