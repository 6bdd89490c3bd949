"""Application orchestration entry points."""

from __future__ import annotations

import json
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from rostersync.adapters.discord import DiscordAuthority, GatewayTranslator
from rostersync.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, is_started, startup
from rostersync.config import get_discord_config, get_sync_config
from rostersync.domain.errors import InvalidArgument
from rostersync.domain.reconciliation import (
    EventDispatcher,
    EventReconciler,
    KeyedLock,
    ReferenceIntegrityManager,
    RetrySchedule,
    RoleCommands,
    RoleProjector,
)

if TYPE_CHECKING:
    import threading
    from pathlib import Path

    from rostersync.config import SyncConfig
    from rostersync.domain.ports.authority import ExternalAuthority
    from rostersync.domain.ports.unit_of_work import UnitOfWorkFactory
    from rostersync.domain.reconciliation import (
        DispatchReport,
        InitialSyncResult,
        RoleChangeResult,
        SweepResult,
    )

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Services:
    """The reconciliation core wired around one lock table."""

    authority: ExternalAuthority
    locks: KeyedLock
    integrity: ReferenceIntegrityManager
    projector: RoleProjector
    reconciler: EventReconciler
    commands: RoleCommands
    sync_config: SyncConfig


def _default_unit_of_work_factory() -> UnitOfWorkFactory:
    if not is_started():
        startup()
    return SqlAlchemyUnitOfWork


def _default_authority(sync_config: SyncConfig) -> DiscordAuthority:
    return DiscordAuthority(config=get_discord_config(), page_size=sync_config.member_page_size)


def build_services(
    *,
    authority: ExternalAuthority | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    sync_config: SyncConfig | None = None,
) -> Services:
    config = sync_config or get_sync_config()
    effective_authority = authority or _default_authority(config)
    effective_uow = unit_of_work_factory or _default_unit_of_work_factory()
    locks = KeyedLock()
    integrity = ReferenceIntegrityManager(unit_of_work_factory=effective_uow, locks=locks)
    projector = RoleProjector(authority=effective_authority, unit_of_work_factory=effective_uow)
    reconciler = EventReconciler(
        unit_of_work_factory=effective_uow,
        integrity=integrity,
        projector=projector,
        locks=locks,
        retry=RetrySchedule.from_policy(config.store_retry),
    )
    return Services(
        authority=effective_authority,
        locks=locks,
        integrity=integrity,
        projector=projector,
        reconciler=reconciler,
        commands=RoleCommands(authority=effective_authority, locks=locks),
        sync_config=config,
    )


def run_initial_sync(
    *,
    authority: ExternalAuthority | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    cancel_event: threading.Event | None = None,
    services: Services | None = None,
) -> InitialSyncResult:
    """Store every verified member of the guild and project their roles."""

    services = services or build_services(
        authority=authority,
        unit_of_work_factory=unit_of_work_factory,
    )
    effective_authority = authority or services.authority
    log.info("Starting initial sync of verified members")
    members = effective_authority.list_verified_members()
    return services.reconciler.initial_sync(members, cancel_event=cancel_event)


def sweep_references(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> SweepResult:
    """Repair profile links left stale by interrupted relinks."""

    effective_uow = unit_of_work_factory or _default_unit_of_work_factory()
    integrity = ReferenceIntegrityManager(unit_of_work_factory=effective_uow)
    return integrity.sweep()


def assign_role(
    external_id: str,
    role_kind: str,
    action: str,
    *,
    authority: ExternalAuthority | None = None,
) -> RoleChangeResult:
    effective_authority = authority or _default_authority(get_sync_config())
    commands = RoleCommands(authority=effective_authority)
    return commands.assign_role(external_id, role_kind, action)


def load_dispatches(path: Path) -> list[dict[str, object]]:
    """Read recorded gateway dispatches, one JSON object per line."""

    dispatches: list[dict[str, object]] = []
    with path.open(encoding="utf-8") as handle:
        for line_number, line in enumerate(handle, start=1):
            stripped = line.strip()
            if not stripped:
                continue
            try:
                payload = json.loads(stripped)
            except json.JSONDecodeError as exc:
                raise InvalidArgument(f"{path}:{line_number}: invalid JSON ({exc.msg})") from exc
            if not isinstance(payload, dict):
                raise InvalidArgument(f"{path}:{line_number}: expected a JSON object")
            dispatches.append(payload)
    return dispatches


def replay_events(
    path: Path,
    *,
    translator: GatewayTranslator | None = None,
    services: Services | None = None,
    authority: ExternalAuthority | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> DispatchReport:
    """Feed recorded gateway dispatches through the reconciler.

    The translator is first seeded with the members the guild already has
    verified, so only a real change of the verified role counts as a grant.
    """

    services = services or build_services(
        authority=authority,
        unit_of_work_factory=unit_of_work_factory,
    )
    effective_authority = authority or services.authority
    effective_translator = translator or GatewayTranslator(get_discord_config().verified_role_id)
    members = effective_authority.list_verified_members()
    effective_translator.remember_all(members, verified=True)
    log.info("Seeded gateway state with %s verified members", len(members))
    dispatcher = EventDispatcher(
        services.reconciler,
        worker_count=services.sync_config.worker_count,
    )

    dispatches = load_dispatches(path)
    for dispatch in dispatches:
        dispatcher.submit_all(effective_translator.translate(dispatch))
    log.info("Replaying %s dispatches as %s events", len(dispatches), dispatcher.pending())

    report = dispatcher.drain()
    log.info(
        "Replay finished: handled=%s failed=%s kinds=%s",
        report.handled,
        report.failed,
        dict(report.by_kind),
    )
    return report


def serve(*, host: str, port: int, services: Services | None = None) -> None:
    """Run the HTTP API until interrupted."""

    import uvicorn  # noqa: PLC0415

    from rostersync.ui.http import create_app  # noqa: PLC0415

    services = services or build_services()
    log.info("Bot API running on %s:%s", host, port)
    uvicorn.run(create_app(services.commands), host=host, port=port, log_config=None)
