"""Reconciliation core.

Inbound: :class:`EventReconciler` folds membership events into the stores and
uses :class:`ReferenceIntegrityManager` to keep profile links healthy.
Outbound: :class:`RoleProjector` turns team structure into role grants, using
the same primitive as the operator-facing :class:`RoleCommands`.
"""

from __future__ import annotations

from .commands import RoleChangeResult, RoleCommands, apply_role_change
from .dispatch import DispatchReport, EventDispatcher
from .integrity import ReferenceIntegrityManager, RelinkResult, RelinkStatus, SweepResult
from .locks import KeyedLock
from .projection import ProjectionResult, ProjectionStatus, RoleProjector, desired_roles
from .reconciler import EventReconciler, InitialSyncResult, ReconcileOutcome
from .retry import RetrySchedule

__all__ = [
    "DispatchReport",
    "EventDispatcher",
    "EventReconciler",
    "InitialSyncResult",
    "KeyedLock",
    "ProjectionResult",
    "ProjectionStatus",
    "ReconcileOutcome",
    "ReferenceIntegrityManager",
    "RelinkResult",
    "RelinkStatus",
    "RetrySchedule",
    "RoleChangeResult",
    "RoleCommands",
    "RoleProjector",
    "SweepResult",
    "apply_role_change",
    "desired_roles",
]
