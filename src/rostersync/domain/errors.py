"""Error taxonomy for the reconciliation core."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID

    from rostersync.domain.reconciliation.projection import ProjectionResult


class RosterSyncError(RuntimeError):
    """Base class for errors raised by rostersync."""


class ExternalAuthorityError(RosterSyncError):
    """Talking to the group-membership authority failed."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class StoreError(RosterSyncError):
    """Persistence failed.

    ``transient`` marks failures worth retrying (locked database, dropped
    connection) as opposed to constraint violations.
    """

    def __init__(self, message: str, *, transient: bool = False) -> None:
        super().__init__(message)
        self.transient = transient


class InvalidArgument(RosterSyncError, ValueError):  # noqa: N818
    """A command or event payload is malformed."""


class DanglingReference(RosterSyncError):  # noqa: N818
    """A stored key does not resolve to a row in its target store."""

    def __init__(self, source: str, field: str, key: UUID) -> None:
        super().__init__(f"{source}.{field} -> {key} does not resolve")
        self.source = source
        self.field = field
        self.key = key


class RoleProjectionError(ExternalAuthorityError):
    """At least one role grant failed; ``result`` holds what did succeed."""

    def __init__(self, result: ProjectionResult) -> None:
        failed = ", ".join(sorted(kind.value for kind in result.failures))
        super().__init__(f"Role projection for {result.external_id} failed for: {failed}")
        self.result = result
