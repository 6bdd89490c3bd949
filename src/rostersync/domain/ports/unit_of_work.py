"""Unit-of-work abstraction for coordinating the stores."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from rostersync.domain.ports.persistence import IdentityStore, ProfileStore, TeamStore


@dataclass(slots=True)
class StoreRepositories:
    """Stores sharing one session."""

    identities: IdentityStore
    profiles: ProfileStore
    teams: TeamStore


@runtime_checkable
class StoreUnitOfWork(Protocol):
    """Transaction boundary around :class:`StoreRepositories`.

    Leaving the context without ``commit`` discards the writes.
    """

    @property
    def repositories(self) -> StoreRepositories: ...

    def __enter__(self) -> StoreUnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


UnitOfWorkFactory = Callable[[], StoreUnitOfWork]
