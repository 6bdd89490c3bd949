"""In-memory stores and unit of work for exercising the reconciliation core."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Literal
from uuid import uuid4

from rostersync.domain.errors import InvalidArgument, StoreError
from rostersync.domain.model import PROFILE_FIELDS, Identity, Profile, ProfileStatus, Team
from rostersync.domain.ports.unit_of_work import StoreRepositories

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence
    from types import TracebackType
    from uuid import UUID

    from rostersync.domain.ports.persistence import IdentityStore, ProfileStore, TeamStore
    from rostersync.domain.ports.unit_of_work import StoreUnitOfWork


def _now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class InMemoryState:
    """Committed rows shared by every unit of work created from one factory."""

    identities: dict[str, Identity] = field(default_factory=dict[str, Identity])
    profiles: dict[str, Profile] = field(default_factory=dict[str, Profile])
    teams: dict[str, Team] = field(default_factory=dict[str, Team])
    accesses: int = 0
    commits: int = 0
    commit_failures: list[StoreError] = field(default_factory=list[StoreError])
    lock: threading.Lock = field(default_factory=threading.Lock)

    def seed_profile(self, external_id: str, display_name: str, **fields: object) -> Profile:
        profile = Profile(external_id=external_id, display_name=display_name, **fields)  # pyright: ignore[reportArgumentType]
        self.profiles[external_id] = profile
        return profile

    def seed_identity(self, external_id: str, display_name: str, **fields: object) -> Identity:
        identity = Identity(external_id=external_id, display_name=display_name, **fields)  # pyright: ignore[reportArgumentType]
        self.identities[external_id] = identity
        return identity

    def seed_team(
        self,
        name: str,
        *,
        captain_ref: UUID,
        vice_captain_ref: UUID,
        roster: Iterable[UUID] = (),
    ) -> Team:
        team = Team(
            name=name,
            captain_ref=captain_ref,
            vice_captain_ref=vice_captain_ref,
            roster=frozenset(roster),
        )
        self.teams[name] = team
        return team


class _Working:
    def __init__(self, state: InMemoryState) -> None:
        self.state = state
        with state.lock:
            self.identities = dict(state.identities)
            self.profiles = dict(state.profiles)
            self.teams = dict(state.teams)
        self.snapshot = (dict(self.identities), dict(self.profiles), dict(self.teams))

    def touch(self) -> None:
        with self.state.lock:
            self.state.accesses += 1


class InMemoryIdentityStore:
    def __init__(self, working: _Working) -> None:
        self._w = working

    def upsert(
        self,
        external_id: str,
        *,
        display_name: str,
        joined_at: datetime | None = None,
    ) -> Identity:
        self._w.touch()
        existing = self._w.identities.get(external_id)
        if existing is None:
            identity = Identity(
                external_id=external_id,
                display_name=display_name,
                joined_at=joined_at,
                created_at=_now(),
                updated_at=_now(),
            )
        else:
            identity = replace(
                existing,
                display_name=display_name,
                joined_at=joined_at if joined_at is not None else existing.joined_at,
                updated_at=_now(),
            )
        self._w.identities[external_id] = identity
        return identity

    def rename(self, external_id: str, display_name: str) -> Identity | None:
        self._w.touch()
        existing = self._w.identities.get(external_id)
        if existing is None:
            return None
        renamed = replace(existing, display_name=display_name, updated_at=_now())
        self._w.identities[external_id] = renamed
        return renamed

    def get(self, external_id: str) -> Identity | None:
        self._w.touch()
        return self._w.identities.get(external_id)

    def get_by_key(self, key: UUID) -> Identity | None:
        self._w.touch()
        return next((row for row in self._w.identities.values() if row.key == key), None)

    def delete(self, external_id: str) -> bool:
        self._w.touch()
        return self._w.identities.pop(external_id, None) is not None

    def delete_by_key(self, key: UUID) -> bool:
        self._w.touch()
        for external_id, row in list(self._w.identities.items()):
            if row.key == key:
                del self._w.identities[external_id]
                return True
        return False

    def list_all(self) -> Sequence[Identity]:
        self._w.touch()
        return sorted(self._w.identities.values(), key=lambda row: row.external_id)


class InMemoryProfileStore:
    def __init__(self, working: _Working) -> None:
        self._w = working

    def upsert(self, external_id: str, **fields: object) -> Profile:
        self._w.touch()
        unknown = set(fields) - PROFILE_FIELDS
        if unknown:
            raise InvalidArgument(f"Unknown profile fields: {', '.join(sorted(unknown))}")
        if "status" in fields:
            fields["status"] = ProfileStatus(str(fields["status"]))
        existing = self._w.profiles.get(external_id)
        if existing is None:
            if not fields.get("display_name"):
                raise InvalidArgument(f"New profile {external_id} needs a display_name")
            profile = Profile(external_id=external_id, **fields)  # pyright: ignore[reportArgumentType]
        else:
            profile = replace(existing, updated_at=_now(), **fields)  # pyright: ignore[reportArgumentType]
        self._w.profiles[external_id] = profile
        return profile

    def get(self, external_id: str) -> Profile | None:
        self._w.touch()
        return self._w.profiles.get(external_id)

    def get_by_key(self, key: UUID) -> Profile | None:
        self._w.touch()
        return next((row for row in self._w.profiles.values() if row.key == key), None)

    def delete(self, external_id: str) -> bool:
        self._w.touch()
        return self._w.profiles.pop(external_id, None) is not None

    def list_all(self) -> Sequence[Profile]:
        self._w.touch()
        return sorted(self._w.profiles.values(), key=lambda row: row.external_id)


class InMemoryTeamStore:
    def __init__(self, working: _Working) -> None:
        self._w = working

    def upsert(
        self,
        name: str,
        *,
        captain_ref: UUID,
        vice_captain_ref: UUID,
        roster: Iterable[UUID] = (),
        is_active: bool = True,
    ) -> Team:
        self._w.touch()
        existing = self._w.teams.get(name)
        team = Team(
            key=existing.key if existing else uuid4(),
            name=name,
            captain_ref=captain_ref,
            vice_captain_ref=vice_captain_ref,
            roster=frozenset(roster),
            is_active=is_active,
        )
        self._w.teams[name] = team
        return team

    def get(self, name: str) -> Team | None:
        self._w.touch()
        return self._w.teams.get(name)

    def get_by_key(self, key: UUID) -> Team | None:
        self._w.touch()
        return next((row for row in self._w.teams.values() if row.key == key), None)

    def delete(self, name: str) -> bool:
        self._w.touch()
        return self._w.teams.pop(name, None) is not None


def _merge[T](committed: dict[str, T], before: dict[str, T], after: dict[str, T]) -> None:
    for key in before.keys() - after.keys():
        committed.pop(key, None)
    for key, value in after.items():
        if before.get(key) is not value:
            committed[key] = value


class InMemoryUnitOfWork:
    def __init__(self, state: InMemoryState) -> None:
        self.state = state
        self._working: _Working | None = None
        self._repositories: StoreRepositories | None = None

    def __enter__(self) -> InMemoryUnitOfWork:
        self._working = _Working(self.state)
        identities: IdentityStore = InMemoryIdentityStore(self._working)
        profiles: ProfileStore = InMemoryProfileStore(self._working)
        teams: TeamStore = InMemoryTeamStore(self._working)
        self._repositories = StoreRepositories(
            identities=identities,
            profiles=profiles,
            teams=teams,
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        self._working = None
        self._repositories = None
        return False

    @property
    def repositories(self) -> StoreRepositories:
        if self._repositories is None:
            raise RuntimeError("Unit of work is not active")
        return self._repositories

    def commit(self) -> None:
        working = self._working
        if working is None:
            raise RuntimeError("Unit of work is not active")
        with self.state.lock:
            if self.state.commit_failures:
                raise self.state.commit_failures.pop(0)
            before_identities, before_profiles, before_teams = working.snapshot
            _merge(self.state.identities, before_identities, working.identities)
            _merge(self.state.profiles, before_profiles, working.profiles)
            _merge(self.state.teams, before_teams, working.teams)
            self.state.commits += 1
        working.snapshot = (
            dict(working.identities),
            dict(working.profiles),
            dict(working.teams),
        )

    def rollback(self) -> None:
        working = self._working
        if working is None:
            return
        identities, profiles, teams = working.snapshot
        working.identities = dict(identities)
        working.profiles = dict(profiles)
        working.teams = dict(teams)


def in_memory_uow_factory(state: InMemoryState) -> Callable[[], StoreUnitOfWork]:
    def factory() -> StoreUnitOfWork:
        return InMemoryUnitOfWork(state)

    return factory
