"""Store implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from dataclasses import replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING, cast

from sqlalchemy import delete, insert, select, update
from sqlalchemy import exc as sa_exc

from rostersync.adapters.sqlalchemy.mappings import (
    identity_table,
    profile_table,
    team_roster_table,
    team_table,
)
from rostersync.domain.errors import InvalidArgument, StoreError
from rostersync.domain.model import PROFILE_FIELDS, Identity, Profile, ProfileStatus, Team

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

    from sqlalchemy import ColumnElement, CursorResult, Row
    from sqlalchemy.orm import Session

_TRANSIENT_ERRORS: tuple[type[sa_exc.SQLAlchemyError], ...] = (
    sa_exc.OperationalError,
    sa_exc.TimeoutError,
    sa_exc.DisconnectionError,
)


def _now() -> datetime:
    return datetime.now(tz=UTC)


@contextmanager
def store_errors(action: str) -> Iterator[None]:
    """Translate SQLAlchemy failures into ``StoreError``."""

    try:
        yield
    except _TRANSIENT_ERRORS as exc:
        raise StoreError(f"{action} failed: {exc}", transient=True) from exc
    except sa_exc.SQLAlchemyError as exc:
        raise StoreError(f"{action} failed: {exc}") from exc


def _rowcount(result: object) -> int:
    return cast("CursorResult[object]", result).rowcount


class SqlAlchemyIdentityStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    def upsert(
        self,
        external_id: str,
        *,
        display_name: str,
        joined_at: datetime | None = None,
    ) -> Identity:
        now = _now()
        with store_errors(f"upsert identity {external_id}"):
            existing = self._select_one(identity_table.c.external_id == external_id)
            if existing is None:
                identity = Identity(
                    key=uuid.uuid4(),
                    external_id=external_id,
                    display_name=display_name,
                    joined_at=joined_at,
                    created_at=now,
                    updated_at=now,
                )
                self.session.execute(insert(identity_table).values(**_identity_values(identity)))
                return identity

            # an unknown join time (bulk sync fallback) never erases a known one
            effective_joined_at = joined_at if joined_at is not None else existing.joined_at
            self.session.execute(
                update(identity_table)
                .where(identity_table.c.key == existing.key)
                .values(display_name=display_name, joined_at=effective_joined_at, updated_at=now)
            )
            return replace(
                existing,
                display_name=display_name,
                joined_at=effective_joined_at,
                updated_at=now,
            )

    def rename(self, external_id: str, display_name: str) -> Identity | None:
        with store_errors(f"rename identity {external_id}"):
            existing = self._select_one(identity_table.c.external_id == external_id)
            if existing is None:
                return None
            now = _now()
            self.session.execute(
                update(identity_table)
                .where(identity_table.c.key == existing.key)
                .values(display_name=display_name, updated_at=now)
            )
            return replace(existing, display_name=display_name, updated_at=now)

    def get(self, external_id: str) -> Identity | None:
        with store_errors(f"get identity {external_id}"):
            return self._select_one(identity_table.c.external_id == external_id)

    def get_by_key(self, key: uuid.UUID) -> Identity | None:
        with store_errors(f"get identity {key}"):
            return self._select_one(identity_table.c.key == key)

    def delete(self, external_id: str) -> bool:
        with store_errors(f"delete identity {external_id}"):
            result = self.session.execute(
                delete(identity_table).where(identity_table.c.external_id == external_id)
            )
            return _rowcount(result) > 0

    def delete_by_key(self, key: uuid.UUID) -> bool:
        with store_errors(f"delete identity {key}"):
            result = self.session.execute(delete(identity_table).where(identity_table.c.key == key))
            return _rowcount(result) > 0

    def list_all(self) -> Sequence[Identity]:
        with store_errors("list identities"):
            rows = self.session.execute(
                select(identity_table).order_by(identity_table.c.external_id)
            ).all()
            return [_identity_from_row(row) for row in rows]

    def _select_one(self, clause: ColumnElement[bool]) -> Identity | None:
        row = self.session.execute(select(identity_table).where(clause)).one_or_none()
        return _identity_from_row(row) if row is not None else None


class SqlAlchemyProfileStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    def upsert(self, external_id: str, **fields: object) -> Profile:
        values = _profile_field_values(fields)
        now = _now()
        with store_errors(f"upsert profile {external_id}"):
            existing = self._select_one(profile_table.c.external_id == external_id)
            if existing is None:
                if not values.get("display_name"):
                    raise InvalidArgument(f"New profile {external_id} needs a display_name")
                profile = Profile(
                    key=uuid.uuid4(),
                    external_id=external_id,
                    created_at=now,
                    updated_at=now,
                    **values,  # pyright: ignore[reportArgumentType]
                )
                self.session.execute(insert(profile_table).values(**_profile_values(profile)))
                return profile

            self.session.execute(
                update(profile_table)
                .where(profile_table.c.key == existing.key)
                .values(**values, updated_at=now)
            )
            return replace(existing, updated_at=now, **values)  # pyright: ignore[reportArgumentType]

    def get(self, external_id: str) -> Profile | None:
        with store_errors(f"get profile {external_id}"):
            return self._select_one(profile_table.c.external_id == external_id)

    def get_by_key(self, key: uuid.UUID) -> Profile | None:
        with store_errors(f"get profile {key}"):
            return self._select_one(profile_table.c.key == key)

    def delete(self, external_id: str) -> bool:
        with store_errors(f"delete profile {external_id}"):
            result = self.session.execute(
                delete(profile_table).where(profile_table.c.external_id == external_id)
            )
            return _rowcount(result) > 0

    def list_all(self) -> Sequence[Profile]:
        with store_errors("list profiles"):
            rows = self.session.execute(
                select(profile_table).order_by(profile_table.c.external_id)
            ).all()
            return [_profile_from_row(row) for row in rows]

    def _select_one(self, clause: ColumnElement[bool]) -> Profile | None:
        row = self.session.execute(select(profile_table).where(clause)).one_or_none()
        return _profile_from_row(row) if row is not None else None


class SqlAlchemyTeamStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    def upsert(
        self,
        name: str,
        *,
        captain_ref: uuid.UUID,
        vice_captain_ref: uuid.UUID,
        roster: Iterable[uuid.UUID] = (),
        is_active: bool = True,
    ) -> Team:
        roster_keys = frozenset(roster)
        now = _now()
        with store_errors(f"upsert team {name}"):
            existing = self._select_one(team_table.c.name == name)
            if existing is None:
                team = Team(
                    key=uuid.uuid4(),
                    name=name,
                    captain_ref=captain_ref,
                    vice_captain_ref=vice_captain_ref,
                    roster=roster_keys,
                    is_active=is_active,
                    created_at=now,
                    updated_at=now,
                )
                self.session.execute(
                    insert(team_table).values(
                        key=team.key,
                        name=team.name,
                        captain_ref=team.captain_ref,
                        vice_captain_ref=team.vice_captain_ref,
                        is_active=team.is_active,
                        created_at=now,
                        updated_at=now,
                    )
                )
            else:
                team = replace(
                    existing,
                    captain_ref=captain_ref,
                    vice_captain_ref=vice_captain_ref,
                    roster=roster_keys,
                    is_active=is_active,
                    updated_at=now,
                )
                self.session.execute(
                    update(team_table)
                    .where(team_table.c.key == team.key)
                    .values(
                        captain_ref=captain_ref,
                        vice_captain_ref=vice_captain_ref,
                        is_active=is_active,
                        updated_at=now,
                    )
                )
            self._replace_roster(team.key, roster_keys)
            return team

    def get(self, name: str) -> Team | None:
        with store_errors(f"get team {name}"):
            return self._select_one(team_table.c.name == name)

    def get_by_key(self, key: uuid.UUID) -> Team | None:
        with store_errors(f"get team {key}"):
            return self._select_one(team_table.c.key == key)

    def delete(self, name: str) -> bool:
        with store_errors(f"delete team {name}"):
            existing = self._select_one(team_table.c.name == name)
            if existing is None:
                return False
            self.session.execute(
                delete(team_roster_table).where(team_roster_table.c.team_key == existing.key)
            )
            self.session.execute(delete(team_table).where(team_table.c.key == existing.key))
            return True

    def _replace_roster(self, team_key: uuid.UUID, roster: frozenset[uuid.UUID]) -> None:
        self.session.execute(
            delete(team_roster_table).where(team_roster_table.c.team_key == team_key)
        )
        if roster:
            self.session.execute(
                insert(team_roster_table),
                [{"team_key": team_key, "profile_key": key} for key in sorted(roster)],
            )

    def _select_one(self, clause: ColumnElement[bool]) -> Team | None:
        row = self.session.execute(select(team_table).where(clause)).one_or_none()
        if row is None:
            return None
        roster = self.session.execute(
            select(team_roster_table.c.profile_key).where(team_roster_table.c.team_key == row.key)
        ).scalars()
        return Team(roster=frozenset(roster), **row._asdict())


def _profile_field_values(fields: dict[str, object]) -> dict[str, object]:
    unknown = set(fields) - PROFILE_FIELDS
    if unknown:
        raise InvalidArgument(f"Unknown profile fields: {', '.join(sorted(unknown))}")
    values = dict(fields)
    if "status" in values:
        try:
            values["status"] = ProfileStatus(cast("str", values["status"]))
        except ValueError:
            raise InvalidArgument(f"Invalid profile status {values['status']!r}") from None
    return values


def _identity_values(identity: Identity) -> dict[str, object]:
    return {
        "key": identity.key,
        "external_id": identity.external_id,
        "display_name": identity.display_name,
        "joined_at": identity.joined_at,
        "created_at": identity.created_at,
        "updated_at": identity.updated_at,
    }


def _profile_values(profile: Profile) -> dict[str, object]:
    return {
        "key": profile.key,
        "external_id": profile.external_id,
        "display_name": profile.display_name,
        "identity_ref": profile.identity_ref,
        "team_ref": profile.team_ref,
        "status": profile.status,
        "cooldown_ends": profile.cooldown_ends,
        "join_date": profile.join_date,
        "release_date": profile.release_date,
        "created_at": profile.created_at,
        "updated_at": profile.updated_at,
    }


def _identity_from_row(row: Row[tuple[object, ...]]) -> Identity:
    return Identity(**row._asdict())


def _profile_from_row(row: Row[tuple[object, ...]]) -> Profile:
    return Profile(**row._asdict())


if TYPE_CHECKING:
    from rostersync.domain.ports.persistence import IdentityStore, ProfileStore, TeamStore

    _session_stub = cast("Session", object())
    _identity_check: IdentityStore = SqlAlchemyIdentityStore(_session_stub)
    _profile_check: ProfileStore = SqlAlchemyProfileStore(_session_stub)
    _team_check: TeamStore = SqlAlchemyTeamStore(_session_stub)
