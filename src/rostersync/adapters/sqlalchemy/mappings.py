"""SQLAlchemy table metadata for the rostersync stores."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    MetaData,
    String,
    Table,
    TypeDecorator,
    Uuid,
)

from rostersync.domain.model import ProfileStatus

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

# Cross-entity references are plain keys, not foreign keys. A profile may point
# at an identity that no longer exists until the reconciler repairs it.

identity_table = Table(
    "identity",
    metadata,
    Column("key", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("external_id", String, nullable=False, unique=True),
    Column("display_name", String, nullable=False),
    Column("joined_at", UTCDateTime(), nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
)

profile_table = Table(
    "profile",
    metadata,
    Column("key", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("external_id", String, nullable=False, unique=True),
    Column("display_name", String, nullable=False, unique=True),
    Column("identity_ref", UUIDColumnType, nullable=True),
    Column("team_ref", UUIDColumnType, nullable=True, index=True),
    Column(
        "status",
        Enum(ProfileStatus, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ProfileStatus.AVAILABLE,
    ),
    Column("cooldown_ends", UTCDateTime(), nullable=True),
    Column("join_date", UTCDateTime(), nullable=True),
    Column("release_date", UTCDateTime(), nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
)

team_table = Table(
    "team",
    metadata,
    Column("key", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("name", String, nullable=False, unique=True),
    Column("captain_ref", UUIDColumnType, nullable=False),
    Column("vice_captain_ref", UUIDColumnType, nullable=False),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
)

team_roster_table = Table(
    "team_roster",
    metadata,
    Column(
        "team_key",
        UUIDColumnType,
        ForeignKey("team.key", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("profile_key", UUIDColumnType, primary_key=True),
)
