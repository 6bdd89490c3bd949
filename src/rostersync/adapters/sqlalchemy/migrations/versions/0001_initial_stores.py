"""Create identity, profile, team and team_roster tables.

Revision ID: 0001_initial_stores
Revises:
Create Date: 2025-10-01 00:00:00

"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

from rostersync.adapters.sqlalchemy.mappings import UTCDateTime

revision = "0001_initial_stores"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "identity",
        sa.Column("key", sa.Uuid(), nullable=False),
        sa.Column("external_id", sa.String(), nullable=False),
        sa.Column("display_name", sa.String(), nullable=False),
        sa.Column("joined_at", UTCDateTime(), nullable=True),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.Column("updated_at", UTCDateTime(), nullable=False),
        sa.PrimaryKeyConstraint("key", name="pk_identity"),
        sa.UniqueConstraint("external_id", name="uq_identity_external_id"),
    )
    op.create_table(
        "profile",
        sa.Column("key", sa.Uuid(), nullable=False),
        sa.Column("external_id", sa.String(), nullable=False),
        sa.Column("display_name", sa.String(), nullable=False),
        sa.Column("identity_ref", sa.Uuid(), nullable=True),
        sa.Column("team_ref", sa.Uuid(), nullable=True),
        sa.Column(
            "status",
            sa.Enum("available", "signed", "cooldown", name="profilestatus", native_enum=False),
            nullable=False,
        ),
        sa.Column("cooldown_ends", UTCDateTime(), nullable=True),
        sa.Column("join_date", UTCDateTime(), nullable=True),
        sa.Column("release_date", UTCDateTime(), nullable=True),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.Column("updated_at", UTCDateTime(), nullable=False),
        sa.PrimaryKeyConstraint("key", name="pk_profile"),
        sa.UniqueConstraint("external_id", name="uq_profile_external_id"),
        sa.UniqueConstraint("display_name", name="uq_profile_display_name"),
    )
    op.create_index("ix_profile_team_ref", "profile", ["team_ref"])
    op.create_table(
        "team",
        sa.Column("key", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("captain_ref", sa.Uuid(), nullable=False),
        sa.Column("vice_captain_ref", sa.Uuid(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.Column("updated_at", UTCDateTime(), nullable=False),
        sa.PrimaryKeyConstraint("key", name="pk_team"),
        sa.UniqueConstraint("name", name="uq_team_name"),
    )
    op.create_table(
        "team_roster",
        sa.Column("team_key", sa.Uuid(), nullable=False),
        sa.Column("profile_key", sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(
            ["team_key"],
            ["team.key"],
            name="fk_team_roster_team_key_team",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("team_key", "profile_key", name="pk_team_roster"),
    )


def downgrade() -> None:
    op.drop_table("team_roster")
    op.drop_table("team")
    op.drop_index("ix_profile_team_ref", table_name="profile")
    op.drop_table("profile")
    op.drop_table("identity")
