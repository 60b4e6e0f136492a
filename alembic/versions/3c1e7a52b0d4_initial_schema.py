"""initial_schema

Revision ID: 3c1e7a52b0d4
Revises:
Create Date: 2026-10-17 00:00:00.000000

Creates the sheet snapshot, planting, qualifier, quality log, workspace
settings and user tables with their enum types and indexes.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3c1e7a52b0d4"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

ENUM_PLANTING_LOCATION = postgresql.ENUM(
    "high_tunnel", "greenhouse", "open_field", name="planting_location", create_type=False
)
ENUM_USER_ROLE = postgresql.ENUM("admin", "member", name="user_role", create_type=False)


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("uuid_generate_v4()"),
        nullable=False,
    )


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        server_default=sa.text("now()"),
        nullable=False,
    )


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ── 1. Enum types ───────────────────────────────────────────────────
    ENUM_PLANTING_LOCATION.create(op.get_bind(), checkfirst=True)
    ENUM_USER_ROLE.create(op.get_bind(), checkfirst=True)

    # ── 2. Sheet-derived tables ─────────────────────────────────────────

    # sheet_snapshots
    op.create_table(
        "sheet_snapshots",
        _uuid_pk(),
        sa.Column("spreadsheet_id", sa.String(255), nullable=False),
        sa.Column("range", sa.String(512), nullable=False),
        sa.Column("data", postgresql.JSONB(), nullable=False),
        sa.Column("parsed_data", postgresql.JSONB(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        _timestamp("last_synced"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_sheet_snapshots_spreadsheet_range",
        "sheet_snapshots",
        ["spreadsheet_id", "range"],
        unique=True,
    )

    # planting_records
    op.create_table(
        "planting_records",
        _uuid_pk(),
        sa.Column("field", sa.String(255), nullable=False),
        sa.Column("bed", sa.String(255), nullable=False),
        sa.Column("crop", sa.String(255), nullable=False),
        sa.Column("variety", sa.String(255), nullable=False),
        sa.Column("tray_count", sa.String(64), nullable=False),
        sa.Column("row_count", sa.String(64), nullable=False),
        sa.Column("planted_date", sa.String(64), nullable=False),
        sa.Column("notes", sa.String(4096), nullable=False),
        sa.Column("location", ENUM_PLANTING_LOCATION, nullable=True),
        sa.Column("replanted_from", postgresql.JSONB(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        _timestamp("last_synced"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_planting_records_field", "planting_records", ["field"])
    op.create_index("ix_planting_records_bed", "planting_records", ["bed"])
    op.create_index("ix_planting_records_crop", "planting_records", ["crop"])

    # qualifiers
    op.create_table(
        "qualifiers",
        _uuid_pk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("assessments", postgresql.JSONB(), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        _timestamp("last_synced"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_qualifiers_name_location",
        "qualifiers",
        ["name", "location"],
        unique=True,
        postgresql_nulls_not_distinct=True,
    )

    # universal_qualifiers
    op.create_table(
        "universal_qualifiers",
        _uuid_pk(),
        sa.Column("name", sa.String(512), nullable=False),
        sa.Column("options", postgresql.JSONB(), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        _timestamp("last_synced"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    # ── 3. Quality logs ─────────────────────────────────────────────────
    op.create_table(
        "quality_logs",
        _uuid_pk(),
        sa.Column("planting_record_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("crop", sa.String(255), nullable=False),
        sa.Column("variety", sa.String(255), nullable=False),
        sa.Column("field", sa.String(255), nullable=False),
        sa.Column("bed", sa.String(255), nullable=False),
        sa.Column("date_planted", sa.String(64), nullable=False),
        sa.Column("tray_count", sa.String(64), nullable=False),
        sa.Column("row_count", sa.String(64), nullable=False),
        sa.Column("planting_notes", sa.String(4096), nullable=False),
        sa.Column("assessment_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("responses", postgresql.JSONB(), nullable=False),
        sa.Column("notes", sa.String(4096), nullable=True),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(
            ["planting_record_id"], ["planting_records.id"], ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_quality_logs_crop", "quality_logs", ["crop"])
    op.create_index("ix_quality_logs_field", "quality_logs", ["field"])
    op.create_index("ix_quality_logs_assessment_date", "quality_logs", ["assessment_date"])

    # ── 4. Workspace settings & users ───────────────────────────────────
    op.create_table(
        "workspace_settings",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("spreadsheet_id", sa.String(255), nullable=False),
        sa.Column("spreadsheet_name", sa.String(512), nullable=False),
        sa.Column("sheet_names", postgresql.JSONB(), nullable=False),
        sa.Column("admin_user_id", sa.String(255), nullable=True),
        sa.Column("admin_email", sa.String(320), nullable=True),
        _timestamp("updated_at"),
        sa.CheckConstraint("id = 1", name="ck_workspace_settings_single_row"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "users",
        _uuid_pk(),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column(
            "role",
            ENUM_USER_ROLE,
            server_default=sa.text("'member'"),
            nullable=False,
        ),
        sa.Column("is_approved", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)


def downgrade() -> None:
    # ── Drop tables in reverse dependency order ─────────────────────────
    op.drop_table("users")
    op.drop_table("workspace_settings")
    op.drop_table("quality_logs")
    op.drop_table("universal_qualifiers")
    op.drop_table("qualifiers")
    op.drop_table("planting_records")
    op.drop_table("sheet_snapshots")

    # ── Drop enum types ─────────────────────────────────────────────────
    ENUM_USER_ROLE.drop(op.get_bind(), checkfirst=True)
    ENUM_PLANTING_LOCATION.drop(op.get_bind(), checkfirst=True)
