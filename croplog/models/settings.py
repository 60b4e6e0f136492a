"""WorkspaceSettings ORM model: the one shared spreadsheet configuration.

The table holds at most one row (primary key pinned to ``1``) so every
server instance reads the same configuration from the database instead of
process memory.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from croplog.models.base import Base

WORKSPACE_SETTINGS_ID = 1


class WorkspaceSettings(Base):
    """Connected spreadsheet and the tabs tracked for sync."""

    __tablename__ = "workspace_settings"
    __table_args__ = (
        CheckConstraint(f"id = {WORKSPACE_SETTINGS_ID}", name="ck_workspace_settings_single_row"),
    )

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        default=WORKSPACE_SETTINGS_ID,
        autoincrement=False,
    )
    spreadsheet_id: Mapped[str] = mapped_column(String(255), nullable=False)
    spreadsheet_name: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    sheet_names: Mapped[list[str]] = mapped_column(JSONB, nullable=False, default=list)
    admin_user_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    admin_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<WorkspaceSettings spreadsheet={self.spreadsheet_id!r} "
            f"sheets={len(self.sheet_names or [])}>"
        )
