"""QualityLog ORM model: one completed field assessment."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Index, String, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from croplog.models.base import Base, UUIDPrimaryKeyMixin


class QualityLog(Base, UUIDPrimaryKeyMixin):
    """An assessment event recorded against a planting.

    Logs are append-only: crop/field/bed and the planting snapshot
    (``date_planted``, ``tray_count``, ``row_count``, ``planting_notes``)
    are copied at creation time and survive resyncs that replace or remove
    the source planting record (``planting_record_id`` is then set NULL).
    No ``updated_at`` column; rows are never patched.
    """

    __tablename__ = "quality_logs"
    __table_args__ = (
        Index("ix_quality_logs_crop", "crop"),
        Index("ix_quality_logs_field", "field"),
        Index("ix_quality_logs_assessment_date", "assessment_date"),
    )

    planting_record_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("planting_records.id", ondelete="SET NULL"),
        nullable=True,
    )
    crop: Mapped[str] = mapped_column(String(255), nullable=False)
    variety: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    field: Mapped[str] = mapped_column(String(255), nullable=False)
    bed: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    date_planted: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    tray_count: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    row_count: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    planting_notes: Mapped[str] = mapped_column(String(4096), nullable=False, default="")
    assessment_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    responses: Mapped[list[dict[str, Any]]] = mapped_column(JSONB, nullable=False)
    notes: Mapped[str | None] = mapped_column(String(4096), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<QualityLog id={self.id} crop={self.crop!r} field={self.field!r} "
            f"at={self.assessment_date}>"
        )
