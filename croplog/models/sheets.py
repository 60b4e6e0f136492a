"""Sheet-derived ORM models: raw snapshots, planting records, qualifier definitions.

Every table in this module is written by the sync engine only.  Planting
records are replaced wholesale per field on each sync; qualifier tables are
upserted by their natural keys.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Enum, Index, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from croplog.models.base import Base, SyncedMixin, TimestampMixin, UUIDPrimaryKeyMixin
from croplog.models.enums import LocationEnum

# ═══════════════════════════════════════════════════════════════════════════
# SheetSnapshot
# ═══════════════════════════════════════════════════════════════════════════


class SheetSnapshot(Base, UUIDPrimaryKeyMixin, TimestampMixin, SyncedMixin):
    """Verbatim grid of one spreadsheet tab plus the records parsed from it.

    Keyed by ``(spreadsheet_id, range)`` where ``range`` is the A1 range the
    grid was fetched with (``"<tab>!A:ZZ"``).  ``parsed_data`` is NULL for
    tabs that do not produce planting records (the Qualifiers tab).
    """

    __tablename__ = "sheet_snapshots"
    __table_args__ = (
        Index(
            "ix_sheet_snapshots_spreadsheet_range",
            "spreadsheet_id",
            "range",
            unique=True,
        ),
    )

    spreadsheet_id: Mapped[str] = mapped_column(String(255), nullable=False)
    range: Mapped[str] = mapped_column(String(512), nullable=False)
    data: Mapped[list[list[str]]] = mapped_column(JSONB, nullable=False)
    parsed_data: Mapped[list[dict[str, Any]] | None] = mapped_column(
        JSONB, nullable=True
    )

    def __repr__(self) -> str:
        return (
            f"<SheetSnapshot id={self.id} spreadsheet={self.spreadsheet_id!r} "
            f"range={self.range!r}>"
        )


# ═══════════════════════════════════════════════════════════════════════════
# PlantingRecord
# ═══════════════════════════════════════════════════════════════════════════


class PlantingRecord(Base, UUIDPrimaryKeyMixin, TimestampMixin, SyncedMixin):
    """One crop occupying one bed of one field sheet.

    Spreadsheet cells are kept as text (``tray_count`` may read "0.2",
    ``planted_date`` may read "5/1"); they are never coerced.
    ``replanted_from`` (JSONB) holds ``{crop, variety, date, notes}`` when
    the notes cell says the bed previously held another crop.
    """

    __tablename__ = "planting_records"
    __table_args__ = (
        Index("ix_planting_records_field", "field"),
        Index("ix_planting_records_bed", "bed"),
        Index("ix_planting_records_crop", "crop"),
    )

    field: Mapped[str] = mapped_column(String(255), nullable=False)
    bed: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    crop: Mapped[str] = mapped_column(String(255), nullable=False)
    variety: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    tray_count: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    row_count: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    planted_date: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    notes: Mapped[str] = mapped_column(String(4096), nullable=False, default="")
    location: Mapped[LocationEnum | None] = mapped_column(
        Enum(
            LocationEnum,
            name="planting_location",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=True,
    )
    replanted_from: Mapped[dict[str, str] | None] = mapped_column(
        JSONB, nullable=True
    )

    def __repr__(self) -> str:
        return (
            f"<PlantingRecord id={self.id} field={self.field!r} "
            f"bed={self.bed!r} crop={self.crop!r}>"
        )


# ═══════════════════════════════════════════════════════════════════════════
# QualifierDefinition
# ═══════════════════════════════════════════════════════════════════════════


class QualifierDefinition(Base, UUIDPrimaryKeyMixin, TimestampMixin, SyncedMixin):
    """Assessment questions for one crop, optionally scoped to a location.

    ``(name, location)`` is unique with NULLs not distinct, so a definition
    without a location never collides with (or collapses into) one that has
    a location.  ``assessments`` (JSONB) is an ordered list of
    ``{"name": "<question?>", "options": [...]}``.
    """

    __tablename__ = "qualifiers"
    __table_args__ = (
        Index(
            "ix_qualifiers_name_location",
            "name",
            "location",
            unique=True,
            postgresql_nulls_not_distinct=True,
        ),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    assessments: Mapped[list[dict[str, Any]]] = mapped_column(JSONB, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<QualifierDefinition id={self.id} name={self.name!r} "
            f"location={self.location!r}>"
        )


# ═══════════════════════════════════════════════════════════════════════════
# UniversalQualifier
# ═══════════════════════════════════════════════════════════════════════════


class UniversalQualifier(Base, UUIDPrimaryKeyMixin, TimestampMixin, SyncedMixin):
    """A question asked for every crop, stored once."""

    __tablename__ = "universal_qualifiers"

    name: Mapped[str] = mapped_column(String(512), unique=True, nullable=False)
    options: Mapped[list[str]] = mapped_column(JSONB, nullable=False)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return (
            f"<UniversalQualifier id={self.id} name={self.name!r} "
            f"order={self.display_order}>"
        )
