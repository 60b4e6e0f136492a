"""Read queries over synced planting records and qualifier definitions."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from croplog.models.sheets import PlantingRecord, QualifierDefinition, UniversalQualifier
from croplog.services.field_parser import classify_location


def _singular(name: str) -> str:
	lowered = name.strip().lower()
	if lowered.endswith("es") and len(lowered) > 3 and lowered[:-2].endswith(("o", "ch", "sh", "x", "s")):
		return lowered[:-2]
	if lowered.endswith("s") and not lowered.endswith("ss") and len(lowered) > 1:
		return lowered[:-1]
	return lowered


def crop_matches(qualifier_name: str, crop: str) -> bool:
	"""Case-insensitive name match that tolerates a plural qualifier name ("Tomatoes" vs "Tomato")."""
	if not qualifier_name or not crop:
		return False
	if qualifier_name.strip().lower() == crop.strip().lower():
		return True
	return _singular(qualifier_name) == _singular(crop)


def pick_qualifier(
	qualifiers: Sequence[QualifierDefinition],
	crop: str,
	field: str | None = None,
) -> QualifierDefinition | None:
	"""Best definition for a planting.

	Prefers a definition whose location classifies the same way as the
	planting's field, then one with no location, then any name match.
	"""
	candidates = [qualifier for qualifier in qualifiers if crop_matches(qualifier.name, crop)]
	if not candidates:
		return None
	if field:
		target = classify_location(field)
		for qualifier in candidates:
			if qualifier.location and classify_location(qualifier.location) == target:
				return qualifier
	for qualifier in candidates:
		if not qualifier.location:
			return qualifier
	return candidates[0]


class CatalogService:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def list_crops(self) -> list[PlantingRecord]:
		stmt = select(PlantingRecord).order_by(PlantingRecord.field.asc(), PlantingRecord.bed.asc())
		row = await self.db.execute(stmt)
		return list(row.scalars().all())

	async def list_crops_by_field(self, field: str) -> list[PlantingRecord]:
		stmt = select(PlantingRecord).where(PlantingRecord.field == field).order_by(PlantingRecord.bed.asc())
		row = await self.db.execute(stmt)
		return list(row.scalars().all())

	async def unique_fields(self) -> list[str]:
		return await self._distinct(PlantingRecord.field)

	async def unique_crops(self) -> list[str]:
		return await self._distinct(PlantingRecord.crop)

	async def unique_varieties(self) -> list[str]:
		return await self._distinct(PlantingRecord.variety)

	async def last_sync_time(self) -> datetime | None:
		row = await self.db.execute(select(func.max(PlantingRecord.last_synced)))
		return row.scalar_one_or_none()

	async def list_qualifiers(self) -> list[QualifierDefinition]:
		stmt = select(QualifierDefinition).order_by(QualifierDefinition.name.asc())
		row = await self.db.execute(stmt)
		return list(row.scalars().all())

	async def list_universal_qualifiers(self) -> list[UniversalQualifier]:
		stmt = select(UniversalQualifier).order_by(UniversalQualifier.display_order.asc())
		row = await self.db.execute(stmt)
		return list(row.scalars().all())

	async def resolve_qualifier(self, crop: str, field: str | None = None) -> QualifierDefinition | None:
		if not crop or not crop.strip():
			raise ValueError("crop is required")
		return pick_qualifier(await self.list_qualifiers(), crop, field)

	async def _distinct(self, column) -> list[str]:
		row = await self.db.execute(select(column).where(column != "").distinct().order_by(column.asc()))
		return [value for value in row.scalars().all() if value]
