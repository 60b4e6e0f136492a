"""Sheet-to-store reconciliation: snapshots, planting partitions and qualifiers."""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Protocol

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from croplog.config import get_settings
from croplog.models.sheets import PlantingRecord, QualifierDefinition, SheetSnapshot, UniversalQualifier
from croplog.schemas.qualifiers import (
	QualifierDefinitionIn,
	QualifierSyncItem,
	QualifierSyncResult,
	UniversalQualifierIn,
	UniversalSyncResult,
)
from croplog.schemas.sheets import (
	FieldPurgeResult,
	ParsedPlanting,
	SheetDataSyncResult,
	SheetSyncReceipt,
	SyncAction,
	WorkspaceSyncReceipt,
	planting_payload,
)
from croplog.services.errors import SourceNotFoundError, SyncValidationError
from croplog.services.field_parser import parse_field_rows
from croplog.services.qualifier_parser import parse_qualifiers_sheet
from croplog.services.settings_service import SettingsService
from croplog.services.sheets_client import field_range_key

logger = structlog.get_logger("croplog.sync")


class GridSource(Protocol):
	async def fetch_grid(
		self,
		spreadsheet_id: str,
		sheet_name: str | None,
		cell_range: str | None = None,
	) -> list[list[str]]: ...


class SyncService:
	def __init__(self, db: AsyncSession):
		self.db = db
		self.settings = get_settings()

	def is_qualifiers_sheet(self, sheet_name: str) -> bool:
		return sheet_name.strip().lower() == self.settings.qualifiers_sheet_name.lower()

	# ── Store reconciliation ────────────────────────────────────────────

	async def sync_sheet_data(
		self,
		spreadsheet_id: str,
		range_key: str,
		grid: list[list[str]],
		parsed: Sequence[ParsedPlanting] | None = None,
	) -> SheetDataSyncResult:
		if not spreadsheet_id:
			raise SyncValidationError("Spreadsheet ID is required")
		if not range_key:
			raise SyncValidationError("Range is required")

		now = datetime.now(UTC)
		parsed_payload = [planting_payload(record) for record in parsed] if parsed is not None else None

		snapshot = await self._get_snapshot(spreadsheet_id, range_key)
		if snapshot is None:
			snapshot = SheetSnapshot(
				id=uuid.uuid4(),
				spreadsheet_id=spreadsheet_id,
				range=range_key,
				data=grid,
				parsed_data=parsed_payload,
				last_synced=now,
			)
			self.db.add(snapshot)
			action = SyncAction.created
		else:
			snapshot.data = grid
			snapshot.parsed_data = parsed_payload
			snapshot.last_synced = now
			action = SyncAction.updated

		crops_count = 0
		if parsed:
			field = parsed[0].field
			await self._delete_plantings_for_field(field)
			crops_count = await self._insert_plantings(parsed, now)

		await self.db.flush()
		return SheetDataSyncResult(action=action, snapshot_id=snapshot.id, crops_count=crops_count)

	async def sync_qualifiers(self, vegetables: Sequence[QualifierDefinitionIn]) -> QualifierSyncResult:
		now = datetime.now(UTC)
		results: list[QualifierSyncItem] = []

		for veg in vegetables:
			assessments = [assessment.model_dump() for assessment in veg.assessments]
			existing = await self._get_qualifier(veg.name, veg.location)
			if existing is None:
				row = QualifierDefinition(
					id=uuid.uuid4(),
					name=veg.name,
					location=veg.location,
					assessments=assessments,
					last_synced=now,
				)
				self.db.add(row)
				action = SyncAction.created
			else:
				row = existing
				row.assessments = assessments
				row.last_synced = now
				action = SyncAction.updated
			results.append(QualifierSyncItem(id=row.id, name=row.name, location=row.location, action=action))

		await self.db.flush()
		return QualifierSyncResult(count=len(results), results=results)

	async def sync_universal_qualifiers(self, universals: Sequence[UniversalQualifierIn]) -> UniversalSyncResult:
		now = datetime.now(UTC)
		existing = {row.name: row for row in await self._list_universal()}
		incoming = {item.name for item in universals}
		result = UniversalSyncResult()

		for item in universals:
			row = existing.get(item.name)
			if row is None:
				self.db.add(
					UniversalQualifier(
						id=uuid.uuid4(),
						name=item.name,
						options=list(item.options),
						display_order=item.display_order,
						last_synced=now,
					)
				)
				result.created.append(item.name)
			else:
				row.options = list(item.options)
				row.display_order = item.display_order
				row.last_synced = now
				result.updated.append(item.name)

		for name, row in existing.items():
			if name not in incoming:
				await self._delete_universal(row)
				result.deleted.append(name)

		await self.db.flush()
		return result

	async def delete_sheet_by_field(self, spreadsheet_id: str, field_name: str) -> FieldPurgeResult:
		if not spreadsheet_id or not field_name:
			raise SyncValidationError("Spreadsheet ID and field name are required")
		snapshots_deleted = await self._delete_snapshot(spreadsheet_id, field_range_key(field_name))
		crops_deleted = await self._delete_plantings_for_field(field_name)
		logger.info(
			"field_purged",
			spreadsheet_id=spreadsheet_id,
			field=field_name,
			snapshots_deleted=snapshots_deleted,
			crops_deleted=crops_deleted,
		)
		return FieldPurgeResult(
			spreadsheet_id=spreadsheet_id,
			field=field_name,
			snapshots_deleted=snapshots_deleted,
			crops_deleted=crops_deleted,
		)

	# ── Orchestration ───────────────────────────────────────────────────

	async def sync_sheet(self, spreadsheet_id: str, sheet_name: str, client: GridSource) -> SheetSyncReceipt:
		sheet_name = (sheet_name or "").strip()
		if not spreadsheet_id:
			raise SyncValidationError("Spreadsheet ID is required")
		if not sheet_name:
			raise SyncValidationError("Sheet name is required")

		grid = await client.fetch_grid(spreadsheet_id, sheet_name)

		if self.is_qualifiers_sheet(sheet_name):
			parse_result = parse_qualifiers_sheet(grid)
			data_result = await self.sync_sheet_data(spreadsheet_id, field_range_key(sheet_name), grid)
			qualifier_result = await self.sync_qualifiers(parse_result.vegetables)
			universal_result = await self.sync_universal_qualifiers(parse_result.universal_qualifiers)
			logger.info(
				"qualifiers_synced",
				spreadsheet_id=spreadsheet_id,
				qualifiers=qualifier_result.count,
				universal=len(parse_result.universal_qualifiers),
				universal_deleted=len(universal_result.deleted),
			)
			return SheetSyncReceipt(
				spreadsheet_id=spreadsheet_id,
				sheet_name=sheet_name,
				action=data_result.action,
				row_count=len(grid),
				qualifiers_count=qualifier_result.count,
				universal_count=len(parse_result.universal_qualifiers),
			)

		parsed = parse_field_rows(grid, sheet_name)
		data_result = await self.sync_sheet_data(spreadsheet_id, field_range_key(sheet_name), grid, parsed)
		if not parsed:
			# A tab emptied upstream still replaces its partition.
			await self._delete_plantings_for_field(sheet_name)
		logger.info(
			"sheet_synced",
			spreadsheet_id=spreadsheet_id,
			sheet_name=sheet_name,
			action=data_result.action.value,
			rows=len(grid),
			crops=data_result.crops_count,
		)
		return SheetSyncReceipt(
			spreadsheet_id=spreadsheet_id,
			sheet_name=sheet_name,
			action=data_result.action,
			row_count=len(grid),
			crops_count=data_result.crops_count,
		)

	async def sync_workspace(self, client: GridSource) -> WorkspaceSyncReceipt:
		started_at = datetime.now(UTC)
		settings_service = SettingsService(self.db)
		workspace = await settings_service.get()
		if workspace is None or not workspace.spreadsheet_id:
			raise SyncValidationError("Workspace spreadsheet is not configured")

		spreadsheet_id = workspace.spreadsheet_id
		tracked = [name for name in workspace.sheet_names or [] if not self.is_qualifiers_sheet(name)]
		sheet_order = [self.settings.qualifiers_sheet_name, *tracked]

		receipts = []
		removed: list[str] = []
		synced_count = 0
		failed_count = 0

		for sheet_name in sheet_order:
			try:
				async with self.db.begin_nested():
					receipt = await self.sync_sheet(spreadsheet_id, sheet_name, client)
				receipts.append(receipt)
				synced_count += 1
			except SourceNotFoundError:
				async with self.db.begin_nested():
					await self.delete_sheet_by_field(spreadsheet_id, sheet_name)
				removed.append(sheet_name)
				receipts.append(
					SheetSyncReceipt(
						spreadsheet_id=spreadsheet_id,
						sheet_name=sheet_name,
						status="removed",
					)
				)
			except Exception as exc:
				logger.exception("sheet_sync_failed", spreadsheet_id=spreadsheet_id, sheet_name=sheet_name)
				failed_count += 1
				receipts.append(
					SheetSyncReceipt(
						spreadsheet_id=spreadsheet_id,
						sheet_name=sheet_name,
						status="failed",
						error=str(exc),
					)
				)

		if removed:
			await settings_service.remove_sheet_names(removed)

		overall_status = "ok"
		if failed_count > 0 and synced_count > 0:
			overall_status = "partial"
		elif failed_count > 0 and synced_count == 0:
			overall_status = "failed"

		return WorkspaceSyncReceipt(
			spreadsheet_id=spreadsheet_id,
			status=overall_status,
			synced_count=synced_count,
			failed_count=failed_count,
			removed_sheets=removed,
			sheets=receipts,
			started_at=started_at,
			completed_at=datetime.now(UTC),
		)

	# ── Persistence helpers ─────────────────────────────────────────────

	async def _get_snapshot(self, spreadsheet_id: str, range_key: str) -> SheetSnapshot | None:
		row = await self.db.execute(
			select(SheetSnapshot).where(
				SheetSnapshot.spreadsheet_id == spreadsheet_id,
				SheetSnapshot.range == range_key,
			)
		)
		return row.scalar_one_or_none()

	async def _delete_snapshot(self, spreadsheet_id: str, range_key: str) -> int:
		result = await self.db.execute(
			delete(SheetSnapshot).where(
				SheetSnapshot.spreadsheet_id == spreadsheet_id,
				SheetSnapshot.range == range_key,
			)
		)
		return int(result.rowcount or 0)

	async def _delete_plantings_for_field(self, field: str) -> int:
		result = await self.db.execute(delete(PlantingRecord).where(PlantingRecord.field == field))
		return int(result.rowcount or 0)

	async def _insert_plantings(self, parsed: Sequence[ParsedPlanting], synced_at: datetime) -> int:
		rows = [
			PlantingRecord(
				id=uuid.uuid4(),
				field=record.field,
				bed=record.bed,
				crop=record.crop,
				variety=record.variety,
				tray_count=record.tray_count,
				row_count=record.row_count,
				planted_date=record.planted_date,
				notes=record.notes,
				location=record.location,
				replanted_from=record.replanted_from.model_dump() if record.replanted_from else None,
				last_synced=synced_at,
			)
			for record in parsed
		]
		self.db.add_all(rows)
		return len(rows)

	async def _get_qualifier(self, name: str, location: str | None) -> QualifierDefinition | None:
		stmt = select(QualifierDefinition).where(QualifierDefinition.name == name)
		if location is None:
			stmt = stmt.where(QualifierDefinition.location.is_(None))
		else:
			stmt = stmt.where(QualifierDefinition.location == location)
		row = await self.db.execute(stmt)
		return row.scalar_one_or_none()

	async def _list_universal(self) -> list[UniversalQualifier]:
		row = await self.db.execute(select(UniversalQualifier).order_by(UniversalQualifier.display_order.asc()))
		return list(row.scalars().all())

	async def _delete_universal(self, row: UniversalQualifier) -> None:
		await self.db.delete(row)
