"""Pydantic schemas for spreadsheet ingestion and planting records."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from croplog.models.enums import LocationEnum


class SyncAction(StrEnum):
	created = "created"
	updated = "updated"


class ReplantedFrom(BaseModel):
	crop: str = ""
	variety: str = ""
	date: str = ""
	notes: str = ""


class ParsedPlanting(BaseModel):
	field: str
	bed: str = ""
	crop: str
	variety: str = ""
	tray_count: str = ""
	row_count: str = ""
	planted_date: str = ""
	notes: str = ""
	location: LocationEnum | None = None
	replanted_from: ReplantedFrom | None = None


class PlantingRecordRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	field: str
	bed: str
	crop: str
	variety: str
	tray_count: str
	row_count: str
	planted_date: str
	notes: str
	location: LocationEnum | None = None
	replanted_from: ReplantedFrom | None = None
	last_synced: datetime


class PlantingRecordListRead(BaseModel):
	items: list[PlantingRecordRead]


class SheetDataSyncResult(BaseModel):
	action: SyncAction
	snapshot_id: uuid.UUID
	crops_count: int = 0


class FieldPurgeResult(BaseModel):
	spreadsheet_id: str
	field: str
	snapshots_deleted: int = 0
	crops_deleted: int = 0


class SheetSyncRequest(BaseModel):
	sheet_name: str = Field(min_length=1, max_length=255)


class SheetSyncReceipt(BaseModel):
	spreadsheet_id: str
	sheet_name: str
	status: str = "ok"
	action: SyncAction | None = None
	row_count: int = 0
	crops_count: int = 0
	qualifiers_count: int = 0
	universal_count: int = 0
	error: str | None = None


class WorkspaceSyncReceipt(BaseModel):
	spreadsheet_id: str
	status: str
	synced_count: int = 0
	failed_count: int = 0
	removed_sheets: list[str] = Field(default_factory=list)
	sheets: list[SheetSyncReceipt] = Field(default_factory=list)
	started_at: datetime
	completed_at: datetime


class SpreadsheetInfo(BaseModel):
	id: str
	name: str
	modified_time: str = ""
	owner_name: str = "Unknown"
	owner_email: str = ""


class SpreadsheetListRead(BaseModel):
	spreadsheets: list[SpreadsheetInfo]


class SheetInfo(BaseModel):
	sheet_id: int = 0
	title: str
	index: int = 0


class SheetTabsRead(BaseModel):
	spreadsheet_id: str
	spreadsheet_name: str
	sheets: list[SheetInfo] = Field(default_factory=list)


class SpreadsheetFileMetadata(BaseModel):
	modified_time: str | None = None
	name: str | None = None


class SheetGridRead(BaseModel):
	spreadsheet_id: str
	spreadsheet_name: str
	sheet_name: str
	range: str | None = None
	values: list[list[str]] = Field(default_factory=list)


class LastSyncRead(BaseModel):
	last_synced: datetime | None = None


class NameListRead(BaseModel):
	items: list[str] = Field(default_factory=list)


def planting_payload(record: ParsedPlanting) -> dict[str, Any]:
	"""JSON-ready dict of a parsed planting, as stored in snapshot ``parsed_data``."""
	return record.model_dump(mode="json")
