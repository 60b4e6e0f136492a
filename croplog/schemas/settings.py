"""Pydantic schemas for workspace settings and demo data endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class WorkspaceSettingsUpsert(BaseModel):
	spreadsheet_id: str = Field(min_length=1, max_length=255)
	spreadsheet_name: str = Field(default="", max_length=512)
	sheet_names: list[str] = Field(default_factory=list)


class SheetNamesUpdate(BaseModel):
	sheet_names: list[str]


class WorkspaceSettingsRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	spreadsheet_id: str
	spreadsheet_name: str
	sheet_names: list[str] = Field(default_factory=list)
	admin_user_id: str | None = None
	admin_email: str | None = None
	updated_at: datetime


class WorkspaceConfiguredRead(BaseModel):
	configured: bool


class DemoSeedResult(BaseModel):
	crops: int = 0
	qualifiers: int = 0
	universal_qualifiers: int = 0
	quality_logs: int = 0


class DemoClearResult(BaseModel):
	deleted: dict[str, int] = Field(default_factory=dict)
