"""Pydantic schemas for quality log endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class LogResponse(BaseModel):
	question: str = Field(min_length=1)
	answer: str


class QualityLogCreate(BaseModel):
	"""Client payload.  Timestamps are assigned by the server, never read from here."""

	planting_record_id: uuid.UUID | None = None
	crop: str = Field(min_length=1, max_length=255)
	variety: str = ""
	field: str = Field(min_length=1, max_length=255)
	bed: str = ""
	date_planted: str = ""
	tray_count: str = ""
	row_count: str = ""
	planting_notes: str = ""
	responses: list[LogResponse] = Field(default_factory=list)
	notes: str | None = None


class QualityLogRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	planting_record_id: uuid.UUID | None = None
	crop: str
	variety: str
	field: str
	bed: str
	date_planted: str
	tray_count: str
	row_count: str
	planting_notes: str
	assessment_date: datetime
	responses: list[LogResponse] = Field(default_factory=list)
	notes: str | None = None
	created_at: datetime


class QualityLogListRead(BaseModel):
	items: list[QualityLogRead]


class QualityLogCreated(BaseModel):
	log_id: uuid.UUID
	assessment_date: datetime


class QualityLogDeleted(BaseModel):
	log_id: uuid.UUID
	deleted: bool = True


class QualityLogStats(BaseModel):
	total_logs: int = 0
	by_crop: dict[str, int] = Field(default_factory=dict)
	by_field: dict[str, int] = Field(default_factory=dict)
	response_stats: dict[str, dict[str, int]] = Field(default_factory=dict)
