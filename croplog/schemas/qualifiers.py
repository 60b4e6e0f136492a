"""Pydantic schemas for qualifier definitions and universal qualifiers."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from croplog.schemas.sheets import SyncAction


class Assessment(BaseModel):
	name: str
	options: list[str] = Field(default_factory=list)


class QualifierDefinitionIn(BaseModel):
	name: str
	location: str | None = None
	assessments: list[Assessment] = Field(default_factory=list)


class UniversalQualifierIn(BaseModel):
	name: str
	options: list[str] = Field(default_factory=list)
	display_order: int = 0


class QualifiersParseResult(BaseModel):
	vegetables: list[QualifierDefinitionIn] = Field(default_factory=list)
	universal_qualifiers: list[UniversalQualifierIn] = Field(default_factory=list)


class QualifierRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	name: str
	location: str | None = None
	assessments: list[Assessment] = Field(default_factory=list)
	last_synced: datetime


class QualifierListRead(BaseModel):
	items: list[QualifierRead]


class UniversalQualifierRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	name: str
	options: list[str] = Field(default_factory=list)
	display_order: int
	last_synced: datetime


class UniversalQualifierListRead(BaseModel):
	items: list[UniversalQualifierRead]


class QualifierSyncItem(BaseModel):
	id: uuid.UUID
	name: str
	location: str | None = None
	action: SyncAction


class QualifierSyncResult(BaseModel):
	count: int = 0
	results: list[QualifierSyncItem] = Field(default_factory=list)


class UniversalSyncResult(BaseModel):
	created: list[str] = Field(default_factory=list)
	updated: list[str] = Field(default_factory=list)
	deleted: list[str] = Field(default_factory=list)


class QualifierResolution(BaseModel):
	"""Questions to ask for one planting: universal ones first, then crop-specific."""

	crop: str
	location: str | None = None
	qualifier: QualifierRead | None = None
	universal: list[UniversalQualifierRead] = Field(default_factory=list)
