"""Workspace settings: the single shared spreadsheet configuration row."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from croplog.models.settings import WORKSPACE_SETTINGS_ID, WorkspaceSettings
from croplog.schemas.settings import WorkspaceSettingsUpsert
from croplog.services.errors import RecordNotFoundError


def _dedupe_names(names: Sequence[str]) -> list[str]:
	cleaned = [name.strip() for name in names if name and name.strip()]
	return list(dict.fromkeys(cleaned))


class SettingsService:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def get(self) -> WorkspaceSettings | None:
		row = await self.db.execute(
			select(WorkspaceSettings).where(WorkspaceSettings.id == WORKSPACE_SETTINGS_ID)
		)
		return row.scalar_one_or_none()

	async def require(self) -> WorkspaceSettings:
		settings_row = await self.get()
		if settings_row is None:
			raise RecordNotFoundError("Workspace settings are not configured")
		return settings_row

	async def is_configured(self) -> bool:
		settings_row = await self.get()
		return settings_row is not None and bool(settings_row.spreadsheet_id)

	async def upsert(
		self,
		payload: WorkspaceSettingsUpsert,
		*,
		admin_user_id: str | None = None,
		admin_email: str | None = None,
	) -> WorkspaceSettings:
		settings_row = await self.get()
		sheet_names = _dedupe_names(payload.sheet_names)
		if settings_row is None:
			settings_row = WorkspaceSettings(
				id=WORKSPACE_SETTINGS_ID,
				spreadsheet_id=payload.spreadsheet_id,
				spreadsheet_name=payload.spreadsheet_name,
				sheet_names=sheet_names,
				admin_user_id=admin_user_id,
				admin_email=admin_email,
			)
			self.db.add(settings_row)
		else:
			settings_row.spreadsheet_id = payload.spreadsheet_id
			settings_row.spreadsheet_name = payload.spreadsheet_name
			settings_row.sheet_names = sheet_names
			if admin_user_id is not None:
				settings_row.admin_user_id = admin_user_id
			if admin_email is not None:
				settings_row.admin_email = admin_email
		await self.db.flush()
		await self.db.refresh(settings_row)
		return settings_row

	async def update_sheet_names(self, sheet_names: Sequence[str]) -> WorkspaceSettings:
		settings_row = await self.require()
		settings_row.sheet_names = _dedupe_names(sheet_names)
		await self.db.flush()
		await self.db.refresh(settings_row)
		return settings_row

	async def remove_sheet_names(self, removed: Sequence[str]) -> WorkspaceSettings:
		settings_row = await self.require()
		dropped = set(removed)
		return await self.update_sheet_names([name for name in settings_row.sheet_names or [] if name not in dropped])
