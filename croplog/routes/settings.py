"""Workspace settings routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from croplog.auth.dependencies import require_admin, require_approved
from croplog.database import get_db
from croplog.schemas.settings import (
	SheetNamesUpdate,
	WorkspaceConfiguredRead,
	WorkspaceSettingsRead,
	WorkspaceSettingsUpsert,
)
from croplog.services.settings_service import SettingsService

router = APIRouter(prefix="/settings", tags=["settings"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="settings failure")


@router.get("", response_model=WorkspaceSettingsRead)
async def get_settings_row(
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_approved),
) -> WorkspaceSettingsRead:
	service = SettingsService(db)
	try:
		return WorkspaceSettingsRead.model_validate(await service.require())
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/configured", response_model=WorkspaceConfiguredRead)
async def get_configured(
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_approved),
) -> WorkspaceConfiguredRead:
	service = SettingsService(db)
	try:
		return WorkspaceConfiguredRead(configured=await service.is_configured())
	except Exception as exc:
		raise _map_error(exc) from exc


@router.put("", response_model=WorkspaceSettingsRead)
async def upsert_settings(
	payload: WorkspaceSettingsUpsert,
	db: AsyncSession = Depends(get_db),
	admin: Any = Depends(require_admin),
) -> WorkspaceSettingsRead:
	service = SettingsService(db)
	try:
		row = await service.upsert(
			payload,
			admin_user_id=str(admin.id),
			admin_email=getattr(admin, "email", None),
		)
	except Exception as exc:
		raise _map_error(exc) from exc
	return WorkspaceSettingsRead.model_validate(row)


@router.patch("/sheet-names", response_model=WorkspaceSettingsRead)
async def update_sheet_names(
	payload: SheetNamesUpdate,
	db: AsyncSession = Depends(get_db),
	_admin: object = Depends(require_admin),
) -> WorkspaceSettingsRead:
	service = SettingsService(db)
	try:
		row = await service.update_sheet_names(payload.sheet_names)
	except Exception as exc:
		raise _map_error(exc) from exc
	return WorkspaceSettingsRead.model_validate(row)
