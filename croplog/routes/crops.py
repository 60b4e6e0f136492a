"""Planting record catalog routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from croplog.auth.dependencies import require_approved
from croplog.database import get_db
from croplog.schemas.sheets import LastSyncRead, NameListRead, PlantingRecordListRead, PlantingRecordRead
from croplog.services.catalog_service import CatalogService

router = APIRouter(prefix="/crops", tags=["crops"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="crop catalog failure")


@router.get("", response_model=PlantingRecordListRead)
async def list_crops(
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_approved),
) -> PlantingRecordListRead:
	service = CatalogService(db)
	try:
		records = await service.list_crops()
	except Exception as exc:
		raise _map_error(exc) from exc
	return PlantingRecordListRead(items=[PlantingRecordRead.model_validate(record) for record in records])


@router.get("/by-field/{field}", response_model=PlantingRecordListRead)
async def list_crops_by_field(
	field: str,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_approved),
) -> PlantingRecordListRead:
	service = CatalogService(db)
	try:
		records = await service.list_crops_by_field(field)
	except Exception as exc:
		raise _map_error(exc) from exc
	return PlantingRecordListRead(items=[PlantingRecordRead.model_validate(record) for record in records])


@router.get("/fields", response_model=NameListRead)
async def list_fields(
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_approved),
) -> NameListRead:
	service = CatalogService(db)
	try:
		return NameListRead(items=await service.unique_fields())
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/names", response_model=NameListRead)
async def list_crop_names(
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_approved),
) -> NameListRead:
	service = CatalogService(db)
	try:
		return NameListRead(items=await service.unique_crops())
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/varieties", response_model=NameListRead)
async def list_varieties(
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_approved),
) -> NameListRead:
	service = CatalogService(db)
	try:
		return NameListRead(items=await service.unique_varieties())
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/last-sync", response_model=LastSyncRead)
async def get_last_sync(
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_approved),
) -> LastSyncRead:
	service = CatalogService(db)
	try:
		return LastSyncRead(last_synced=await service.last_sync_time())
	except Exception as exc:
		raise _map_error(exc) from exc
