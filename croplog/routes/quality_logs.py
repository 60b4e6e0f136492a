"""Quality log routes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from croplog.auth.dependencies import require_admin, require_approved
from croplog.database import get_db
from croplog.schemas.quality_logs import (
	QualityLogCreate,
	QualityLogCreated,
	QualityLogDeleted,
	QualityLogListRead,
	QualityLogRead,
	QualityLogStats,
)
from croplog.services.quality_log_service import QualityLogService

router = APIRouter(prefix="/quality-logs", tags=["quality-logs"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="quality log failure")


def _to_list(logs: list) -> QualityLogListRead:
	return QualityLogListRead(items=[QualityLogRead.model_validate(log) for log in logs])


@router.post("", response_model=QualityLogCreated, status_code=status.HTTP_201_CREATED)
async def create_quality_log(
	payload: QualityLogCreate,
	request: Request,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_approved),
) -> QualityLogCreated:
	service = QualityLogService(db, getattr(request.app.state, "redis", None))
	try:
		log = await service.create(payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return QualityLogCreated(log_id=log.id, assessment_date=log.assessment_date)


@router.get("", response_model=QualityLogListRead)
async def list_quality_logs(
	request: Request,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_approved),
) -> QualityLogListRead:
	service = QualityLogService(db, getattr(request.app.state, "redis", None))
	try:
		return _to_list(await service.list_all())
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/recent", response_model=QualityLogListRead)
async def list_recent_quality_logs(
	request: Request,
	limit: int | None = Query(default=None, ge=1, le=500),
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_approved),
) -> QualityLogListRead:
	service = QualityLogService(db, getattr(request.app.state, "redis", None))
	try:
		return _to_list(await service.list_recent(limit))
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/stats", response_model=QualityLogStats)
async def get_quality_log_stats(
	request: Request,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_approved),
) -> QualityLogStats:
	service = QualityLogService(db, getattr(request.app.state, "redis", None))
	try:
		return await service.get_stats()
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/by-crop/{crop}", response_model=QualityLogListRead)
async def list_quality_logs_by_crop(
	crop: str,
	request: Request,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_approved),
) -> QualityLogListRead:
	service = QualityLogService(db, getattr(request.app.state, "redis", None))
	try:
		return _to_list(await service.list_by_crop(crop))
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/by-field/{field}", response_model=QualityLogListRead)
async def list_quality_logs_by_field(
	field: str,
	request: Request,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_approved),
) -> QualityLogListRead:
	service = QualityLogService(db, getattr(request.app.state, "redis", None))
	try:
		return _to_list(await service.list_by_field(field))
	except Exception as exc:
		raise _map_error(exc) from exc


@router.delete("/{log_id}", response_model=QualityLogDeleted)
async def delete_quality_log(
	log_id: uuid.UUID,
	request: Request,
	db: AsyncSession = Depends(get_db),
	_admin: object = Depends(require_admin),
) -> QualityLogDeleted:
	service = QualityLogService(db, getattr(request.app.state, "redis", None))
	try:
		await service.delete(log_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return QualityLogDeleted(log_id=log_id)
