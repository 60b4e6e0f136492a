"""Qualifier definition lookup routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from croplog.auth.dependencies import require_approved
from croplog.database import get_db
from croplog.schemas.qualifiers import (
	QualifierListRead,
	QualifierRead,
	QualifierResolution,
	UniversalQualifierListRead,
	UniversalQualifierRead,
)
from croplog.services.catalog_service import CatalogService

router = APIRouter(prefix="/qualifiers", tags=["qualifiers"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="qualifier lookup failure")


@router.get("", response_model=QualifierListRead)
async def list_qualifiers(
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_approved),
) -> QualifierListRead:
	service = CatalogService(db)
	try:
		rows = await service.list_qualifiers()
	except Exception as exc:
		raise _map_error(exc) from exc
	return QualifierListRead(items=[QualifierRead.model_validate(row) for row in rows])


@router.get("/universal", response_model=UniversalQualifierListRead)
async def list_universal_qualifiers(
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_approved),
) -> UniversalQualifierListRead:
	service = CatalogService(db)
	try:
		rows = await service.list_universal_qualifiers()
	except Exception as exc:
		raise _map_error(exc) from exc
	return UniversalQualifierListRead(items=[UniversalQualifierRead.model_validate(row) for row in rows])


@router.get("/resolve", response_model=QualifierResolution)
async def resolve_qualifier(
	crop: str = Query(min_length=1),
	field: str | None = Query(default=None),
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_approved),
) -> QualifierResolution:
	service = CatalogService(db)
	try:
		qualifier = await service.resolve_qualifier(crop, field)
		universal = await service.list_universal_qualifiers()
	except Exception as exc:
		raise _map_error(exc) from exc
	return QualifierResolution(
		crop=crop,
		location=qualifier.location if qualifier else None,
		qualifier=QualifierRead.model_validate(qualifier) if qualifier else None,
		universal=[UniversalQualifierRead.model_validate(row) for row in universal],
	)
