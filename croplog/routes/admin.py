"""Admin-only maintenance routes (demo data)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from croplog.auth.dependencies import require_admin
from croplog.database import get_db
from croplog.schemas.settings import DemoClearResult, DemoSeedResult
from croplog.services.demo_service import DemoService

router = APIRouter(prefix="/admin", tags=["admin"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="demo data failure")


@router.post("/demo", response_model=DemoSeedResult, status_code=status.HTTP_201_CREATED)
async def seed_demo_data(
	request: Request,
	db: AsyncSession = Depends(get_db),
	_admin: object = Depends(require_admin),
) -> DemoSeedResult:
	service = DemoService(db, getattr(request.app.state, "redis", None))
	try:
		return await service.seed()
	except Exception as exc:
		raise _map_error(exc) from exc


@router.delete("/demo", response_model=DemoClearResult)
async def clear_demo_data(
	request: Request,
	db: AsyncSession = Depends(get_db),
	_admin: object = Depends(require_admin),
) -> DemoClearResult:
	service = DemoService(db, getattr(request.app.state, "redis", None))
	try:
		return await service.clear()
	except Exception as exc:
		raise _map_error(exc) from exc
