"""Planning analytics routes."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from croplog.auth.dependencies import require_approved
from croplog.database import get_db
from croplog.schemas.analytics import AnalyticsFilters, AnalyticsOverview
from croplog.services.analytics_service import AnalyticsService

router = APIRouter(prefix="/analytics", tags=["analytics"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="analytics failure")


@router.get("/overview", response_model=AnalyticsOverview)
async def get_overview(
	request: Request,
	start_date: date | None = Query(default=None),
	end_date: date | None = Query(default=None),
	crop: str | None = Query(default=None),
	field: str | None = Query(default=None),
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_approved),
) -> AnalyticsOverview:
	service = AnalyticsService(db, getattr(request.app.state, "redis", None))
	try:
		filters = AnalyticsFilters(start_date=start_date, end_date=end_date, crop=crop or None, field=field or None)
		return await service.compute_overview(filters)
	except Exception as exc:
		raise _map_error(exc) from exc
