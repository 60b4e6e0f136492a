"""Quality log persistence: append, list, hard delete and summary stats."""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import UTC, datetime

from redis.asyncio import Redis
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from croplog.config import get_settings
from croplog.models.quality import QualityLog
from croplog.schemas.quality_logs import QualityLogCreate, QualityLogStats
from croplog.services.analytics_service import invalidate_analytics_cache
from croplog.services.errors import RecordNotFoundError


def summarize_logs(logs: Sequence[QualityLog]) -> QualityLogStats:
	stats = QualityLogStats(total_logs=len(logs))
	for log in logs:
		stats.by_crop[log.crop] = stats.by_crop.get(log.crop, 0) + 1
		stats.by_field[log.field] = stats.by_field.get(log.field, 0) + 1
		for response in log.responses or []:
			question = str(response.get("question") or "")
			answer = str(response.get("answer") or "")
			if not question:
				continue
			answers = stats.response_stats.setdefault(question, {})
			answers[answer] = answers.get(answer, 0) + 1
	return stats


class QualityLogService:
	def __init__(self, db: AsyncSession, redis_client: Redis | None = None):
		self.db = db
		self.redis_client = redis_client

	async def create(self, payload: QualityLogCreate) -> QualityLog:
		now = datetime.now(UTC)
		log = QualityLog(
			id=uuid.uuid4(),
			planting_record_id=payload.planting_record_id,
			crop=payload.crop,
			variety=payload.variety,
			field=payload.field,
			bed=payload.bed,
			date_planted=payload.date_planted,
			tray_count=payload.tray_count,
			row_count=payload.row_count,
			planting_notes=payload.planting_notes,
			assessment_date=now,
			responses=[response.model_dump() for response in payload.responses],
			notes=payload.notes,
			created_at=now,
		)
		self.db.add(log)
		await self.db.flush()
		await invalidate_analytics_cache(self.redis_client)
		return log

	async def list_recent(self, limit: int | None = None) -> list[QualityLog]:
		limit = limit or get_settings().recent_logs_default_limit
		if limit < 1:
			raise ValueError("limit must be a positive integer")
		stmt = select(QualityLog).order_by(QualityLog.assessment_date.desc()).limit(limit)
		return await self._fetch(stmt)

	async def list_all(self) -> list[QualityLog]:
		return await self._fetch(select(QualityLog).order_by(QualityLog.assessment_date.desc()))

	async def list_by_crop(self, crop: str) -> list[QualityLog]:
		stmt = select(QualityLog).where(QualityLog.crop == crop).order_by(QualityLog.assessment_date.desc())
		return await self._fetch(stmt)

	async def list_by_field(self, field: str) -> list[QualityLog]:
		stmt = select(QualityLog).where(QualityLog.field == field).order_by(QualityLog.assessment_date.desc())
		return await self._fetch(stmt)

	async def get(self, log_id: uuid.UUID) -> QualityLog:
		row = await self.db.execute(select(QualityLog).where(QualityLog.id == log_id))
		log = row.scalar_one_or_none()
		if log is None:
			raise RecordNotFoundError(f"Quality log {log_id} not found")
		return log

	async def delete(self, log_id: uuid.UUID) -> None:
		log = await self.get(log_id)
		await self.db.delete(log)
		await self.db.flush()
		await invalidate_analytics_cache(self.redis_client)

	async def get_stats(self) -> QualityLogStats:
		return summarize_logs(await self.list_all())

	async def _fetch(self, stmt) -> list[QualityLog]:
		row = await self.db.execute(stmt)
		return list(row.scalars().all())
