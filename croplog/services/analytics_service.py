"""Analytics aggregation over quality logs: planning balance, weekly trend, answer mix."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import UTC, date, datetime, time, timedelta
from typing import Any

from redis.asyncio import Redis
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from croplog.models.quality import QualityLog
from croplog.schemas.analytics import (
	AnalyticsFilters,
	AnalyticsOverview,
	AnalyticsTotals,
	AnswerCount,
	GroupBreakdown,
	PlanningBreakdown,
	PlanningBucket,
	QuestionDistribution,
	WeeklyBucket,
)
from croplog.services.planning import planning_signal

ANALYTICS_VERSION_KEY = "croplog:analytics:version"
ANALYTICS_CACHE_TTL_SECONDS = 900


def _as_utc(value: datetime) -> datetime:
	if value.tzinfo is None:
		return value.replace(tzinfo=UTC)
	return value.astimezone(UTC)


def week_start(value: datetime) -> date:
	"""Monday of the UTC week containing ``value``; Sunday belongs to the week before."""
	day = _as_utc(value).date()
	return day - timedelta(days=day.weekday())


def _rate(count: int, total: int) -> float:
	if total == 0:
		return 0.0
	return round(count / total * 100, 2)


class _PlanningCounter:
	def __init__(self) -> None:
		self.counts = {bucket: 0 for bucket in PlanningBucket}

	def add(self, bucket: PlanningBucket | None) -> None:
		if bucket is not None:
			self.counts[bucket] += 1

	def breakdown(self) -> PlanningBreakdown:
		total = sum(self.counts.values())
		under_rate = _rate(self.counts[PlanningBucket.under], total)
		over_rate = _rate(self.counts[PlanningBucket.over], total)
		return PlanningBreakdown(
			total=total,
			under=self.counts[PlanningBucket.under],
			on_target=self.counts[PlanningBucket.on_target],
			over=self.counts[PlanningBucket.over],
			unknown=self.counts[PlanningBucket.unknown],
			under_rate=under_rate,
			on_target_rate=_rate(self.counts[PlanningBucket.on_target], total),
			over_rate=over_rate,
			unknown_rate=_rate(self.counts[PlanningBucket.unknown], total),
			balance=round(under_rate - over_rate, 2) if total else 0.0,
		)


def matches_filters(log: Any, filters: AnalyticsFilters) -> bool:
	if filters.crop and log.crop != filters.crop:
		return False
	if filters.field and log.field != filters.field:
		return False
	assessed = _as_utc(log.assessment_date)
	if filters.start_date and assessed < datetime.combine(filters.start_date, time.min, tzinfo=UTC):
		return False
	if filters.end_date and assessed >= datetime.combine(filters.end_date + timedelta(days=1), time.min, tzinfo=UTC):
		return False
	return True


def _group_breakdowns(
	totals: dict[str, int],
	counters: dict[str, _PlanningCounter],
) -> list[GroupBreakdown]:
	groups = [
		GroupBreakdown(key=key, total_logs=count, planning=counters[key].breakdown())
		for key, count in totals.items()
	]
	groups.sort(key=lambda group: (-group.total_logs, group.key))
	return groups


def _response_distribution(logs: Iterable[Any]) -> list[QuestionDistribution]:
	tallies: dict[str, dict[str, int]] = {}
	for log in logs:
		for response in log.responses or []:
			question = str(response.get("question") or "")
			if not question:
				continue
			answer = str(response.get("answer") or "")
			answers = tallies.setdefault(question, {})
			answers[answer] = answers.get(answer, 0) + 1

	distribution: list[QuestionDistribution] = []
	for question, answers in tallies.items():
		ranked = sorted(answers.items(), key=lambda item: (-item[1], item[0]))
		distribution.append(
			QuestionDistribution(
				question=question,
				total=sum(answers.values()),
				answers=[AnswerCount(answer=answer, count=count) for answer, count in ranked],
			)
		)
	return distribution


def build_overview(
	logs: Sequence[Any],
	filters: AnalyticsFilters | None = None,
	now: datetime | None = None,
) -> AnalyticsOverview:
	"""Aggregate quality logs into the analytics overview.

	``available_crops``/``available_fields`` are taken from every log passed
	in; all other numbers only count logs that pass ``filters``.  A log adds
	at most one planning data point, from its first planting-quantity
	response.
	"""
	filters = filters or AnalyticsFilters()
	filtered = [log for log in logs if matches_filters(log, filters)]

	overall = _PlanningCounter()
	crop_totals: dict[str, int] = {}
	field_totals: dict[str, int] = {}
	week_totals: dict[date, int] = {}
	crop_planning: dict[str, _PlanningCounter] = {}
	field_planning: dict[str, _PlanningCounter] = {}
	week_planning: dict[date, _PlanningCounter] = {}

	for log in filtered:
		bucket = planning_signal(log.responses)
		week = week_start(log.assessment_date)

		crop_totals[log.crop] = crop_totals.get(log.crop, 0) + 1
		field_totals[log.field] = field_totals.get(log.field, 0) + 1
		week_totals[week] = week_totals.get(week, 0) + 1

		overall.add(bucket)
		crop_planning.setdefault(log.crop, _PlanningCounter()).add(bucket)
		field_planning.setdefault(log.field, _PlanningCounter()).add(bucket)
		week_planning.setdefault(week, _PlanningCounter()).add(bucket)

	assessed = [_as_utc(log.assessment_date) for log in filtered]
	planning = overall.breakdown()

	return AnalyticsOverview(
		generated_at=now or datetime.now(UTC),
		filters=filters,
		totals=AnalyticsTotals(
			total_logs=len(filtered),
			planning_logs=planning.total,
			crops=len(crop_totals),
			fields=len(field_totals),
			first_assessment=min(assessed) if assessed else None,
			last_assessment=max(assessed) if assessed else None,
		),
		planning=planning,
		weekly=[
			WeeklyBucket(week_start=week, total_logs=week_totals[week], planning=week_planning[week].breakdown())
			for week in sorted(week_totals)
		],
		by_crop=_group_breakdowns(crop_totals, crop_planning),
		by_field=_group_breakdowns(field_totals, field_planning),
		responses=_response_distribution(filtered),
		available_crops=sorted({log.crop for log in logs if log.crop}),
		available_fields=sorted({log.field for log in logs if log.field}),
	)


class AnalyticsService:
	def __init__(self, db: AsyncSession, redis_client: Redis | None = None):
		self.db = db
		self.redis_client = redis_client

	async def compute_overview(self, filters: AnalyticsFilters | None = None) -> AnalyticsOverview:
		filters = filters or AnalyticsFilters()
		cache_key = await self._cache_key(filters)

		if cache_key is not None:
			cached = await self.redis_client.get(cache_key)
			if cached is not None:
				return AnalyticsOverview.model_validate_json(cached)

		# Full scan; filters are applied in memory so the unfiltered crop/field lists stay available.
		logs = await self._load_logs()
		overview = build_overview(logs, filters)

		if cache_key is not None:
			await self.redis_client.setex(cache_key, ANALYTICS_CACHE_TTL_SECONDS, overview.model_dump_json())

		return overview

	async def _cache_key(self, filters: AnalyticsFilters) -> str | None:
		if self.redis_client is None:
			return None
		version = int(await self.redis_client.get(ANALYTICS_VERSION_KEY) or 0)
		return f"croplog:analytics:overview:v{version}:{filters.model_dump_json()}"

	async def _load_logs(self) -> list[QualityLog]:
		row = await self.db.execute(select(QualityLog).order_by(QualityLog.assessment_date.asc()))
		return list(row.scalars().all())


async def invalidate_analytics_cache(redis_client: Redis | None) -> None:
	"""Retire every cached overview; called after quality logs change."""
	if redis_client is None:
		return
	await redis_client.incr(ANALYTICS_VERSION_KEY)
