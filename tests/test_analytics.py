from __future__ import annotations

from datetime import UTC, date, datetime
from types import SimpleNamespace

import pytest
from httpx import AsyncClient

from conftest import FakeAsyncSession, FakeRedis, scalars_result
from croplog.schemas.analytics import AnalyticsFilters
from croplog.services.analytics_service import (
    ANALYTICS_VERSION_KEY,
    AnalyticsService,
    build_overview,
    invalidate_analytics_cache,
    matches_filters,
    week_start,
)


def _log(crop: str, field: str, when: datetime, answer: str | None = None, **extra: str) -> SimpleNamespace:
    responses = []
    if answer is not None:
        responses.append({"question": "Planting quantity?", "answer": answer})
    responses.extend({"question": question, "answer": value} for question, value in extra.items())
    return SimpleNamespace(crop=crop, field=field, assessment_date=when, responses=responses)


JUNE_10 = datetime(2025, 6, 10, 9, 0, tzinfo=UTC)


def test_balance_for_under_planted_crop() -> None:
    logs = [
        _log("Tomato", "Field 3", JUNE_10, "too little"),
        _log("Tomato", "Field 3", JUNE_10, "too little"),
        _log("Tomato", "Field 3", JUNE_10, "too little"),
        _log("Tomato", "Field 3", JUNE_10, "just right"),
    ]
    overview = build_overview(logs)

    tomato = overview.by_crop[0]
    assert tomato.key == "Tomato"
    assert tomato.planning.under == 3
    assert tomato.planning.on_target == 1
    assert tomato.planning.over == 0
    assert tomato.planning.under_rate == 75.0
    assert tomato.planning.balance == 75.0
    assert overview.planning.balance == 75.0


def test_logs_without_planning_question_only_count_in_totals() -> None:
    logs = [
        _log("Kale", "Field 1", JUNE_10, "too much"),
        _log("Kale", "Field 1", JUNE_10, None, Color="green"),
    ]
    overview = build_overview(logs)

    assert overview.totals.total_logs == 2
    assert overview.totals.planning_logs == 1
    assert overview.planning.total == 1
    assert overview.planning.over == 1
    assert overview.planning.over_rate == 100.0
    assert overview.planning.balance == -100.0
    assert overview.by_crop[0].total_logs == 2


def test_unknown_answers_are_counted_separately() -> None:
    overview = build_overview([_log("Kale", "Field 1", JUNE_10, "green")])

    assert overview.planning.unknown == 1
    assert overview.planning.unknown_rate == 100.0
    assert overview.planning.balance == 0.0


def test_sunday_belongs_to_preceding_monday() -> None:
    sunday = datetime(2025, 6, 15, 23, 30, tzinfo=UTC)
    assert week_start(sunday) == date(2025, 6, 9)
    assert week_start(datetime(2025, 6, 16, 0, 5, tzinfo=UTC)) == date(2025, 6, 16)

    overview = build_overview([_log("Kale", "Field 1", sunday, "too much")])
    assert [bucket.week_start for bucket in overview.weekly] == [date(2025, 6, 9)]


def test_weekly_buckets_sorted_ascending() -> None:
    logs = [
        _log("Kale", "Field 1", datetime(2025, 6, 24, tzinfo=UTC), "too much"),
        _log("Kale", "Field 1", datetime(2025, 6, 3, tzinfo=UTC), "not enough"),
        _log("Kale", "Field 1", datetime(2025, 6, 4, tzinfo=UTC), "just right"),
    ]
    overview = build_overview(logs)

    assert [bucket.week_start for bucket in overview.weekly] == [date(2025, 6, 2), date(2025, 6, 23)]
    assert overview.weekly[0].total_logs == 2
    assert overview.totals.first_assessment == datetime(2025, 6, 3, tzinfo=UTC)
    assert overview.totals.last_assessment == datetime(2025, 6, 24, tzinfo=UTC)


def test_filters_narrow_counts_but_not_available_lists() -> None:
    logs = [
        _log("Tomato", "HT 1", datetime(2025, 6, 2, tzinfo=UTC), "too much"),
        _log("Tomato", "Field 3", datetime(2025, 6, 12, tzinfo=UTC), "not enough"),
        _log("Pepper", "Field 3", datetime(2025, 6, 12, tzinfo=UTC), "just right"),
    ]
    filters = AnalyticsFilters(start_date=date(2025, 6, 10), end_date=date(2025, 6, 12), crop="Tomato")
    overview = build_overview(logs, filters)

    assert overview.totals.total_logs == 1
    assert overview.by_field[0].key == "Field 3"
    assert overview.available_crops == ["Pepper", "Tomato"]
    assert overview.available_fields == ["Field 3", "HT 1"]


def test_end_date_is_inclusive() -> None:
    filters = AnalyticsFilters(end_date=date(2025, 6, 12))
    assert matches_filters(_log("Kale", "F", datetime(2025, 6, 12, 23, 59, tzinfo=UTC)), filters)
    assert not matches_filters(_log("Kale", "F", datetime(2025, 6, 13, 0, 0, tzinfo=UTC)), filters)


def test_response_distribution_ranks_answers() -> None:
    logs = [
        _log("Kale", "Field 1", JUNE_10, "too much"),
        _log("Kale", "Field 1", JUNE_10, "too much"),
        _log("Kale", "Field 1", JUNE_10, "not enough"),
    ]
    overview = build_overview(logs)

    distribution = overview.responses[0]
    assert distribution.question == "Planting quantity?"
    assert distribution.total == 3
    assert [(a.answer, a.count) for a in distribution.answers] == [("too much", 2), ("not enough", 1)]


def test_groups_sorted_by_volume() -> None:
    logs = [
        _log("Basil", "Field 1", JUNE_10, "too much"),
        _log("Tomato", "Field 1", JUNE_10, "too much"),
        _log("Tomato", "Field 1", JUNE_10, "too much"),
    ]
    overview = build_overview(logs)
    assert [group.key for group in overview.by_crop] == ["Tomato", "Basil"]


def test_empty_store() -> None:
    overview = build_overview([])
    assert overview.totals.total_logs == 0
    assert overview.planning.balance == 0.0
    assert overview.weekly == []


@pytest.mark.asyncio
async def test_overview_endpoint(client: AsyncClient, fake_db_session: FakeAsyncSession) -> None:
    fake_db_session.execute.return_value = scalars_result(
        [
            _log("Tomato", "HT 1", JUNE_10, "too little"),
            _log("Tomato", "HT 1", JUNE_10, "too much"),
        ]
    )

    response = await client.get("/api/v1/analytics/overview", params={"crop": "Tomato"})
    assert response.status_code == 200
    body = response.json()
    assert body["totals"]["total_logs"] == 2
    assert body["planning"]["balance"] == 0.0
    assert body["filters"]["crop"] == "Tomato"
    assert body["weekly"][0]["week_start"] == "2025-06-09"


@pytest.mark.asyncio
async def test_overview_rejects_inverted_range(client: AsyncClient) -> None:
    response = await client.get(
        "/api/v1/analytics/overview",
        params={"start_date": "2025-06-20", "end_date": "2025-06-01"},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_overview_is_served_from_cache_until_logs_change(
    fake_db_session: FakeAsyncSession, fake_redis: FakeRedis
) -> None:
    fake_db_session.execute.return_value = scalars_result([_log("Tomato", "Field 3", JUNE_10, "too much")])
    service = AnalyticsService(fake_db_session, fake_redis)
    filters = AnalyticsFilters(crop="Tomato")

    first = await service.compute_overview(filters)
    second = await service.compute_overview(filters)

    assert second == first
    assert fake_db_session.execute.await_count == 1
    fake_redis.setex.assert_awaited_once()
    assert fake_redis.setex.await_args.args[1] == 900

    await invalidate_analytics_cache(fake_redis)
    fake_db_session.execute.return_value = scalars_result([])
    refreshed = await service.compute_overview(filters)

    assert fake_db_session.execute.await_count == 2
    assert refreshed.totals.total_logs == 0
    assert fake_redis._counter[ANALYTICS_VERSION_KEY] == 1


@pytest.mark.asyncio
async def test_cache_key_depends_on_filters(fake_db_session: FakeAsyncSession, fake_redis: FakeRedis) -> None:
    fake_db_session.execute.return_value = scalars_result([])
    service = AnalyticsService(fake_db_session, fake_redis)

    await service.compute_overview(AnalyticsFilters(crop="Tomato"))
    await service.compute_overview(AnalyticsFilters(crop="Kale"))
    await service.compute_overview()

    assert fake_db_session.execute.await_count == 3
    keys = {call.args[0] for call in fake_redis.setex.await_args_list}
    assert len(keys) == 3


@pytest.mark.asyncio
async def test_overview_without_redis_reads_the_store_every_time(fake_db_session: FakeAsyncSession) -> None:
    fake_db_session.execute.return_value = scalars_result([])
    service = AnalyticsService(fake_db_session)

    await service.compute_overview()
    await service.compute_overview()

    assert fake_db_session.execute.await_count == 2
    await invalidate_analytics_cache(None)
