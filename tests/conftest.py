"""Shared pytest fixtures: async test client, fake DB session, fake Redis."""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from croplog.auth.dependencies import get_current_user
from croplog.auth.jwt import create_access_token
from croplog.database import get_db
from croplog.main import app
from croplog.models.enums import UserRoleEnum


class _FakeSavepoint:
    async def __aenter__(self) -> _FakeSavepoint:
        return self

    async def __aexit__(self, *_exc: object) -> bool:
        return False


class FakeAsyncSession:
    def __init__(self) -> None:
        self.commit = AsyncMock()
        self.rollback = AsyncMock()
        self.close = AsyncMock()
        self.execute = AsyncMock()
        self.flush = AsyncMock()
        self.refresh = AsyncMock()
        self.delete = AsyncMock()
        self.added: list[Any] = []
        self.savepoints = 0

    def add(self, obj: Any) -> None:
        self.added.append(obj)

    def add_all(self, objs: list[Any]) -> None:
        self.added.extend(objs)

    def begin_nested(self) -> _FakeSavepoint:
        self.savepoints += 1
        return _FakeSavepoint()


class FakeRedis:
    def __init__(self) -> None:
        self.ping = AsyncMock(return_value=True)
        self._counter: dict[str, int] = {}
        self._values: dict[str, str] = {}
        self.incr = AsyncMock(side_effect=self._incr)
        self.expire = AsyncMock(return_value=True)
        self.get = AsyncMock(side_effect=self._get)
        self.setex = AsyncMock(side_effect=self._setex)

    async def _incr(self, key: str) -> int:
        value = self._counter.get(key, 0) + 1
        self._counter[key] = value
        return value

    async def _get(self, key: str) -> str | None:
        if key in self._counter:
            return str(self._counter[key])
        return self._values.get(key)

    async def _setex(self, key: str, _ttl: int, value: str) -> bool:
        self._values[key] = value
        return True

    def reset_counters(self) -> None:
        self._counter.clear()


def scalar_result(value: Any) -> MagicMock:
    """Mimic ``Result`` for ``scalar_one_or_none()`` lookups."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


def scalars_result(values: list[Any]) -> MagicMock:
    """Mimic ``Result`` for ``scalars().all()`` listings."""
    result = MagicMock()
    result.scalars.return_value.all.return_value = values
    return result


def rowcount_result(count: int) -> MagicMock:
    result = MagicMock()
    result.rowcount = count
    return result


def make_user(role: UserRoleEnum = UserRoleEnum.admin, is_approved: bool = True) -> Any:
    return type(
        "UserStub",
        (),
        {
            "id": uuid.uuid4(),
            "role": role,
            "is_active": True,
            "is_approved": is_approved,
            "email": f"{role.value}@test.local",
        },
    )()


@pytest.fixture
def fake_db_session() -> FakeAsyncSession:
    """A lightweight async-session stub for dependency overrides in API tests."""
    return FakeAsyncSession()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@asynccontextmanager
async def _noop_lifespan(_: Any) -> AsyncGenerator[None, None]:
    yield


@pytest.fixture
async def client(fake_db_session: FakeAsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTPX async client with lifespan disabled, DB mocked and an approved admin user."""

    async def override_get_db() -> AsyncGenerator[Any, None]:
        yield fake_db_session

    async def override_current_user() -> Any:
        return make_user()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_current_user
    app.state.redis = None
    original_lifespan = app.router.lifespan_context
    app.router.lifespan_context = _noop_lifespan

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client

    app.router.lifespan_context = original_lifespan
    app.dependency_overrides.clear()
    app.state.redis = None


@pytest.fixture
async def auth_client(fake_db_session: FakeAsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTPX async client with DB override only (real auth dependencies active)."""

    async def override_get_db() -> AsyncGenerator[Any, None]:
        yield fake_db_session

    app.dependency_overrides[get_db] = override_get_db
    app.state.redis = None
    original_lifespan = app.router.lifespan_context
    app.router.lifespan_context = _noop_lifespan

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client

    app.router.lifespan_context = original_lifespan
    app.dependency_overrides.clear()


@pytest.fixture
def auth_user_id() -> uuid.UUID:
    return uuid.UUID("11111111-1111-1111-1111-111111111111")


@pytest.fixture
def access_token(auth_user_id: uuid.UUID) -> str:
    return create_access_token(str(auth_user_id), expires_minutes=30)


@pytest.fixture
def now_utc() -> datetime:
    return datetime.now(UTC)
