"""Shared pytest fixtures: in-memory database, frozen clock, wired engine, HTTP client."""

from __future__ import annotations

import random
import uuid
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any
from unittest.mock import AsyncMock
from zoneinfo import ZoneInfo

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from sprout.database import get_db
from sprout.main import app
from sprout.models import Base, ChildProfile, PlantType
from sprout.models.enums import DifficultyEnum, NotificationTypeEnum, RarityEnum
from sprout.services.children import ensure_child_profile
from sprout.services.engine import Engine, build_engine

GAME_ZONE = ZoneInfo("Asia/Seoul")


class FrozenClock:
	"""Callable clock the services read ``now`` from; tests move it explicitly."""

	def __init__(self, now: datetime) -> None:
		self.now = now

	def __call__(self) -> datetime:
		return self.now

	def advance(self, **delta: float) -> datetime:
		self.now = self.now + timedelta(**delta)
		return self.now


@dataclass
class RecordingNotifier:
	calls: list[dict[str, Any]] = field(default_factory=list)
	fail: bool = False

	async def notify(
		self,
		user_id: uuid.UUID,
		title: str,
		content: str,
		notification_type: NotificationTypeEnum = NotificationTypeEnum.SYSTEM,
		related_id: uuid.UUID | None = None,
	) -> None:
		if self.fail:
			raise ConnectionError("notification backend unavailable")
		self.calls.append(
			{
				"user_id": user_id,
				"title": title,
				"content": content,
				"notification_type": notification_type,
				"related_id": related_id,
			}
		)


class FakeAsyncSession:
	def __init__(self) -> None:
		self.commit = AsyncMock()
		self.rollback = AsyncMock()
		self.close = AsyncMock()
		self.execute = AsyncMock()


class FakeRedis:
	def __init__(self) -> None:
		self.publish = AsyncMock(return_value=1)


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
	"""In-memory SQLite with real SAVEPOINT support (pysqlite's implicit BEGIN is disabled)."""
	engine = create_async_engine(
		"sqlite+aiosqlite:///:memory:",
		poolclass=StaticPool,
		connect_args={"check_same_thread": False},
	)

	@event.listens_for(engine.sync_engine, "connect")
	def _on_connect(dbapi_connection: Any, _record: Any) -> None:
		dbapi_connection.isolation_level = None

	@event.listens_for(engine.sync_engine, "begin")
	def _on_begin(conn: Any) -> None:
		conn.exec_driver_sql("BEGIN")

	async with engine.begin() as conn:
		await conn.run_sync(Base.metadata.create_all)
	yield engine
	await engine.dispose()


@pytest.fixture
async def session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
	factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
	async with factory() as db_session:
		yield db_session


@pytest.fixture
def clock() -> FrozenClock:
	# Monday 2026-03-02 12:00 in Seoul.
	return FrozenClock(datetime(2026, 3, 2, 3, 0, tzinfo=UTC))


@pytest.fixture
def notifier() -> RecordingNotifier:
	return RecordingNotifier()


@pytest.fixture
def engine(session: AsyncSession, notifier: RecordingNotifier, clock: FrozenClock) -> Engine:
	return build_engine(session, notifier, rng=random.Random(7), clock=clock, zone=GAME_ZONE)


@pytest.fixture
async def child(session: AsyncSession) -> ChildProfile:
	return await ensure_child_profile(session, uuid.uuid4(), "Mina")


async def _add_plant_type(
	session: AsyncSession,
	name: str,
	*,
	rarity: RarityEnum = RarityEnum.COMMON,
	difficulty: DifficultyEnum = DifficultyEnum.EASY,
	growth_stages: int = 3,
	is_basic: bool = False,
	unlock_requirement: int | None = None,
) -> PlantType:
	plant_type = PlantType(
		name=name,
		growth_stages=growth_stages,
		difficulty=difficulty,
		category="test",
		rarity=rarity,
		is_basic=is_basic,
		unlock_requirement=unlock_requirement,
		image_prefix=name.lower().replace(" ", "_"),
	)
	session.add(plant_type)
	await session.flush()
	return plant_type


@pytest.fixture
def make_plant_type(session: AsyncSession) -> Callable[..., Awaitable[PlantType]]:
	"""Factory: ``await make_plant_type("Tulip", rarity=RarityEnum.UNCOMMON)``."""

	async def factory(name: str, **kwargs: Any) -> PlantType:
		return await _add_plant_type(session, name, **kwargs)

	return factory


@pytest.fixture
async def sunflower(session: AsyncSession) -> PlantType:
	return await _add_plant_type(session, "Sunflower", is_basic=True, growth_stages=3)


@pytest.fixture
def fake_db_session() -> FakeAsyncSession:
	"""A lightweight async-session stub for routes whose services are monkeypatched."""
	return FakeAsyncSession()


@pytest.fixture
def fake_redis() -> FakeRedis:
	return FakeRedis()


@asynccontextmanager
async def _client_for(db_override: Any) -> AsyncGenerator[AsyncClient, None]:
	app.dependency_overrides[get_db] = db_override
	original_lifespan = app.router.lifespan_context

	@asynccontextmanager
	async def noop_lifespan(_: Any) -> AsyncGenerator[None, None]:
		yield

	app.router.lifespan_context = noop_lifespan
	app.state.redis = None
	try:
		transport = ASGITransport(app=app)
		async with AsyncClient(transport=transport, base_url="http://test") as test_client:
			yield test_client
	finally:
		app.router.lifespan_context = original_lifespan
		app.dependency_overrides.clear()


@pytest.fixture
async def client(fake_db_session: FakeAsyncSession) -> AsyncGenerator[AsyncClient, None]:
	"""HTTPX async client with lifespan disabled and the DB dependency stubbed."""

	async def override_get_db() -> AsyncGenerator[Any, None]:
		yield fake_db_session

	async with _client_for(override_get_db) as test_client:
		yield test_client


@pytest.fixture
async def db_client(session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
	"""HTTPX async client backed by the in-memory database session."""

	async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
		try:
			yield session
			await session.commit()
		except Exception:
			await session.rollback()
			raise

	async with _client_for(override_get_db) as test_client:
		yield test_client
