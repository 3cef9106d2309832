"""Shared fixtures for engine and integration tests."""

import random

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from chicken_duel.db.models import Base, Coupon, CouponStatus
from chicken_duel.engine import CombatLogger, DuelConfig, DuelEngine, ManualClock, Side


@pytest.fixture
async def async_engine():
    """Create async SQLite in-memory engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )

    # Enable foreign keys for SQLite
    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the in-memory engine."""
    return async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def db_session(session_factory):
    """Create async session for testing with automatic rollback."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def coupon(db_session: AsyncSession) -> Coupon:
    """Create an active coupon bound to player P-001."""
    coupon = Coupon(code="CHICK42", player_code="P-001", status=CouponStatus.ACTIVE)
    db_session.add(coupon)
    await db_session.flush()
    return coupon


@pytest.fixture
def config() -> DuelConfig:
    """Default duel tuning: 0.5s attacks, 900ms ticks, 5-20 damage."""
    return DuelConfig()


@pytest.fixture
def fast_config() -> DuelConfig:
    """Short timings and low health for tests that run the real scheduler."""
    return DuelConfig(attack_duration=0.05, attack_tick_ms=80, max_health=30)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def rng() -> random.Random:
    """Seeded RNG so first turn, damage and prize are reproducible."""
    return random.Random(1234)


@pytest.fixture
def combat_logger() -> CombatLogger:
    return CombatLogger(duel_label="test duel")


@pytest.fixture
def engine(config, clock, rng, combat_logger) -> DuelEngine:
    """Authorized idle engine on a manual clock."""
    return DuelEngine(
        config,
        clock=clock,
        rng=rng,
        logger=combat_logger,
        session_authorized=True,
        session_token="test-session",
    )


@pytest.fixture
async def fighting_engine(engine: DuelEngine) -> DuelEngine:
    """Engine that has started with the observer backing RED.

    The background scheduler is stopped so tests can call tick() and update()
    by hand against the manual clock.
    """
    engine.select_side(Side.RED)
    result = engine.start()
    assert result.success
    engine.scheduler.stop()
    yield engine
    engine.shutdown()
