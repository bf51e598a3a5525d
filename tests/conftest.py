from __future__ import annotations

import os
from collections.abc import AsyncIterator, Iterator

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# src.api.main reads settings at import time, which happens during collection.
os.environ.setdefault("DATABASE_URL", "postgresql+asyncpg://ispora:pw@localhost:5432/ispora")
os.environ.setdefault("STORAGE_BACKEND", "memory")

from src import models  # noqa: E402,F401
from src.db.connection import Base  # noqa: E402
from src.db.memory import MemoryPartnerStore, MemoryRegistrationStore, MemoryVisitStore  # noqa: E402
from src.handlers.abuse import RateLimiter  # noqa: E402
from tests.fixtures.clocks import FakeClock, FakeWallClock  # noqa: E402


@pytest.fixture(autouse=True)
def _default_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://ispora:pw@localhost:5432/ispora")
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    from src.config import get_settings

    get_settings.cache_clear()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def wall_clock() -> FakeWallClock:
    return FakeWallClock()


@pytest.fixture
def registration_store() -> MemoryRegistrationStore:
    return MemoryRegistrationStore()


@pytest.fixture
def partner_store() -> MemoryPartnerStore:
    return MemoryPartnerStore()


@pytest.fixture
def visit_store() -> MemoryVisitStore:
    return MemoryVisitStore()


@pytest.fixture
def limiter(fake_clock: FakeClock) -> RateLimiter:
    return RateLimiter(max_requests=100, window_seconds=60, clock=fake_clock)


@pytest.fixture
def api_overrides(
    registration_store: MemoryRegistrationStore,
    partner_store: MemoryPartnerStore,
    visit_store: MemoryVisitStore,
    limiter: RateLimiter,
) -> Iterator[dict[str, object]]:
    """Point the app's store and limiter dependencies at per-test instances."""
    from src.api.main import app
    from src.db.stores import get_partner_store, get_registration_store, get_visit_store
    from src.handlers.abuse import get_rate_limiter

    overrides = {
        get_registration_store: lambda: registration_store,
        get_partner_store: lambda: partner_store,
        get_visit_store: lambda: visit_store,
        get_rate_limiter: lambda: limiter,
    }
    app.dependency_overrides.update(overrides)
    try:
        yield overrides
    finally:
        for dependency in overrides:
            app.dependency_overrides.pop(dependency, None)


def requires_test_db() -> bool:
    test_database_url = os.getenv("TEST_DATABASE_URL")
    return bool(test_database_url and test_database_url.startswith("postgresql+asyncpg://"))


@pytest.fixture(scope="session")
def test_database_url() -> str:
    test_database_url = os.getenv("TEST_DATABASE_URL")
    if not requires_test_db():
        if os.getenv("CI_PARITY") == "1":
            pytest.fail("CI parity mode requires TEST_DATABASE_URL to be set to a Postgres asyncpg URL")
        pytest.skip("TEST_DATABASE_URL not set for postgres integration tests")
    assert test_database_url is not None
    return test_database_url


@pytest.fixture
async def db_sessionmaker(test_database_url: str) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = create_async_engine(test_database_url, future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()
