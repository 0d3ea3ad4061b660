"""
Lunch Scraper — Shared pytest Fixtures & Configuration

Provides common fixtures for all test modules:
- In-memory SQLite engine / session factory with the full schema
- A seeded country/city/site hierarchy
- A SiteStore on top of it
- A controllable clock for cache TTL tests
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from lunchscraper.models import Base, City, Country, Site
from lunchscraper.store import SiteStore


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

pytest_plugins = ("pytest_asyncio",)


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio backend for anyio tests."""
    return "asyncio"


# ---------------------------------------------------------------------------
# Database Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    Async in-memory SQLite engine with every table created.

    StaticPool keeps a single connection so all sessions see the same
    in-memory database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@dataclass
class SeededSites:
    country_id: uuid.UUID
    city_id: uuid.UUID
    lh_site_id: uuid.UUID
    majorna_site_id: uuid.UUID


@pytest.fixture
async def seeded(session_factory: async_sessionmaker[AsyncSession]) -> SeededSites:
    """Sweden (kr) / Gothenburg / {Lindholmen, Majorna}, like the seed migration."""
    ids = SeededSites(
        country_id=uuid.uuid4(),
        city_id=uuid.uuid4(),
        lh_site_id=uuid.uuid4(),
        majorna_site_id=uuid.uuid4(),
    )
    async with session_factory() as session:
        async with session.begin():
            session.add(
                Country(country_id=ids.country_id, name="Sweden", url_id="se", currency_suffix="kr")
            )
            await session.flush()
            session.add(City(city_id=ids.city_id, country_id=ids.country_id, name="Gothenburg", url_id="gbg"))
            await session.flush()
            session.add_all(
                [
                    Site(site_id=ids.lh_site_id, city_id=ids.city_id, name="Lindholmen", url_id="lh"),
                    Site(site_id=ids.majorna_site_id, city_id=ids.city_id, name="Majorna", url_id="majorna"),
                ]
            )
    return ids


@pytest.fixture
def site_store(db_engine: AsyncEngine, session_factory: async_sessionmaker[AsyncSession]) -> SiteStore:
    return SiteStore(db_engine, session_factory)


# ---------------------------------------------------------------------------
# Utility Fixtures
# ---------------------------------------------------------------------------


class FakeClock:
    """Monotonic clock the test advances by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
