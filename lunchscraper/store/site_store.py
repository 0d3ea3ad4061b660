"""
Lunch Scraper — Site Store (write side)

The two persistence operations the supervisor depends on:

- resolve_site_id: map a scraper's (country, city, site) url ids to the
  site's primary key. Called once per scraper at startup.
- apply: write one SiteScrapeResult. For every restaurant in the result, any
  stored restaurant at that site with the same name is deleted together with
  its dishes, then the fresh restaurant and dishes are inserted. Everything
  happens in one transaction, so readers never see a restaurant without its
  dishes, and applying the same result twice gives the same end state.
"""

from __future__ import annotations

import uuid
from typing import Any

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from lunchscraper.config import settings
from lunchscraper.models import City, Country, Site
from lunchscraper.models import Dish as DishRow
from lunchscraper.models import Restaurant as RestaurantRow
from lunchscraper.scrape import SiteScrapeResult
from lunchscraper.store.keys import SiteKey

logger = structlog.get_logger(__name__)


class SiteNotFoundError(LookupError):
    """No site is stored under the given (country, city, site) key."""

    def __init__(self, key: SiteKey) -> None:
        super().__init__(f"no site stored for key {key}")
        self.key = key


def create_engine_and_sessions(
    database_url: str,
) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Create the async engine and session factory for `database_url`."""
    kwargs: dict[str, Any] = {"echo": False}
    if not database_url.startswith("sqlite"):
        kwargs.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_pre_ping=True,
        )
    engine = create_async_engine(database_url, **kwargs)
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    return engine, session_factory


class SiteStore:
    """Persistence collaborator of the scrape supervisor."""

    def __init__(
        self,
        engine: AsyncEngine,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        self.engine = engine
        self.session_factory = session_factory

    @classmethod
    def from_url(cls, database_url: str | None = None) -> SiteStore:
        url = database_url or settings.DATABASE_URL
        engine, session_factory = create_engine_and_sessions(url)
        logger.info("site_store_ready", database_url=engine.url.render_as_string(hide_password=True))
        return cls(engine, session_factory)

    async def resolve_site_id(self, key: SiteKey) -> uuid.UUID:
        """
        Look up the site id for `key`.

        Raises:
            SiteNotFoundError: No such country/city/site combination.
        """
        stmt = (
            select(Site.site_id)
            .join(City, City.city_id == Site.city_id)
            .join(Country, Country.country_id == City.country_id)
            .where(
                Country.url_id == key.country,
                City.url_id == key.city,
                Site.url_id == key.site,
            )
        )
        async with self.session_factory() as session:
            site_id = (await session.execute(stmt)).scalar_one_or_none()
        if site_id is None:
            raise SiteNotFoundError(key)
        logger.debug("site_id_resolved", site_key=str(key), site_id=str(site_id))
        return site_id

    async def apply(self, result: SiteScrapeResult) -> None:
        """Replace the stored restaurants named in `result`, atomically."""
        names = sorted({r.name for r in result.restaurants})
        restaurant_rows = []
        dish_rows = []
        for r in result.restaurants:
            restaurant_rows.append(
                RestaurantRow(
                    restaurant_id=r.id,
                    site_id=result.site_id,
                    name=r.name,
                    comment=r.comment,
                    address=r.address,
                    url=r.url,
                    map_url=r.map_url,
                    created_at=r.parsed_at,
                )
            )
            for d in r.dishes:
                dish_rows.append(
                    DishRow(
                        dish_id=d.id,
                        restaurant_id=r.id,
                        name=d.name,
                        description=d.description,
                        comment=d.comment,
                        tags=",".join(sorted(d.tags)) or None,
                        price=d.price,
                    )
                )

        async with self.session_factory() as session:
            async with session.begin():
                if names:
                    stale = select(RestaurantRow.restaurant_id).where(
                        RestaurantRow.site_id == result.site_id,
                        RestaurantRow.name.in_(names),
                    )
                    await session.execute(
                        delete(DishRow)
                        .where(DishRow.restaurant_id.in_(stale))
                        .execution_options(synchronize_session=False)
                    )
                    await session.execute(
                        delete(RestaurantRow).where(
                            RestaurantRow.site_id == result.site_id,
                            RestaurantRow.name.in_(names),
                        )
                        .execution_options(synchronize_session=False)
                    )
                session.add_all(restaurant_rows)
                await session.flush()
                session.add_all(dish_rows)

        logger.info(
            "site_result_applied",
            site_id=str(result.site_id),
            restaurants=len(restaurant_rows),
            dishes=len(dish_rows),
        )

    async def close(self) -> None:
        await self.engine.dispose()
        logger.debug("site_store_closed")
