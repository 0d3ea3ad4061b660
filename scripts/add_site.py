"""
Lunch Scraper — Site Registration Script

Creates (or reuses) the country and city rows and adds a site under them, so
a new scraper has a site id to resolve at startup.

Usage:
    python scripts/add_site.py se/gbg/lh --country-name Sweden --city-name Gothenburg --site-name Lindholmen --currency kr
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

# Resolve project root so this script can be run from any working directory
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from lunchscraper.models import City, Country, Site
from lunchscraper.store import SiteKey, create_engine_and_sessions
from lunchscraper.config import settings


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Add a country/city/site triple for a scraper to write to.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/add_site.py se/gbg/lh --country-name Sweden --city-name Gothenburg --site-name Lindholmen --currency kr
  python scripts/add_site.py se/gbg/majorna --site-name Majorna
""",
    )
    parser.add_argument("key", type=SiteKey.parse, help="country/city/site url ids, e.g. se/gbg/lh")
    parser.add_argument("--country-name", default=None, help="Used only if the country is new.")
    parser.add_argument("--city-name", default=None, help="Used only if the city is new.")
    parser.add_argument("--site-name", default=None)
    parser.add_argument("--currency", default=None, help="Currency suffix for a new country, e.g. kr")
    parser.add_argument("--comment", default=None)
    parser.add_argument("--database-url", default=settings.DATABASE_URL)
    return parser.parse_args(argv)


async def add_site(
    session_factory: async_sessionmaker[AsyncSession],
    key: SiteKey,
    country_name: str | None = None,
    city_name: str | None = None,
    site_name: str | None = None,
    currency: str | None = None,
    comment: str | None = None,
) -> uuid.UUID:
    """
    Insert the site for `key`, creating its country and city when missing.

    Returns the site id (the existing one if the site is already there).
    """
    async with session_factory() as session:
        async with session.begin():
            country = (
                await session.execute(select(Country).where(Country.url_id == key.country))
            ).scalar_one_or_none()
            if country is None:
                country = Country(
                    name=country_name or key.country,
                    url_id=key.country,
                    currency_suffix=currency,
                )
                session.add(country)
                await session.flush()

            city = (
                await session.execute(
                    select(City).where(
                        City.country_id == country.country_id, City.url_id == key.city
                    )
                )
            ).scalar_one_or_none()
            if city is None:
                city = City(country_id=country.country_id, name=city_name or key.city, url_id=key.city)
                session.add(city)
                await session.flush()

            site = (
                await session.execute(
                    select(Site).where(Site.city_id == city.city_id, Site.url_id == key.site)
                )
            ).scalar_one_or_none()
            if site is None:
                site = Site(
                    city_id=city.city_id,
                    name=site_name or key.site,
                    url_id=key.site,
                    comment=comment,
                )
                session.add(site)
                await session.flush()
            return site.site_id


async def main() -> None:
    args = parse_args()
    engine, session_factory = create_engine_and_sessions(args.database_url)

    try:
        site_id = await add_site(
            session_factory,
            args.key,
            country_name=args.country_name,
            city_name=args.city_name,
            site_name=args.site_name,
            currency=args.currency,
            comment=args.comment,
        )
        print(f"Site {args.key} ready.")
        print(f"  site_id = {site_id}")
    except Exception as e:
        print(f"Failed to add site: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
