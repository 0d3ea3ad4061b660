"""
Lunch Scraper — Read Queries

Each function runs in the caller's session and returns a LunchData tree
trimmed to what was asked for: the path from the country down to the
requested node, plus that node's children. An unknown id yields an empty
LunchData.
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lunchscraper.models import City, Country, Site
from lunchscraper.models import Dish as DishRow
from lunchscraper.models import Restaurant as RestaurantRow
from lunchscraper.models.api import (
    CityView,
    CountryView,
    DishView,
    LunchData,
    RestaurantView,
    SiteView,
)


# ---------------------------------------------------------------------------
# Tree assembly
# ---------------------------------------------------------------------------


def build_lunch_data(
    countries: Iterable[Country],
    cities: Iterable[City] = (),
    sites: Iterable[Site] = (),
    restaurants: Iterable[RestaurantRow] = (),
    dishes: Iterable[DishRow] = (),
) -> LunchData:
    """Nest flat ORM rows into a LunchData tree by their foreign keys."""
    dishes_by_restaurant: dict[uuid.UUID, list[DishView]] = defaultdict(list)
    for d in dishes:
        dishes_by_restaurant[d.restaurant_id].append(
            DishView(
                dish_id=d.dish_id,
                name=d.name,
                description=d.description,
                comment=d.comment,
                tags=d.tag_list,
                price=d.price,
            )
        )

    restaurants_by_site: dict[uuid.UUID, list[RestaurantView]] = defaultdict(list)
    for r in restaurants:
        restaurants_by_site[r.site_id].append(
            RestaurantView(
                restaurant_id=r.restaurant_id,
                name=r.name,
                comment=r.comment,
                address=r.address,
                url=r.url,
                map_url=r.map_url,
                parsed_at=r.created_at,
                dishes=dishes_by_restaurant.get(r.restaurant_id, []),
            )
        )

    sites_by_city: dict[uuid.UUID, list[SiteView]] = defaultdict(list)
    for s in sites:
        sites_by_city[s.city_id].append(
            SiteView(
                site_id=s.site_id,
                url_id=s.url_id,
                name=s.name,
                comment=s.comment,
                restaurants=restaurants_by_site.get(s.site_id, []),
            )
        )

    cities_by_country: dict[uuid.UUID, list[CityView]] = defaultdict(list)
    for c in cities:
        cities_by_country[c.country_id].append(
            CityView(
                city_id=c.city_id,
                url_id=c.url_id,
                name=c.name,
                sites=sites_by_city.get(c.city_id, []),
            )
        )

    return LunchData(
        countries=[
            CountryView(
                country_id=c.country_id,
                url_id=c.url_id,
                name=c.name,
                currency_suffix=c.currency_suffix,
                cities=cities_by_country.get(c.country_id, []),
            )
            for c in countries
        ]
    )


async def _site_path(
    session: AsyncSession, site_id: uuid.UUID
) -> Optional[tuple[Country, City, Site]]:
    site = await session.get(Site, site_id)
    if site is None:
        return None
    city = await session.get(City, site.city_id)
    country = await session.get(Country, city.country_id)
    return country, city, site


async def _dishes_for(session: AsyncSession, restaurant_ids: list[uuid.UUID]) -> list[DishRow]:
    if not restaurant_ids:
        return []
    stmt = (
        select(DishRow)
        .where(DishRow.restaurant_id.in_(restaurant_ids))
        .order_by(DishRow.name)
    )
    return list((await session.execute(stmt)).scalars())


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def list_countries(session: AsyncSession) -> LunchData:
    rows = (await session.execute(select(Country).order_by(Country.name))).scalars()
    return build_lunch_data(rows)


async def list_cities(session: AsyncSession, country_id: uuid.UUID) -> LunchData:
    country = await session.get(Country, country_id)
    if country is None:
        return LunchData()
    cities = (
        await session.execute(
            select(City).where(City.country_id == country_id).order_by(City.name)
        )
    ).scalars()
    return build_lunch_data([country], cities)


async def list_sites(session: AsyncSession, city_id: uuid.UUID) -> LunchData:
    city = await session.get(City, city_id)
    if city is None:
        return LunchData()
    country = await session.get(Country, city.country_id)
    sites = (
        await session.execute(select(Site).where(Site.city_id == city_id).order_by(Site.name))
    ).scalars()
    return build_lunch_data([country], [city], sites)


async def list_all_sites(session: AsyncSession) -> LunchData:
    """Every country, city and site, without restaurants."""
    countries = (await session.execute(select(Country).order_by(Country.name))).scalars().all()
    cities = (await session.execute(select(City).order_by(City.name))).scalars().all()
    sites = (await session.execute(select(Site).order_by(Site.name))).scalars().all()
    return build_lunch_data(countries, cities, sites)


async def list_restaurants(session: AsyncSession, site_id: uuid.UUID) -> LunchData:
    path = await _site_path(session, site_id)
    if path is None:
        return LunchData()
    country, city, site = path
    restaurants = (
        await session.execute(
            select(RestaurantRow)
            .where(RestaurantRow.site_id == site_id)
            .order_by(RestaurantRow.name)
        )
    ).scalars()
    return build_lunch_data([country], [city], [site], restaurants)


async def list_dishes_for_restaurant(
    session: AsyncSession, restaurant_id: uuid.UUID
) -> LunchData:
    restaurant = await session.get(RestaurantRow, restaurant_id)
    if restaurant is None:
        return LunchData()
    country, city, site = await _site_path(session, restaurant.site_id)
    dishes = await _dishes_for(session, [restaurant_id])
    return build_lunch_data([country], [city], [site], [restaurant], dishes)


async def list_dishes_for_site(session: AsyncSession, site_id: uuid.UUID) -> LunchData:
    path = await _site_path(session, site_id)
    if path is None:
        return LunchData()
    country, city, site = path
    restaurants = (
        await session.execute(
            select(RestaurantRow)
            .where(RestaurantRow.site_id == site_id)
            .order_by(RestaurantRow.name)
        )
    ).scalars().all()
    dishes = await _dishes_for(session, [r.restaurant_id for r in restaurants])
    return build_lunch_data([country], [city], [site], restaurants, dishes)


async def list_by_key(
    session: AsyncSession,
    country: Optional[str] = None,
    city: Optional[str] = None,
) -> LunchData:
    """
    Everything (down to dishes) under the given country / city url ids.

    Both filters are optional; without any, the whole database is returned.
    """
    country_stmt = select(Country).order_by(Country.name)
    if country:
        country_stmt = country_stmt.where(Country.url_id == country)
    countries = (await session.execute(country_stmt)).scalars().all()
    if not countries:
        return LunchData()

    city_stmt = (
        select(City)
        .where(City.country_id.in_([c.country_id for c in countries]))
        .order_by(City.name)
    )
    if city:
        city_stmt = city_stmt.where(City.url_id == city)
    cities = (await session.execute(city_stmt)).scalars().all()
    if city and not cities:
        return LunchData()

    sites: list[Site] = []
    restaurants: list[RestaurantRow] = []
    if cities:
        sites = list(
            (
                await session.execute(
                    select(Site)
                    .where(Site.city_id.in_([c.city_id for c in cities]))
                    .order_by(Site.name)
                )
            ).scalars()
        )
    if sites:
        restaurants = list(
            (
                await session.execute(
                    select(RestaurantRow)
                    .where(RestaurantRow.site_id.in_([s.site_id for s in sites]))
                    .order_by(RestaurantRow.name)
                )
            ).scalars()
        )
    dishes = await _dishes_for(session, [r.restaurant_id for r in restaurants])
    return build_lunch_data(countries, cities, sites, restaurants, dishes)
