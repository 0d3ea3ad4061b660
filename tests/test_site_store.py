"""
Tests for the site store (lunchscraper/store/site_store.py) against an
in-memory SQLite database.

Covers:
- resolve_site_id by (country, city, site) url ids
- apply: replace-by-name, idempotence, atomicity
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from lunchscraper.models import Dish as DishRow
from lunchscraper.models import Restaurant as RestaurantRow
from lunchscraper.scrape import Dish, Restaurant, SiteScrapeResult
from lunchscraper.store import SiteKey, SiteNotFoundError


def _result(site_id: uuid.UUID, menu: dict[str, list[tuple[str, str]]]) -> SiteScrapeResult:
    restaurants = tuple(
        Restaurant.new_for_site(name, site_id, url=f"https://{name.lower()}.example").with_dishes(
            [Dish(name=dish, price=Decimal(price), tags=frozenset({"veg"})) for dish, price in dishes]
        )
        for name, dishes in menu.items()
    )
    return SiteScrapeResult(site_id=site_id, restaurants=restaurants)


async def _stored(session_factory, site_id: uuid.UUID) -> list[tuple]:
    """Stored content of a site, without ids."""
    async with session_factory() as session:
        rows = await session.execute(
            select(RestaurantRow.name, RestaurantRow.url, DishRow.name, DishRow.price, DishRow.tags)
            .join(DishRow, DishRow.restaurant_id == RestaurantRow.restaurant_id, isouter=True)
            .where(RestaurantRow.site_id == site_id)
            .order_by(RestaurantRow.name, DishRow.name)
        )
        return [tuple(r) for r in rows]


class TestResolveSiteId:
    @pytest.mark.asyncio
    async def test_known_key(self, site_store, seeded) -> None:
        assert await site_store.resolve_site_id(SiteKey.parse("se/gbg/lh")) == seeded.lh_site_id
        assert await site_store.resolve_site_id(SiteKey.parse("se/gbg/majorna")) == seeded.majorna_site_id

    @pytest.mark.asyncio
    @pytest.mark.parametrize("key", ["se/gbg/nowhere", "se/sthlm/lh", "no/gbg/lh"])
    async def test_unknown_key(self, site_store, seeded, key: str) -> None:
        with pytest.raises(SiteNotFoundError) as exc:
            await site_store.resolve_site_id(SiteKey.parse(key))
        assert str(exc.value.key) == key


class TestApply:
    @pytest.mark.asyncio
    async def test_inserts_restaurants_and_dishes(self, site_store, seeded, session_factory) -> None:
        result = _result(seeded.lh_site_id, {"Kooperativet": [("Soppa", "95"), ("Pasta", "115")]})

        await site_store.apply(result)

        assert await _stored(session_factory, seeded.lh_site_id) == [
            ("Kooperativet", "https://kooperativet.example", "Pasta", Decimal("115.00"), "veg"),
            ("Kooperativet", "https://kooperativet.example", "Soppa", Decimal("95.00"), "veg"),
        ]

    @pytest.mark.asyncio
    async def test_apply_twice_is_idempotent(self, site_store, seeded, session_factory) -> None:
        result = _result(
            seeded.lh_site_id,
            {"Kooperativet": [("Soppa", "95")], "District One": [("Burgare", "129")]},
        )

        await site_store.apply(result)
        once = await _stored(session_factory, seeded.lh_site_id)
        await site_store.apply(result)
        twice = await _stored(session_factory, seeded.lh_site_id)

        assert once == twice
        async with session_factory() as session:
            count = await session.scalar(select(func.count()).select_from(RestaurantRow))
        assert count == 2

    @pytest.mark.asyncio
    async def test_fresh_scrape_replaces_same_name(self, site_store, seeded, session_factory) -> None:
        await site_store.apply(_result(seeded.lh_site_id, {"Kooperativet": [("Soppa", "95")]}))
        await site_store.apply(_result(seeded.lh_site_id, {"Kooperativet": [("Gryta", "105")]}))

        stored = await _stored(session_factory, seeded.lh_site_id)
        assert [row[2] for row in stored] == ["Gryta"]
        async with session_factory() as session:
            dish_count = await session.scalar(select(func.count()).select_from(DishRow))
        assert dish_count == 1

    @pytest.mark.asyncio
    async def test_other_restaurants_and_sites_untouched(self, site_store, seeded, session_factory) -> None:
        await site_store.apply(_result(seeded.lh_site_id, {"A": [("a", "1")], "B": [("b", "2")]}))
        await site_store.apply(_result(seeded.majorna_site_id, {"A": [("m", "3")]}))
        await site_store.apply(_result(seeded.lh_site_id, {"A": [("a2", "4")]}))

        lh = await _stored(session_factory, seeded.lh_site_id)
        majorna = await _stored(session_factory, seeded.majorna_site_id)
        assert [(r[0], r[2]) for r in lh] == [("A", "a2"), ("B", "b")]
        assert [(r[0], r[2]) for r in majorna] == [("A", "m")]

    @pytest.mark.asyncio
    async def test_restaurant_without_dishes_is_stored(self, site_store, seeded, session_factory) -> None:
        await site_store.apply(_result(seeded.lh_site_id, {"Closed Today": []}))

        assert await _stored(session_factory, seeded.lh_site_id) == [
            ("Closed Today", "https://closed today.example", None, None, None)
        ]

    @pytest.mark.asyncio
    async def test_failed_apply_leaves_previous_state(self, site_store, seeded, session_factory) -> None:
        """A result that cannot be written rolls back entirely."""
        await site_store.apply(_result(seeded.lh_site_id, {"Kooperativet": [("Soppa", "95")]}))
        before = await _stored(session_factory, seeded.lh_site_id)

        good = _result(seeded.lh_site_id, {"Kooperativet": [("Gryta", "105")]})
        restaurant = good.restaurants[0]
        # Two dishes sharing a primary key make the insert fail after the delete ran
        clash = restaurant.dishes[0].model_copy(update={"name": "Clash"})
        broken = SiteScrapeResult(
            site_id=good.site_id,
            restaurants=(restaurant.model_copy(update={"dishes": restaurant.dishes + (clash,)}),),
        )

        with pytest.raises(Exception):
            await site_store.apply(broken)

        assert await _stored(session_factory, seeded.lh_site_id) == before
