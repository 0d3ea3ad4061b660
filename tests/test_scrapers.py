"""
Tests for the scraper roster, site keys and text helpers.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import pytest

from lunchscraper.scrape import Dish, Restaurant, ScrapeOutcome
from lunchscraper.scrapers import REGISTRY, get_registrations
from lunchscraper.scrapers.lindholmen import LindholmenScraper
from lunchscraper.scrapers.text import name_key, parse_price, reduce_whitespace
from lunchscraper.store.keys import SiteKey


class TestSiteKey:
    def test_parse_and_str(self) -> None:
        key = SiteKey.parse("se/gbg/lh")
        assert (key.country, key.city, key.site) == ("se", "gbg", "lh")
        assert str(key) == "se/gbg/lh"

    @pytest.mark.parametrize("value", ["se/gbg", "se//lh", "a/b/c/d", ""])
    def test_parse_rejects_malformed(self, value: str) -> None:
        with pytest.raises(ValueError):
            SiteKey.parse(value)


class TestRegistry:
    def test_keys_are_unique(self) -> None:
        keys = [str(r.key) for r in REGISTRY]
        assert len(keys) == len(set(keys))

    def test_all_by_default(self) -> None:
        assert get_registrations() == list(REGISTRY)

    def test_select_by_name_or_key(self) -> None:
        by_name = get_registrations([LindholmenScraper.name])
        by_key = get_registrations(["se/gbg/lh"])
        assert by_name == by_key
        assert [str(r.key) for r in by_name] == ["se/gbg/lh"]

    def test_unknown_name(self) -> None:
        with pytest.raises(KeyError):
            get_registrations(["se/gbg/nowhere"])


class TestTextHelpers:
    def test_reduce_whitespace(self) -> None:
        assert reduce_whitespace("  a \n\t b  ") == "a b"

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("135 kr", Decimal("135")),
            ("89,50:-", Decimal("89.50")),
            ("Pris: 120 SEK", Decimal("120")),
            (99, Decimal("99")),
            (12.5, Decimal("12.5")),
            (-5, Decimal("0")),
            ("gratis", Decimal("0")),
            (None, Decimal("0")),
        ],
    )
    def test_parse_price(self, value, expected: Decimal) -> None:
        assert parse_price(value) == expected

    def test_name_key(self) -> None:
        assert name_key("District One") == name_key("DistrictOne") == "districtone"
        assert name_key("L'Épicerie") == name_key("lépicerie")

    def test_name_key_keeps_swedish_letters(self) -> None:
        assert name_key("Kårhuset") == "kårhuset"
        assert name_key("Kårhuset") != name_key("Krhuset")
        assert name_key("Ö") == "ö"
        assert name_key("Bistrot Ä") == name_key("bistrotä")


class TestScrapeValues:
    def test_with_dishes_binds_restaurant(self) -> None:
        restaurant = Restaurant.new_for_site("R", site_id=uuid.uuid4())
        bound = restaurant.with_dishes([Dish(name="d")])
        assert bound.dishes[0].restaurant_id == restaurant.id

    def test_dish_price_cannot_be_negative(self) -> None:
        with pytest.raises(ValueError):
            Dish(name="d", price=Decimal("-1"))

    def test_failure_outcome(self) -> None:
        outcome = ScrapeOutcome.failure("s", TimeoutError())
        assert not outcome.ok
        assert outcome.error_type == "TimeoutError"
        assert outcome.error

    def test_dish_tags_never_contain_commas(self) -> None:
        dish = Dish(name="d", tags=["gluten, laktos", " veg ", ""])
        assert dish.tags == frozenset({"gluten", "laktos", "veg"})
        assert Dish(name="d", tags="nötter").tags == frozenset({"nötter"})
