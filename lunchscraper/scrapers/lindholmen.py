"""
Lunch Scraper — Lindholmen (Gothenburg) Site Scraper

Reads the daily lunch data published as static JSON files in the
Fawenah/lindholmen_lunch GitHub repository (used with permission):

- restaurant_links.json         {"<Restaurant>": {"url": ..., "map": ...}, ...}
- lunch_data_<weekday>.json     {"<Restaurant>Scraper": {"items": [...]}, ...}

The link list defines which restaurants exist. Menu entries are joined to
them by a key derived from the name (menu keys carry a "Scraper" suffix);
entries with no matching restaurant are logged and skipped. Restaurants
without a menu today are kept, with no dishes.

There are only files for Monday to Friday: on weekends the menu request
fails and the run is reported as failed.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

import structlog
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from lunchscraper.scrape import Dish, Restaurant, SiteScrapeResult
from lunchscraper.scrapers.base import SiteScraper
from lunchscraper.scrapers.text import name_key, parse_price, reduce_whitespace

logger = structlog.get_logger(__name__)

DATA_BASE_URL = "https://raw.githubusercontent.com/Fawenah/lindholmen_lunch/refs/heads/main/data"
RESTAURANT_LINKS_URL = f"{DATA_BASE_URL}/restaurant_links.json"
MENU_KEY_SUFFIX = "Scraper"

WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


# ---------------------------------------------------------------------------
# Source document models
# ---------------------------------------------------------------------------


class RestaurantLink(BaseModel):
    """Entry in restaurant_links.json."""

    model_config = ConfigDict(extra="ignore")

    url: Optional[str] = None
    map: Optional[str] = None


class MenuItem(BaseModel):
    """One dish in a lunch_data_<weekday>.json menu."""

    model_config = ConfigDict(extra="ignore")

    name: str = Field(default="", validation_alias=AliasChoices("name", "title"))
    description: Optional[str] = None
    comment: Optional[str] = None
    price: Any = None
    tags: list[str] = Field(default_factory=list, validation_alias=AliasChoices("tags", "dietary"))

    @field_validator("name", mode="before")
    @classmethod
    def clean_name(cls, v: Any) -> str:
        return reduce_whitespace(str(v or ""))

    @field_validator("description", "comment", mode="before")
    @classmethod
    def clean_text(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        text = reduce_whitespace(str(v))
        return text or None

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            v = v.split(",")
        return [t.strip() for t in v if str(t).strip()]

    def to_dish(self) -> Dish:
        return Dish(
            name=self.name,
            description=self.description,
            comment=self.comment,
            tags=frozenset(self.tags),
            price=parse_price(self.price),
        )


class RestaurantMenu(BaseModel):
    model_config = ConfigDict(extra="ignore")

    items: list[MenuItem] = Field(default_factory=list)


_LINKS = TypeAdapter(dict[str, RestaurantLink])
_MENUS = TypeAdapter(dict[str, RestaurantMenu])


def menu_url_for(day: date) -> str:
    return f"{DATA_BASE_URL}/lunch_data_{WEEKDAY_NAMES[day.weekday()]}.json"


def strip_menu_suffix(key: str) -> str:
    if key.endswith(MENU_KEY_SUFFIX) and len(key) > len(MENU_KEY_SUFFIX):
        return key[: -len(MENU_KEY_SUFFIX)]
    return key


# ---------------------------------------------------------------------------
# Scraper
# ---------------------------------------------------------------------------


class LindholmenScraper(SiteScraper):
    """Lindholmen Science Park restaurants, from the Fawenah data set."""

    name = "se::gbg::lh::LindholmenScraper"

    def __init__(self, client, site_id, today: Optional[date] = None) -> None:
        super().__init__(client, site_id)
        self._today = today

    async def run(self) -> SiteScrapeResult:
        links = await self.client.get_json(RESTAURANT_LINKS_URL, _LINKS)
        restaurants: dict[str, Restaurant] = {}
        for name, link in links.items():
            k = name_key(name)
            if not k or k in restaurants:
                logger.warning(
                    "lindholmen_restaurant_name_collision",
                    scraper=self.name,
                    restaurant=name,
                    kept=restaurants[k].name if k in restaurants else None,
                )
                continue
            restaurants[k] = Restaurant.new_for_site(
                name, self.site_id, url=link.url, map_url=link.map
            )

        await self.client.throttle()
        day = self._today or date.today()
        menus = await self.client.get_json(menu_url_for(day), _MENUS)

        matched = 0
        for key, menu in menus.items():
            restaurant_name = strip_menu_suffix(key)
            k = name_key(restaurant_name)
            restaurant = restaurants.get(k)
            if restaurant is None:
                logger.debug(
                    "lindholmen_menu_unmatched",
                    scraper=self.name,
                    menu_key=key,
                )
                continue
            dishes = [item.to_dish() for item in menu.items if item.name]
            restaurants[k] = restaurant.with_dishes(restaurant.dishes + tuple(dishes))
            matched += 1

        logger.debug(
            "lindholmen_menus_joined",
            scraper=self.name,
            restaurants=len(restaurants),
            menus=len(menus),
            matched=matched,
        )
        return SiteScrapeResult(site_id=self.site_id, restaurants=tuple(restaurants.values()))
