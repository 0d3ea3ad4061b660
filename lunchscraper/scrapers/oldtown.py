"""
Lunch Scraper — Old Town (Majorna, Gothenburg) Site Scraper

oldtown.se has no structured menu feed, so the pita and plate pages are
parsed as HTML. Every dish sits in its own container block:

    <div class="mt-i-c cf mt-border line-color">
      <h3>Kycklingpita <strong>135 kr</strong></h3>
      <p>Kyckling, sallad, tzatziki</p>
    </div>

The markup is not consistent between dishes (the description is sometimes a
<div>), and blocks without both a name and a price are skipped. A page with
no dish blocks at all is an error.
"""

from __future__ import annotations

from typing import Optional

import structlog
from bs4 import BeautifulSoup, Tag

from lunchscraper.scrape import Dish, Restaurant, SiteScrapeResult
from lunchscraper.scrapers.base import ScrapeError, SiteScraper
from lunchscraper.scrapers.text import parse_price, reduce_whitespace

logger = structlog.get_logger(__name__)

BASE_URL = "https://www.oldtown.se"
MENU_PAGES = (
    f"{BASE_URL}/chicken-dishes/",
    f"{BASE_URL}/tandoori-kitchen/",
)

SEL_DISH_CONTAINER = "div.mt-i-c.cf.mt-border.line-color"
SEL_DISH_PRICE = "h3 > strong"
SEL_DISH_DESC = ("h3 + p", "h3 + div")

RESTAURANT_NAME = "Old Town"
RESTAURANT_ADDRESS = "Godhemsgatan 7, 414 68 Göteborg"
RESTAURANT_MAP_URL = "https://www.google.se/maps/place/Godhemsgatan+7,+414+68+G%C3%B6teborg"


def _first_text(tag: Tag) -> str:
    """Text of the first string node under `tag`, ignoring nested markup after it."""
    node = tag.find(string=True)
    return reduce_whitespace(str(node)) if node is not None else ""


def parse_dish(block: Tag) -> Optional[Dish]:
    name_el = block.find("h3")
    price_el = block.select_one(SEL_DISH_PRICE)
    if name_el is None or price_el is None:
        return None

    name = _first_text(name_el)
    if not name:
        return None

    description = None
    for selector in SEL_DISH_DESC:
        desc_el = block.select_one(selector)
        if desc_el is not None:
            description = _first_text(desc_el) or None
            break

    return Dish(
        name=name,
        description=description,
        price=parse_price(price_el.get_text()),
    )


def parse_menu_page(html: str) -> list[Dish]:
    soup = BeautifulSoup(html, "html.parser")
    blocks = soup.select(SEL_DISH_CONTAINER)
    if not blocks:
        raise ScrapeError("no dish blocks found, page layout may have changed")

    dishes = []
    for block in blocks:
        dish = parse_dish(block)
        if dish is not None:
            dishes.append(dish)
    return dishes


class OldTownScraper(SiteScraper):
    name = "se::gbg::majorna::OldTownScraper"

    async def run(self) -> SiteScrapeResult:
        restaurant = Restaurant.new_for_site(
            RESTAURANT_NAME,
            self.site_id,
            address=RESTAURANT_ADDRESS,
            url=f"{BASE_URL}/",
            map_url=RESTAURANT_MAP_URL,
        )

        dishes: list[Dish] = []
        for i, url in enumerate(MENU_PAGES):
            if i > 0:
                await self.client.throttle()
            page_dishes = parse_menu_page(await self.client.get_as_string(url))
            logger.debug("oldtown_page_parsed", url=url, dishes=len(page_dishes))
            dishes.extend(page_dishes)

        return SiteScrapeResult(
            site_id=self.site_id,
            restaurants=(restaurant.with_dishes(dishes),),
        )
