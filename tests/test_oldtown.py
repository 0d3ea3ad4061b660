"""
Tests for the Old Town scraper (lunchscraper/scrapers/oldtown.py).
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import httpx
import pytest
import respx

from lunchscraper.fetch.client import CacheOptions, CachedClient
from lunchscraper.scrapers.base import ScrapeError
from lunchscraper.scrapers.oldtown import MENU_PAGES, OldTownScraper, parse_menu_page

SITE_ID = uuid.uuid4()

PITA_PAGE = """
<html><body>
  <div class="mt-i-c cf mt-border line-color">
    <h3>Kycklingpita <strong>135 kr</strong></h3>
    <p>Kyckling,   sallad,
       tzatziki</p>
  </div>
  <div class="mt-i-c cf mt-border line-color">
    <h3>Falafelpita <strong>125:-</strong></h3>
    <div>Falafel, hummus</div>
  </div>
  <div class="mt-i-c cf mt-border line-color">
    <h3>Utan pris</h3>
    <p>Skippas</p>
  </div>
  <div class="unrelated"><h3>Inte en rätt <strong>1 kr</strong></h3></div>
</body></html>
"""

TALLRIK_PAGE = """
<html><body>
  <div class="mt-i-c cf mt-border line-color">
    <h3>Tandoori tallrik <strong>149,50 kr</strong></h3>
  </div>
</body></html>
"""


def test_parse_menu_page() -> None:
    dishes = parse_menu_page(PITA_PAGE)

    assert [d.name for d in dishes] == ["Kycklingpita", "Falafelpita"]
    assert dishes[0].description == "Kyckling, sallad, tzatziki"
    assert dishes[0].price == Decimal("135")
    assert dishes[1].description == "Falafel, hummus"
    assert dishes[1].price == Decimal("125")


def test_dish_without_description() -> None:
    (dish,) = parse_menu_page(TALLRIK_PAGE)

    assert dish.description is None
    assert dish.price == Decimal("149.50")


def test_page_without_dish_blocks_is_an_error() -> None:
    with pytest.raises(ScrapeError):
        parse_menu_page("<html><body><p>Under construction</p></body></html>")


@pytest.mark.asyncio
@respx.mock
async def test_run_collects_both_pages_into_one_restaurant() -> None:
    respx.get(MENU_PAGES[0]).mock(return_value=httpx.Response(200, text=PITA_PAGE))
    respx.get(MENU_PAGES[1]).mock(return_value=httpx.Response(200, text=TALLRIK_PAGE))
    client = CachedClient.build(
        CacheOptions(request_delay=0.0, request_timeout=1.0, cache_ttl=60.0, cache_capacity=8)
    )

    result = await OldTownScraper(client, SITE_ID).run()
    await client.aclose()

    (restaurant,) = result.restaurants
    assert restaurant.name == "Old Town"
    assert restaurant.site_id == SITE_ID
    assert [d.name for d in restaurant.dishes] == ["Kycklingpita", "Falafelpita", "Tandoori tallrik"]
    assert result.num_dishes == 3


@pytest.mark.asyncio
@respx.mock
async def test_run_fails_when_a_page_fails() -> None:
    respx.get(MENU_PAGES[0]).mock(return_value=httpx.Response(200, text=PITA_PAGE))
    respx.get(MENU_PAGES[1]).mock(return_value=httpx.Response(500))
    client = CachedClient.build(
        CacheOptions(request_delay=0.0, request_timeout=1.0, cache_ttl=60.0, cache_capacity=8)
    )

    with pytest.raises(httpx.HTTPStatusError):
        await OldTownScraper(client, SITE_ID).run()
    await client.aclose()
