"""
Lunch Scraper — HTML Pages

Two plain pages for people: a list of every site, and today's dishes for
one site. Markup is built inline; every stored value is escaped.
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from html import escape

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from lunchscraper.models.api import LunchData
from lunchscraper.store import queries
from lunchscraper.web.deps import NIL_UUID, get_session

router = APIRouter(prefix="/html", tags=["html"])


def format_price(price: Decimal, suffix: str | None = None) -> str:
    """135.00 -> "135", 89.50 -> "89.5", with the currency suffix appended."""
    text = f"{price.normalize():f}"
    return f"{text} {suffix}" if suffix else text


def _page(title: str, body: str) -> str:
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en"><head><meta charset="utf-8">'
        f"<title>{escape(title)}</title></head>\n"
        f"<body>\n<h1>{escape(title)}</h1>\n{body}\n</body></html>\n"
    )


def render_site_index(data: LunchData) -> str:
    items = []
    for country, city, site in data.iter_sites():
        label = f"{site.name} ({city.name}, {country.name})"
        items.append(f'<li><a href="/html/site/{site.site_id}">{escape(label)}</a></li>')
    body = "<ul>\n" + "\n".join(items) + "\n</ul>" if items else "<p>No sites yet.</p>"
    return _page("Lunch", body)


def render_site_dishes(data: LunchData) -> str:
    country, city, site = next(data.iter_sites())
    suffix = country.currency_suffix
    sections = []
    for restaurant in site.restaurants:
        heading = escape(restaurant.name)
        if restaurant.url:
            heading = f'<a href="{escape(restaurant.url)}">{heading}</a>'
        rows = []
        for dish in restaurant.dishes:
            text = escape(dish.name)
            if dish.description:
                text += f" <small>{escape(dish.description)}</small>"
            rows.append(f"<li>{text} <b>{escape(format_price(dish.price, suffix))}</b></li>")
        dishes = "<ul>\n" + "\n".join(rows) + "\n</ul>" if rows else "<p>No menu today.</p>"
        sections.append(f"<section>\n<h2>{heading}</h2>\n{dishes}\n</section>")
    body = "\n".join(sections) if sections else "<p>No restaurants yet.</p>"
    return _page(f"{site.name}, {city.name}", body)


@router.get("/", response_class=HTMLResponse)
async def site_index(session: AsyncSession = Depends(get_session)) -> HTMLResponse:
    return HTMLResponse(render_site_index(await queries.list_all_sites(session)))


@router.get("/site/{site_id}", response_class=HTMLResponse)
async def site_dishes(site_id: uuid.UUID, session: AsyncSession = Depends(get_session)) -> HTMLResponse:
    if site_id == NIL_UUID:
        raise HTTPException(status_code=404, detail="not found")
    data = await queries.list_dishes_for_site(session, site_id)
    if data.is_empty():
        raise HTTPException(status_code=404, detail="not found")
    return HTMLResponse(render_site_dishes(data))
