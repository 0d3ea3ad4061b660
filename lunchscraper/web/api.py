"""
Lunch Scraper — JSON API

Read-only navigation of the stored data. Every route returns a LunchData
tree holding the path down to the requested node plus its children.
The nil UUID and unknown ids are 404.
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from lunchscraper.models.api import LunchData
from lunchscraper.store import queries
from lunchscraper.web.deps import found, get_session, require_id

router = APIRouter(tags=["lunch"])


@router.get("/", include_in_schema=False)
async def index() -> RedirectResponse:
    return RedirectResponse(url="/countries/", status_code=308)


@router.get("/countries/", response_model=LunchData)
async def list_countries(session: AsyncSession = Depends(get_session)):
    return await queries.list_countries(session)


@router.get("/cities/{country_id}", response_model=LunchData)
async def list_cities(country_id: uuid.UUID, session: AsyncSession = Depends(get_session)):
    return found(await queries.list_cities(session, require_id(country_id)))


@router.get("/sites/{city_id}", response_model=LunchData)
async def list_sites(city_id: uuid.UUID, session: AsyncSession = Depends(get_session)):
    return found(await queries.list_sites(session, require_id(city_id)))


@router.get("/restaurants/{site_id}", response_model=LunchData)
async def list_restaurants(site_id: uuid.UUID, session: AsyncSession = Depends(get_session)):
    return found(await queries.list_restaurants(session, require_id(site_id)))


@router.get("/dishes/restaurant/{restaurant_id}", response_model=LunchData)
async def list_dishes_for_restaurant(
    restaurant_id: uuid.UUID, session: AsyncSession = Depends(get_session)
):
    return found(await queries.list_dishes_for_restaurant(session, require_id(restaurant_id)))


@router.get("/dishes/site/{site_id}", response_model=LunchData)
async def list_dishes_for_site(site_id: uuid.UUID, session: AsyncSession = Depends(get_session)):
    return found(await queries.list_dishes_for_site(session, require_id(site_id)))


@router.get("/list/", response_model=LunchData)
async def list_by_key(
    country: Optional[str] = None,
    city: Optional[str] = None,
    session: AsyncSession = Depends(get_session),
):
    """Everything under the given country / city url ids, e.g. ?country=se&city=gbg."""
    return found(await queries.list_by_key(session, country=country, city=city))
