"""
Lunch Scraper — Read-side Presentation Models

Nested view of the stored hierarchy returned by store.queries and served by
the web layer:

    LunchData -> CountryView -> CityView -> SiteView -> RestaurantView -> DishView

Every level carries its id so clients can navigate with the JSON routes.
Levels that were not requested are simply left empty.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class DishView(BaseModel):
    dish_id: uuid.UUID
    name: str
    description: Optional[str] = None
    comment: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    price: Decimal = Decimal("0")


class RestaurantView(BaseModel):
    restaurant_id: uuid.UUID
    name: str
    comment: Optional[str] = None
    address: Optional[str] = None
    url: Optional[str] = None
    map_url: Optional[str] = None
    parsed_at: Optional[datetime] = None
    dishes: list[DishView] = Field(default_factory=list)


class SiteView(BaseModel):
    site_id: uuid.UUID
    url_id: str
    name: str
    comment: Optional[str] = None
    restaurants: list[RestaurantView] = Field(default_factory=list)


class CityView(BaseModel):
    city_id: uuid.UUID
    url_id: str
    name: str
    sites: list[SiteView] = Field(default_factory=list)


class CountryView(BaseModel):
    country_id: uuid.UUID
    url_id: str
    name: str
    currency_suffix: Optional[str] = None
    cities: list[CityView] = Field(default_factory=list)


class LunchData(BaseModel):
    countries: list[CountryView] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.countries

    def iter_sites(self):
        for country in self.countries:
            for city in country.cities:
                for site in city.sites:
                    yield country, city, site
