"""
Lunch Scraper — Scrape Layer

Immutable values produced by scrapers and handed to the supervisor over the
result channel. Every scrape mints fresh ids: a restaurant or dish id never
survives from one cycle to the next.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Dish(BaseModel):
    """One menu item."""

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    restaurant_id: Optional[uuid.UUID] = None
    name: str
    description: Optional[str] = None
    comment: Optional[str] = None
    tags: frozenset[str] = frozenset()
    price: Decimal = Field(default=Decimal("0"), ge=0)

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, v: Any) -> frozenset[str]:
        """Tags are stored comma-joined, so a comma always separates two tags."""
        if v is None:
            return frozenset()
        if isinstance(v, str):
            v = [v]
        return frozenset(t.strip() for tag in v for t in str(tag).split(",") if t.strip())

    def for_restaurant(self, restaurant_id: uuid.UUID) -> Dish:
        """Return a copy bound to the given parent restaurant."""
        return self.model_copy(update={"restaurant_id": restaurant_id})


class Restaurant(BaseModel):
    """A restaurant and the dishes it serves today."""

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    site_id: uuid.UUID
    name: str
    comment: Optional[str] = None
    address: Optional[str] = None
    url: Optional[str] = None
    map_url: Optional[str] = None
    parsed_at: datetime = Field(default_factory=_now)
    dishes: tuple[Dish, ...] = ()

    @classmethod
    def new_for_site(cls, name: str, site_id: uuid.UUID, **fields: Any) -> Restaurant:
        return cls(name=name, site_id=site_id, **fields)

    def with_dishes(self, dishes: Iterable[Dish]) -> Restaurant:
        """Return a copy holding `dishes`, each bound to this restaurant."""
        return self.model_copy(
            update={"dishes": tuple(d.for_restaurant(self.id) for d in dishes)}
        )


class SiteScrapeResult(BaseModel):
    """Everything one scraper found for its site in one run."""

    model_config = ConfigDict(frozen=True)

    site_id: uuid.UUID
    restaurants: tuple[Restaurant, ...] = ()

    @property
    def num_restaurants(self) -> int:
        return len(self.restaurants)

    @property
    def num_dishes(self) -> int:
        return sum(len(r.dishes) for r in self.restaurants)


class ScrapeOutcome(BaseModel):
    """
    Success or failure of one scraper run, as carried on the result channel.

    Exactly one of `result` / `error` is set.
    """

    model_config = ConfigDict(frozen=True)

    scraper: str
    result: Optional[SiteScrapeResult] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.result is not None

    @classmethod
    def success(cls, scraper: str, result: SiteScrapeResult) -> ScrapeOutcome:
        return cls(scraper=scraper, result=result)

    @classmethod
    def failure(cls, scraper: str, exc: BaseException) -> ScrapeOutcome:
        return cls(scraper=scraper, error=str(exc) or repr(exc), error_type=type(exc).__name__)
