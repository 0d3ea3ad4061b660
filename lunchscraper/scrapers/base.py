"""
Lunch Scraper — Site Scraper Contract

A SiteScraper knows how to collect today's restaurants and dishes for one
site. It is built once at supervisor startup with the shared HTTP client and
the site's already-resolved id, and is run any number of times after that.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from typing import Callable, ClassVar

from pydantic import BaseModel, ConfigDict

from lunchscraper.fetch.client import CachedClient
from lunchscraper.scrape import SiteScrapeResult
from lunchscraper.store.keys import SiteKey


class ScrapeError(Exception):
    """The fetched document did not have the expected shape."""


class SiteScraper(ABC):
    """Base class for all site scrapers."""

    #: Stable display name, used for logging only.
    name: ClassVar[str] = "SiteScraper"

    def __init__(self, client: CachedClient, site_id: uuid.UUID) -> None:
        self.client = client
        self.site_id = site_id

    @abstractmethod
    async def run(self) -> SiteScrapeResult:
        """Scrape the site once. Any exception aborts this run only."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r} site_id={self.site_id}>"


ScraperFactory = Callable[[CachedClient, uuid.UUID], SiteScraper]


class ScraperRegistration(BaseModel):
    """Binds a scraper class to the site it serves."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    key: SiteKey
    factory: ScraperFactory
    name: str

    @classmethod
    def of(cls, key: str, scraper_cls: type[SiteScraper]) -> ScraperRegistration:
        return cls(key=SiteKey.parse(key), factory=scraper_cls, name=scraper_cls.name)

    def build(self, client: CachedClient, site_id: uuid.UUID) -> SiteScraper:
        return self.factory(client, site_id)
