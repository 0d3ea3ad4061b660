"""
Lunch Scraper — Scraper Roster

The closed set of site scrapers this process knows about. Adding a site
means writing a SiteScraper subclass and registering it here against the
(country, city, site) url ids it serves.
"""

from __future__ import annotations

from typing import Iterable, Optional

from lunchscraper.scrapers.base import ScrapeError, ScraperRegistration, SiteScraper
from lunchscraper.scrapers.lindholmen import LindholmenScraper
from lunchscraper.scrapers.oldtown import OldTownScraper

REGISTRY: tuple[ScraperRegistration, ...] = (
    ScraperRegistration.of("se/gbg/lh", LindholmenScraper),
    ScraperRegistration.of("se/gbg/majorna", OldTownScraper),
)


def get_registrations(names: Optional[Iterable[str]] = None) -> list[ScraperRegistration]:
    """
    Return all registrations, or only those whose scraper name or site key
    is listed in `names`.

    Raises:
        KeyError: A requested name matches no registration.
    """
    if not names:
        return list(REGISTRY)

    wanted = list(names)
    selected = []
    for name in wanted:
        matches = [r for r in REGISTRY if name in (r.name, str(r.key))]
        if not matches:
            raise KeyError(name)
        selected.extend(m for m in matches if m not in selected)
    return selected


__all__ = [
    "REGISTRY",
    "ScrapeError",
    "ScraperRegistration",
    "SiteScraper",
    "get_registrations",
]
