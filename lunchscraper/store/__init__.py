"""
Store package — persistence for scrape results and read queries.
"""

from lunchscraper.store.keys import SiteKey
from lunchscraper.store.site_store import SiteNotFoundError, SiteStore, create_engine_and_sessions

__all__ = ["SiteKey", "SiteNotFoundError", "SiteStore", "create_engine_and_sessions"]
