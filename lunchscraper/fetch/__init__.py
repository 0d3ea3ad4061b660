"""Lunch Scraper — outbound HTTP with a shared response cache."""

from lunchscraper.fetch.cache import CacheRecord, ResponseCache, load_cache_file, save_cache_file
from lunchscraper.fetch.client import CachedClient, CacheOptions, fingerprint

__all__ = [
    "CacheOptions",
    "CacheRecord",
    "CachedClient",
    "ResponseCache",
    "fingerprint",
    "load_cache_file",
    "save_cache_file",
]
