"""
Lunch Scraper — Cache-backed HTTP Client

Thin wrapper over httpx.AsyncClient that routes GET requests through the
shared ResponseCache. A single CachedClient is built by the supervisor and
handed (by reference) to every scraper.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Optional, TypeVar

import httpx
import structlog
from pydantic import BaseModel, Field, TypeAdapter

from lunchscraper.config import settings
from lunchscraper.fetch.cache import ResponseCache, load_cache_file, save_cache_file

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class CacheOptions(BaseModel):
    """Knobs for building a CachedClient. Durations are in seconds."""

    request_delay: float = Field(default=1.5, ge=0)
    request_timeout: float = Field(default=5.0, gt=0)
    cache_ttl: float = Field(default=1200.0, ge=0)
    cache_capacity: int = Field(default=64, ge=1)
    cache_path: Optional[Path] = None
    user_agent: str = "lunchscraper"

    @classmethod
    def from_settings(cls, **overrides: Any) -> CacheOptions:
        """Build options from the global settings, with keyword overrides."""
        values: dict[str, Any] = {
            "request_delay": settings.REQUEST_DELAY_SECONDS,
            "request_timeout": settings.REQUEST_TIMEOUT_SECONDS,
            "cache_ttl": settings.CACHE_TTL_SECONDS,
            "cache_capacity": settings.CACHE_CAPACITY,
            "cache_path": settings.CACHE_PATH,
            "user_agent": settings.USER_AGENT,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def fingerprint(method: str, url: str) -> str:
    """Cache key for an outbound request."""
    return f"{method.upper()} {url}"


def _decode(body: bytes) -> str:
    return body.decode("utf-8", errors="replace")


class CachedClient:
    """
    HTTP client whose GETs are served from the response cache when possible.

    Usage:
        client = CachedClient.build(CacheOptions.from_settings())
        html = await client.get_as_string("https://example.com/menu")
        await client.save()
        await client.aclose()
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        cache: ResponseCache,
        cache_path: Path | None = None,
        request_delay: float = 0.0,
    ) -> None:
        self._http = http
        self.cache = cache
        self.cache_path = cache_path
        self.request_delay = request_delay

    @classmethod
    def build(
        cls,
        options: CacheOptions,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> CachedClient:
        """
        Create the HTTP client and cache, preloading the cache from
        options.cache_path when one is set.
        """
        http = httpx.AsyncClient(
            headers={"User-Agent": options.user_agent},
            timeout=options.request_timeout,
            follow_redirects=True,
            transport=transport,
        )
        cache = ResponseCache(ttl=options.cache_ttl, capacity=options.cache_capacity)
        if options.cache_path is not None:
            loaded = cache.populate(load_cache_file(options.cache_path))
            logger.debug("cache_populated", entries=loaded, path=str(options.cache_path))

        logger.info(
            "http_client_ready",
            cache_enabled=cache.enabled,
            cache_ttl_seconds=options.cache_ttl,
            cache_capacity=options.cache_capacity,
            request_timeout_seconds=options.request_timeout,
        )
        return cls(http, cache, options.cache_path, options.request_delay)

    async def get_as_string(self, url: str) -> str:
        """
        GET `url` and return the body as text.

        A cached body within TTL is returned without touching the network.
        Otherwise the request is sent; non-2xx responses raise
        httpx.HTTPStatusError and are not cached. No retries.
        """
        key = fingerprint("GET", url)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("http_cache_hit", url=url)
            return _decode(cached)

        logger.debug("http_fetch", url=url)
        response = await self._http.get(url)
        response.raise_for_status()
        # httpx decodes with the declared charset; the cache always holds UTF-8
        text = response.text
        self.cache.put(key, text.encode("utf-8"))
        return text

    async def get_json(self, url: str, adapter: TypeAdapter[T]) -> T:
        """GET `url` and validate the JSON body with a pydantic TypeAdapter."""
        return adapter.validate_json(await self.get_as_string(url))

    async def throttle(self) -> None:
        """Pause between consecutive requests to the same site."""
        if self.request_delay > 0:
            await asyncio.sleep(self.request_delay)

    async def save(self) -> None:
        """Persist live cache entries to cache_path. No-op without a path."""
        if self.cache_path is None:
            logger.debug("cache_save_skipped", reason="no_cache_path")
            return
        save_cache_file(self.cache_path, self.cache.snapshot())

    async def aclose(self) -> None:
        await self._http.aclose()
