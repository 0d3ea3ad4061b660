"""
Lunch Scraper — HTTP Response Cache

In-memory TTL cache for raw response bodies, keyed by request fingerprint,
plus the on-disk snapshot format used to carry the cache across restarts.

Eviction policy:
- An entry expires once more than `ttl` seconds have passed since it was
  inserted. Expired entries are dropped on access and by run_pending_tasks().
- When a put() would exceed `capacity`, the oldest entry by insertion time is
  evicted (FIFO). Reads never reorder entries; re-inserting a key counts as a
  fresh insertion.

The snapshot file is gzip-compressed JSON holding an ordered list of
{key, value} records, with values base64-encoded. Insertion times are NOT
stored: a reloaded entry starts its TTL clock at reload time, so a stale
file reads as fresh for up to one TTL after a restart.
"""

from __future__ import annotations

import gzip
import threading
import time
import zlib
from collections import OrderedDict
from pathlib import Path
from typing import Callable, Iterable

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Snapshot models
# ---------------------------------------------------------------------------


class CacheRecord(BaseModel):
    """One persisted cache entry."""

    model_config = ConfigDict(ser_json_bytes="base64", val_json_bytes="base64")

    key: str
    value: bytes


class CacheFile(BaseModel):
    """Top-level document written to the cache file."""

    model_config = ConfigDict(ser_json_bytes="base64", val_json_bytes="base64")

    entries: list[CacheRecord] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# In-memory cache
# ---------------------------------------------------------------------------


class _Entry:
    __slots__ = ("value", "inserted_at")

    def __init__(self, value: bytes, inserted_at: float) -> None:
        self.value = value
        self.inserted_at = inserted_at


class ResponseCache:
    """
    Bounded TTL map from request fingerprint to response body.

    One instance is shared by every scraper task. No method awaits, and the
    map is guarded by a lock, so interleaved tasks never see a half-applied
    update. Two writers racing on the same key: last write wins.

    Usage:
        cache = ResponseCache(ttl=1200, capacity=64)
        cache.put("GET https://example.com", b"<html>...")
        body = cache.get("GET https://example.com")
    """

    def __init__(
        self,
        ttl: float,
        capacity: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl < 0:
            raise ValueError(f"ttl must be non-negative, got {ttl}")
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self._ttl = ttl
        self._capacity = capacity
        self._clock = clock
        self._entries: OrderedDict[str, _Entry] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def ttl(self) -> float:
        return self._ttl

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def enabled(self) -> bool:
        """A zero TTL disables the cache altogether."""
        return self._ttl > 0

    def _expired(self, entry: _Entry, now: float) -> bool:
        return now - entry.inserted_at > self._ttl

    def get(self, key: str) -> bytes | None:
        """Return the stored body for `key`, or None on miss or expiry."""
        if not self.enabled:
            return None
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._expired(entry, self._clock()):
                del self._entries[key]
                logger.debug("cache_entry_expired", key=key)
                return None
            return entry.value

    def put(self, key: str, value: bytes) -> None:
        """Store `value` under `key`, evicting the oldest entries on overflow."""
        if not self.enabled:
            return
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = _Entry(value, self._clock())
            while len(self._entries) > self._capacity:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("cache_entry_evicted", key=evicted)

    def run_pending_tasks(self) -> int:
        """
        Drop every expired entry.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            now = self._clock()
            stale = [k for k, e in self._entries.items() if self._expired(e, now)]
            for key in stale:
                del self._entries[key]
        if stale:
            logger.debug("cache_sweep", removed=len(stale))
        return len(stale)

    def snapshot(self) -> list[CacheRecord]:
        """Sweep expired entries, then return the live ones oldest first."""
        self.run_pending_tasks()
        with self._lock:
            return [CacheRecord(key=k, value=e.value) for k, e in self._entries.items()]

    def populate(self, records: Iterable[CacheRecord]) -> int:
        """Insert records as if freshly fetched. Returns the number inserted."""
        count = 0
        for record in records:
            self.put(record.key, record.value)
            count += 1
        return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None


# ---------------------------------------------------------------------------
# Snapshot file I/O
# ---------------------------------------------------------------------------


def save_cache_file(path: Path, records: list[CacheRecord]) -> None:
    """Write records to `path`, replacing any previous file."""
    payload = CacheFile(entries=records).model_dump_json().encode("utf-8")
    with gzip.open(path, "wb") as f:
        f.write(payload)
    logger.info("cache_file_saved", path=str(path), entries=len(records))


def load_cache_file(path: Path) -> list[CacheRecord]:
    """
    Read records from `path`.

    A missing, unreadable or malformed file is logged and treated as empty;
    this never raises.
    """
    try:
        with gzip.open(path, "rb") as f:
            raw = f.read()
        records = CacheFile.model_validate_json(raw).entries
    except FileNotFoundError:
        logger.warning("cache_file_missing", path=str(path))
        return []
    except (OSError, EOFError, zlib.error, ValidationError, ValueError) as e:
        logger.warning(
            "cache_file_load_failed",
            path=str(path),
            error=str(e),
            error_type=type(e).__name__,
        )
        return []

    logger.info("cache_file_loaded", path=str(path), entries=len(records))
    return records
