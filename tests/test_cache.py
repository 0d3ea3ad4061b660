"""
Tests for the response cache and its snapshot file (lunchscraper/fetch/cache.py).

Covers:
- TTL expiry and the ttl == 0 disabled mode
- FIFO eviction at capacity
- Snapshot save/load, including missing and corrupt files
- Reloaded entries start a fresh TTL
"""

from __future__ import annotations

import gzip
from pathlib import Path

import pytest

from lunchscraper.fetch.cache import (
    CacheRecord,
    ResponseCache,
    load_cache_file,
    save_cache_file,
)


class TestResponseCacheTTL:
    def test_hit_within_ttl(self, clock) -> None:
        cache = ResponseCache(ttl=60, capacity=8, clock=clock)
        cache.put("GET https://a", b"body")

        clock.advance(60)
        assert cache.get("GET https://a") == b"body"

    def test_miss_after_ttl(self, clock) -> None:
        """An entry older than ttl is never returned and is removed on access."""
        cache = ResponseCache(ttl=60, capacity=8, clock=clock)
        cache.put("GET https://a", b"body")

        clock.advance(60.001)
        assert cache.get("GET https://a") is None
        assert len(cache) == 0

    def test_re_put_resets_insertion_time(self, clock) -> None:
        cache = ResponseCache(ttl=60, capacity=8, clock=clock)
        cache.put("k", b"v1")
        clock.advance(50)
        cache.put("k", b"v2")
        clock.advance(50)

        assert cache.get("k") == b"v2"

    def test_zero_ttl_disables_cache(self, clock) -> None:
        cache = ResponseCache(ttl=0, capacity=8, clock=clock)
        cache.put("k", b"v")

        assert not cache.enabled
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_run_pending_tasks_sweeps_expired(self, clock) -> None:
        cache = ResponseCache(ttl=10, capacity=8, clock=clock)
        cache.put("old", b"1")
        clock.advance(8)
        cache.put("new", b"2")
        clock.advance(5)

        assert cache.run_pending_tasks() == 1
        assert "old" not in cache
        assert "new" in cache

    def test_invalid_arguments(self) -> None:
        with pytest.raises(ValueError):
            ResponseCache(ttl=-1, capacity=8)
        with pytest.raises(ValueError):
            ResponseCache(ttl=10, capacity=0)


class TestResponseCacheEviction:
    def test_evicts_oldest_insertion_first(self, clock) -> None:
        cache = ResponseCache(ttl=60, capacity=2, clock=clock)
        cache.put("a", b"1")
        clock.advance(1)
        cache.put("b", b"2")
        clock.advance(1)
        cache.put("c", b"3")

        assert len(cache) == 2
        assert cache.get("a") is None
        assert cache.get("b") == b"2"
        assert cache.get("c") == b"3"

    def test_reads_do_not_protect_from_eviction(self, clock) -> None:
        """Eviction is by insertion order only; a recent read does not matter."""
        cache = ResponseCache(ttl=60, capacity=2, clock=clock)
        cache.put("a", b"1")
        cache.put("b", b"2")
        assert cache.get("a") == b"1"

        cache.put("c", b"3")

        assert cache.get("a") is None
        assert cache.get("b") == b"2"

    def test_re_put_moves_key_to_newest(self, clock) -> None:
        cache = ResponseCache(ttl=60, capacity=2, clock=clock)
        cache.put("a", b"1")
        cache.put("b", b"2")
        cache.put("a", b"1b")
        cache.put("c", b"3")

        assert cache.get("b") is None
        assert cache.get("a") == b"1b"


class TestCacheFile:
    def test_save_and_reload(self, tmp_path: Path, clock) -> None:
        path = tmp_path / "cache.json.gz"
        cache = ResponseCache(ttl=60, capacity=8, clock=clock)
        cache.put("GET https://a", b"\x00\xffbinary")
        cache.put("GET https://b", "åäö".encode())

        save_cache_file(path, cache.snapshot())

        fresh = ResponseCache(ttl=60, capacity=8, clock=clock)
        assert fresh.populate(load_cache_file(path)) == 2
        assert fresh.get("GET https://a") == b"\x00\xffbinary"
        assert fresh.get("GET https://b") == "åäö".encode()

    def test_snapshot_excludes_expired(self, tmp_path: Path, clock) -> None:
        path = tmp_path / "cache.json.gz"
        cache = ResponseCache(ttl=10, capacity=8, clock=clock)
        cache.put("old", b"1")
        clock.advance(11)
        cache.put("new", b"2")

        save_cache_file(path, cache.snapshot())

        assert [r.key for r in load_cache_file(path)] == ["new"]

    def test_reload_restarts_ttl_clock(self, tmp_path: Path, clock) -> None:
        """Insertion times are not persisted: a reloaded entry is fresh again."""
        path = tmp_path / "cache.json.gz"
        cache = ResponseCache(ttl=60, capacity=8, clock=clock)
        cache.put("k", b"v")
        clock.advance(59)
        save_cache_file(path, cache.snapshot())

        reloaded = ResponseCache(ttl=60, capacity=8, clock=clock)
        reloaded.populate(load_cache_file(path))
        clock.advance(30)

        # 89s after the original fetch, but only 30s after reload
        assert cache.get("k") is None
        assert reloaded.get("k") == b"v"

    def test_reload_respects_capacity(self, tmp_path: Path, clock) -> None:
        path = tmp_path / "cache.json.gz"
        save_cache_file(path, [CacheRecord(key=str(i), value=b"x") for i in range(5)])

        small = ResponseCache(ttl=60, capacity=3, clock=clock)
        small.populate(load_cache_file(path))

        assert len(small) == 3
        assert "0" not in small
        assert "4" in small

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        assert load_cache_file(tmp_path / "nope.json.gz") == []

    def test_corrupt_file_is_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "cache.json.gz"
        path.write_bytes(b"definitely not gzip")

        assert load_cache_file(path) == []

    def test_malformed_json_is_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "cache.json.gz"
        with gzip.open(path, "wb") as f:
            f.write(b'{"entries": [{"key": 1}]}')

        assert load_cache_file(path) == []
