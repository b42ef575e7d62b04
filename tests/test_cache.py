"""Tests for the result cache."""

import time

import pytest

from career_orchestrator.cache.result_cache import (
    MemoryResultCache,
    SqliteResultCache,
    build_cache,
    make_key,
)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture(params=["memory", "sqlite"])
def cache(request, tmp_path):
    if request.param == "sqlite":
        return SqliteResultCache(db_path=tmp_path / "test_cache.db", ttl_seconds=3600)
    return MemoryResultCache(ttl_seconds=3600)


@pytest.fixture
def record(resume_json):
    return resume_json


class TestMakeKey:
    def test_stable(self):
        assert make_key("parse_resume", "text") == make_key("parse_resume", "text")
        assert len(make_key("parse_resume", "text")) == 64

    def test_operation_is_part_of_key(self):
        assert make_key("parse_resume", "text") != make_key("parse_job", "text")

    def test_argument_boundaries(self):
        assert make_key("match", "ab", "c") != make_key("match", "a", "bc")


class TestResultCache:
    def test_set_and_get(self, cache, record):
        cache.set("k", record)
        assert cache.get("k") == record

    def test_get_nonexistent(self, cache):
        assert cache.get("missing") is None

    def test_returned_value_is_a_copy(self, cache, record):
        cache.set("k", record)
        first = cache.get("k")
        first["name"] = "changed"
        assert cache.get("k")["name"] == "Ada Obi"

    def test_delete(self, cache, record):
        cache.set("k", record)
        cache.delete("k")
        assert cache.get("k") is None

    def test_clear(self, cache, record):
        cache.set("a", record)
        cache.set("b", record)
        assert cache.clear() == 2
        assert cache.get("a") is None

    def test_stats(self, cache, record):
        cache.set("a", record)
        cache.set("b", record)
        stats = cache.stats()
        assert stats["total"] == 2
        assert stats["active"] == 2
        assert stats["expired"] == 0

    def test_upsert(self, cache, record):
        cache.set("k", record)
        cache.set("k", dict(record, name="Ada O."))
        assert cache.get("k")["name"] == "Ada O."


class TestExpiry:
    def test_memory_entry_expires_at_ttl(self, clock, record):
        cache = MemoryResultCache(ttl_seconds=60, clock=clock)
        cache.set("k", record)
        clock.now += 59
        assert cache.get("k") == record
        clock.now += 1
        assert cache.get("k") is None

    def test_memory_stats_count_expired(self, clock, record):
        cache = MemoryResultCache(ttl_seconds=60, clock=clock)
        cache.set("old", record)
        clock.now += 30
        cache.set("new", record)
        clock.now += 30
        assert cache.stats() == {"total": 2, "expired": 1, "active": 1}

    def test_sqlite_ttl_expiration(self, tmp_path, record):
        cache = SqliteResultCache(db_path=tmp_path / "ttl_test.db", ttl_seconds=0)
        cache.set("k", record)
        time.sleep(0.01)
        assert cache.get("k") is None
        assert cache.stats()["total"] == 0

    def test_sqlite_persists_across_instances(self, tmp_path, record):
        db_path = tmp_path / "shared.db"
        SqliteResultCache(db_path=db_path).set("k", record)
        assert SqliteResultCache(db_path=db_path).get("k") == record


class TestBuildCache:
    def test_memory_backend(self):
        assert isinstance(build_cache("memory", 60), MemoryResultCache)

    def test_sqlite_backend(self, tmp_path):
        cache = build_cache("sqlite", 60, tmp_path / "c.db")
        assert isinstance(cache, SqliteResultCache)
        assert cache.ttl_seconds == 60
