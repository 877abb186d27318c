"""Tests for the in-memory report cache."""

import pytest

from storefront.reporting.cache import InMemoryReportCache, build_report_cache
from storefront.reporting.cache.port import ReportCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class TestInMemoryReportCache:
    def test_factory_builds_memory_cache(self):
        cache = build_report_cache()
        assert isinstance(cache, ReportCache)
        assert isinstance(cache, InMemoryReportCache)

    def test_factory_rejects_unknown_adapter(self, monkeypatch):
        monkeypatch.setenv("STOREFRONT_REPORT_CACHE", "redis")
        with pytest.raises(ValueError):
            build_report_cache()

    def test_value_is_served_until_ttl(self):
        clock = FakeClock()
        cache = InMemoryReportCache(clock=clock)
        cache.set("admin:analytics", {"revenue": 10}, ttl_seconds=60)

        clock.advance(59)
        assert cache.get("admin:analytics") == {"revenue": 10}

        clock.advance(1)
        assert cache.get("admin:analytics") is None
        assert len(cache) == 0

    def test_missing_key(self):
        assert InMemoryReportCache().get("nope") is None

    def test_get_or_compute_computes_once_per_ttl(self):
        clock = FakeClock()
        cache = InMemoryReportCache(clock=clock)
        calls = []

        def compute():
            calls.append(1)
            return {"n": len(calls)}

        assert cache.get_or_compute("overview:1", compute, 30) == {"n": 1}
        assert cache.get_or_compute("overview:1", compute, 30) == {"n": 1}
        clock.advance(31)
        assert cache.get_or_compute("overview:1", compute, 30) == {"n": 2}

    def test_keys_are_independent(self):
        cache = InMemoryReportCache()
        cache.set("overview:1", 1, 60)
        cache.set("overview:2", 2, 60)
        cache.delete("overview:1")
        assert cache.get("overview:1") is None
        assert cache.get("overview:2") == 2

    def test_clear(self):
        cache = InMemoryReportCache()
        cache.set("a", 1, 60)
        cache.clear()
        assert cache.get("a") is None
