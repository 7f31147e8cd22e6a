"""
Unit tests for the dashboard TTL cache.
"""

import threading

import pytest

from service_dashboard.app.caching import DEFAULT_TTL, METRICS_TTL, TTLCache, TTLPolicy


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestTTLCache:
    """Test cases for TTLCache."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def cache(self, clock):
        return TTLCache(clock=clock)

    def test_hit_returns_stored_object(self, cache, clock):
        """A fresh entry comes back as the exact stored object."""
        value = {"success": True, "result": [1, 2, 3]}
        cache.set("GET:/workers", value)
        clock.advance(10)

        assert cache.get("GET:/workers", 60) is value

    def test_missing_key(self, cache):
        """Unknown keys are absent."""
        assert cache.get("GET:/nothing", 60) is None

    def test_expired_entry_is_removed(self, cache, clock):
        """An expired read returns None and deletes the entry."""
        cache.set("GET:/workers", "payload")
        clock.advance(61)

        assert cache.get("GET:/workers", 60) is None
        # Even a longer window cannot resurrect it
        assert cache.get("GET:/workers", 10_000) is None
        assert cache.keys() == []

    def test_entry_at_exact_ttl_is_fresh(self, cache, clock):
        """Expiry is strictly greater-than the TTL."""
        cache.set("GET:/pages", "payload")
        clock.advance(60)

        assert cache.get("GET:/pages", 60) == "payload"

    def test_ttl_is_chosen_by_reader(self, cache, clock):
        """The same entry is fresh under one window and stale under another."""
        cache.set("GET:/metrics?range=24h", "payload")
        clock.advance(150)

        assert cache.get("GET:/metrics?range=24h", DEFAULT_TTL) == "payload"
        assert cache.get("GET:/metrics?range=24h", METRICS_TTL) is None

    def test_set_overwrites_and_refreshes(self, cache, clock):
        """Re-setting a key replaces the value and its write time."""
        cache.set("GET:/workers", "old")
        clock.advance(50)
        cache.set("GET:/workers", "new")
        clock.advance(50)

        assert cache.get("GET:/workers", 60) == "new"

    def test_invalidate_is_substring_scoped(self, cache):
        """Invalidating 'workers' drops worker keys and leaves pages alone."""
        cache.set("GET:/workers", 1)
        cache.set("GET:/workers/foo", 2)
        cache.set("GET:/pages", 3)

        removed = cache.invalidate("workers")

        assert removed == 2
        assert cache.keys() == ["GET:/pages"]

    def test_invalidate_without_matches(self, cache):
        """A pattern matching nothing removes nothing."""
        cache.set("GET:/pages", 3)

        assert cache.invalidate("/webhooks") == 0
        assert len(cache) == 1

    def test_clear_empties_everything(self, cache):
        """clear() leaves no keys behind."""
        for index in range(5):
            cache.set(f"GET:/workers/{index}", index)

        cache.clear()

        assert cache.keys() == []
        assert len(cache) == 0

    def test_concurrent_writers(self):
        """Interleaved set/invalidate from threads never corrupts the map."""
        cache = TTLCache()

        def writer(prefix: str):
            for index in range(200):
                cache.set(f"GET:/{prefix}/{index}", index)
                if index % 20 == 0:
                    cache.invalidate(f"/{prefix}/1")

        threads = [threading.Thread(target=writer, args=(name,)) for name in ("workers", "pages", "jobs")]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        for key in cache.keys():
            assert key.startswith("GET:/")


class TestTTLPolicy:
    """Test cases for TTLPolicy."""

    def test_default_ttl(self):
        """Ordinary resources use the five-minute window."""
        policy = TTLPolicy()

        assert policy.ttl_for("/workers") == DEFAULT_TTL
        assert policy.ttl_for("/workers/foo/settings") == DEFAULT_TTL

    def test_metrics_ttl(self):
        """Analytics use the shorter window, with or without a query string."""
        policy = TTLPolicy()

        assert policy.ttl_for("/metrics") == METRICS_TTL
        assert policy.ttl_for("/metrics?range=7d") == METRICS_TTL

    def test_prefix_requires_boundary(self):
        """A path that merely starts with the same letters is not an override."""
        policy = TTLPolicy(default=300, overrides=(("/metrics", 120),))

        assert policy.ttl_for("/metricsx") == 300
