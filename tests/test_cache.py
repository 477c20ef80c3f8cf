"""Tests for the tool result cache."""

from jarvis.tools.cache import ToolResultCache, get_tool_cache, normalize_key
from tests.helpers import FakeClock


def test_normalize_key_trims_and_lowercases():
    assert normalize_key("  Latest iPhone NEWS \n") == "latest iphone news"


class TestGetSet:
    def test_miss_returns_none(self, cache):
        assert cache.get("nothing here") is None

    def test_hit_returns_stored_value(self, cache):
        cache.set("query", "[1, 2]")
        assert cache.get("query") == "[1, 2]"

    def test_keys_differing_by_case_and_whitespace_share_an_entry(self, cache):
        cache.set("  Latest iPhone News ", "payload")
        assert cache.get("latest iphone news") == "payload"
        assert len(cache) == 1

    def test_stats_count_hits_and_misses(self, cache):
        cache.get("a")
        cache.set("a", "x")
        cache.get("a")
        cache.get("A ")

        assert cache.stats() == {"hits": 2, "misses": 1, "size": 1}

    def test_clear_drops_entries_and_counters(self, cache):
        cache.set("a", "x")
        cache.get("a")
        cache.clear()

        assert cache.get("a") is None
        assert cache.stats()["hits"] == 0


class TestExpiry:
    def test_entry_available_before_ttl(self, cache, clock):
        cache.set("q", "v")
        clock.advance(3599)
        assert cache.get("q") == "v"

    def test_entry_not_returned_after_ttl(self, cache, clock):
        cache.set("q", "v")
        clock.advance(3601)
        assert cache.get("q") is None

    def test_ttl_counts_from_insertion(self, cache, clock):
        cache.set("q", "v1")
        clock.advance(3000)
        cache.set("q", "v2")
        clock.advance(1000)
        assert cache.get("q") == "v2"

    def test_sweep_evicts_expired_entries(self, clock):
        cache = ToolResultCache(ttl_seconds=10, max_entries=100, sweep_interval_seconds=5, timer=clock)
        for i in range(5):
            cache.set(f"q{i}", "v")

        clock.advance(11)
        cache.get("unrelated")  # triggers the sweep

        assert cache.stats()["size"] == 0

    def test_expired_entry_hidden_before_sweep(self):
        clock = FakeClock()
        cache = ToolResultCache(ttl_seconds=10, max_entries=100, sweep_interval_seconds=60, timer=clock)
        cache.set("q", "v")
        clock.advance(11)

        # Expired entries are never returned, swept or not
        assert cache.get("q") is None


def test_max_entries_bounds_size(clock):
    cache = ToolResultCache(ttl_seconds=3600, max_entries=3, sweep_interval_seconds=60, timer=clock)
    for i in range(10):
        cache.set(f"q{i}", "v")

    assert len(cache) == 3
    assert cache.get("q9") == "v"
    assert cache.get("q0") is None


def test_get_tool_cache_is_process_wide():
    assert get_tool_cache() is get_tool_cache()
