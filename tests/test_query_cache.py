from __future__ import annotations

from core.services.query_cache import QueryCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_single_in_flight_fetch_per_key():
    cache = QueryCache()
    token = cache.begin("a")
    assert token is not None
    assert cache.in_flight("a")
    assert cache.begin("a") is None
    assert cache.begin("b") is not None


def test_resolve_stores_value_and_clears_in_flight():
    cache = QueryCache()
    token = cache.begin("a")
    assert cache.resolve("a", token, [1, 2])
    assert not cache.in_flight("a")
    assert cache.get("a").value == [1, 2]
    assert cache.is_fresh("a")


def test_stale_token_is_rejected():
    cache = QueryCache()
    token = cache.begin("a")
    assert cache.resolve("a", token + 100, ["x"]) is False
    assert cache.get("a") is None
    assert cache.in_flight("a")


def test_freshness_window():
    clock = FakeClock()
    cache = QueryCache(ttl_seconds=300, clock=clock)
    cache.resolve("a", cache.begin("a"), "v")

    clock.now += 299
    assert cache.is_fresh("a")
    clock.now += 1
    assert not cache.is_fresh("a")
    # Stale values remain readable
    assert cache.get("a").value == "v"


def test_fail_keeps_previous_value():
    cache = QueryCache()
    cache.resolve("a", cache.begin("a"), "old")
    token = cache.begin("a")
    assert cache.fail("a", token)
    assert not cache.in_flight("a")
    assert cache.get("a").value == "old"


def test_invalidate_single_key_and_all():
    cache = QueryCache()
    cache.resolve("a", cache.begin("a"), 1)
    cache.resolve("b", cache.begin("b"), 2)
    cache.invalidate("a")
    assert cache.get("a") is None and cache.get("b") is not None
    cache.invalidate()
    assert cache.get("b") is None
