"""Tests for the TTL cache and the request-generation guard."""

import pytest

from lawcrm.cache import TTLCache
from lawcrm.exceptions import StaleResponseError
from lawcrm.services.generation import RequestGenerationGuard


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_entries_expire_after_ttl():
    clock = FakeClock()
    cache = TTLCache(ttl=10, clock=clock)
    cache.set("lead", {"id": 1})
    assert cache.get("lead") == {"id": 1}
    clock.now += 10
    assert cache.get("lead") is None


def test_per_entry_ttl():
    clock = FakeClock()
    cache = TTLCache(ttl=10, clock=clock)
    cache.set("short", 1, ttl=1)
    cache.set("long", 2)
    clock.now += 5
    assert "short" not in cache
    assert cache.get("long") == 2


def test_invalidate_key_and_generation():
    cache = TTLCache(ttl=60, clock=FakeClock())
    cache.set("a", 1)
    cache.set("b", 2)
    cache.invalidate("a")
    assert cache.get("a", "missing") == "missing"
    assert cache.get("b") == 2

    generation = cache.generation
    cache.invalidate()
    assert cache.generation == generation + 1
    assert cache.get("b") is None
    assert len(cache) == 0


def test_generation_guard_latest_token_wins():
    guard = RequestGenerationGuard()
    first = guard.issue("user:leads")
    second = guard.issue("user:leads")
    other = guard.issue("user:handlers")

    assert not guard.is_current("user:leads", first)
    assert guard.is_current("user:leads", second)
    assert guard.is_current("user:handlers", other)
    guard.ensure_current("user:leads", second)
    with pytest.raises(StaleResponseError):
        guard.ensure_current("user:leads", first)
