import pytest

from api.gateway_cache import GatewayCache
from services.calendar import InMemoryCalendarGateway


def test_put_get_remove():
    cache = GatewayCache(max_size=2)
    gateway = InMemoryCalendarGateway()

    cache.put("user_a", gateway)
    assert cache.get("user_a") is gateway
    assert "user_a" in cache

    assert cache.remove("user_a") is gateway
    assert cache.get("user_a") is None
    assert cache.remove("user_a") is None


def test_oldest_entry_is_evicted_when_full():
    cache = GatewayCache(max_size=2)
    cache.put("user_a", InMemoryCalendarGateway())
    cache.put("user_b", InMemoryCalendarGateway())
    cache.put("user_c", InMemoryCalendarGateway())

    assert len(cache) == 2
    assert "user_a" not in cache
    assert "user_b" in cache and "user_c" in cache


def test_reinsert_refreshes_position():
    cache = GatewayCache(max_size=2)
    cache.put("user_a", InMemoryCalendarGateway())
    cache.put("user_b", InMemoryCalendarGateway())
    replacement = InMemoryCalendarGateway()
    cache.put("user_a", replacement)
    cache.put("user_c", InMemoryCalendarGateway())

    assert cache.get("user_a") is replacement
    assert "user_b" not in cache


def test_clear():
    cache = GatewayCache(max_size=4)
    cache.put("user_a", InMemoryCalendarGateway())
    cache.clear()
    assert len(cache) == 0


def test_max_size_must_be_positive():
    with pytest.raises(ValueError):
        GatewayCache(max_size=0)
