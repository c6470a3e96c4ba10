"""Tests for the TTL caches and the cached rule set."""

import pytest
import redis.asyncio as redis

from price_updater.config import settings
from price_updater.db.models import DiscountRule
from price_updater.storage.cache import MemoryTTLCache, RedisTTLCache, TTLCache, create_cache
from price_updater.storage.repository import PriceRepository


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class BrokenCache(TTLCache):
    async def get(self, key):
        raise ConnectionError("cache down")

    async def set(self, key, value, ttl_seconds):
        raise ConnectionError("cache down")

    async def delete(self, key):
        raise ConnectionError("cache down")


async def _redis_available() -> bool:
    try:
        client = await redis.from_url(settings.redis_url, decode_responses=True)
        await client.ping()
        await client.close()
        return True
    except Exception:
        return False


@pytest.mark.asyncio
async def test_memory_cache_expires_entries():
    clock = FakeClock()
    cache = MemoryTTLCache(clock=clock)

    await cache.set("rules", [{"id": 1}], ttl_seconds=60)
    assert await cache.get("rules") == [{"id": 1}]

    clock.now += 59
    assert await cache.get("rules") == [{"id": 1}]

    clock.now += 1
    assert await cache.get("rules") is None
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_memory_cache_delete():
    cache = MemoryTTLCache()
    await cache.set("rules", [], ttl_seconds=60)
    await cache.delete("rules")
    await cache.delete("missing")

    assert await cache.get("rules") is None


def test_create_cache_falls_back_to_memory():
    assert isinstance(create_cache("memory"), MemoryTTLCache)
    assert isinstance(create_cache("memcached"), MemoryTTLCache)
    assert isinstance(create_cache("redis"), RedisTTLCache)


@pytest.mark.asyncio
async def test_repository_serves_rules_from_cache(repository, seeded_session):
    first = await repository.get_rule_records()
    assert [r["id"] for r in first] == [1, 2]

    # New rows stay invisible until the cached set expires or is invalidated
    seeded_session.add(DiscountRule(id=4, conditions=[{"kind": "all", "comparison": "include"}], brackets=[]))
    await seeded_session.commit()
    assert [r["id"] for r in await repository.get_rule_records()] == [1, 2]

    await repository.invalidate_rules()
    assert [r["id"] for r in await repository.get_rule_records()] == [1, 2, 4]


@pytest.mark.asyncio
async def test_repository_survives_cache_failure(seeded_session):
    repository = PriceRepository(seeded_session, cache=BrokenCache())

    records = await repository.get_rule_records()
    await repository.invalidate_rules()

    assert [r["id"] for r in records] == [1, 2]


@pytest.mark.asyncio
async def test_redis_cache_round_trip():
    if not await _redis_available():
        pytest.skip("Redis not available")

    cache = RedisTTLCache(settings.redis_url, prefix="price_updater_test:")
    try:
        await cache.set("rules", [{"id": 1, "brackets": []}], ttl_seconds=30)
        assert await cache.get("rules") == [{"id": 1, "brackets": []}]

        await cache.delete("rules")
        assert await cache.get("rules") is None
    finally:
        await cache.close()
