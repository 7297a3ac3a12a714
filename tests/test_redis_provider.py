from __future__ import annotations

import asyncio

import lz4.frame
import pytest
from redis.exceptions import ResponseError

from envelope_cache.providers.cache_provider import (
    CacheConfig,
    CacheKey,
    CacheTTLError,
    CorruptEnvelopeError,
    EncodeError,
    Envelope,
    NotConnectedError,
    RedisProvider,
    RedisStoreClient,
    StoreStatus,
)

USERS_1 = CacheKey(segment="users", id="1")


class BrokenRedis:
    """Redis stand-in whose commands fail with a server error."""

    async def ping(self):
        return True

    async def get(self, key):
        raise ResponseError("WRONGTYPE Operation against a key holding the wrong kind of value")

    async def psetex(self, key, ttl, value):
        raise ResponseError("OOM command not allowed when used memory > 'maxmemory'")

    async def delete(self, key):
        raise ResponseError("READONLY You can't write against a read only replica")

    async def aclose(self):
        pass


@pytest.mark.asyncio
async def test_set_get_drop_scenario(provider):
    await provider.set(USERS_1, {"name": "Ann"}, 5000)

    envelope = await provider.get(USERS_1)
    assert isinstance(envelope, Envelope)
    assert envelope.item == {"name": "Ann"}
    assert envelope.ttl == 5000
    assert isinstance(envelope.stored, int)

    await provider.drop(USERS_1)
    assert await provider.get(USERS_1) is None


@pytest.mark.asyncio
async def test_get_missing_key_is_a_miss(provider):
    assert await provider.get(CacheKey("users", "404")) is None


@pytest.mark.asyncio
async def test_set_writes_compressed_envelope_with_millisecond_expiry(provider, fake_redis):
    await provider.set(USERS_1, {"name": "Ann"}, 5000)

    raw = await fake_redis.get("test:users:1")
    assert b"Ann" in lz4.frame.decompress(raw)

    pttl = await fake_redis.pttl("test:users:1")
    assert 0 < pttl <= 5000


@pytest.mark.asyncio
@pytest.mark.parametrize("value", [0, False, "", None, []])
async def test_falsy_items_are_hits(provider, value):
    await provider.set(USERS_1, value, 5000)

    envelope = await provider.get(USERS_1)

    assert envelope is not None
    assert envelope.item == value


@pytest.mark.asyncio
async def test_corrupt_entry_is_an_error_not_a_miss(provider, fake_redis):
    await fake_redis.set("test:users:1", b"definitely not lz4")

    with pytest.raises(CorruptEnvelopeError):
        await provider.get(USERS_1)


@pytest.mark.asyncio
async def test_envelope_without_item_is_corrupt(provider, fake_redis):
    await fake_redis.set("test:users:1", lz4.frame.compress(b'{"stored": 1, "ttl": 10}'))

    with pytest.raises(CorruptEnvelopeError, match="Incorrect envelope structure"):
        await provider.get(USERS_1)


@pytest.mark.asyncio
async def test_encode_error_skips_store_write(provider, fake_redis):
    value = []
    value.append(value)

    with pytest.raises(EncodeError):
        await provider.set(USERS_1, value, 5000)

    assert await fake_redis.exists("test:users:1") == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("ttl", [0, -5, 1.5, "5000", True, None])
async def test_invalid_ttl_is_rejected(provider, fake_redis, ttl):
    with pytest.raises(CacheTTLError):
        await provider.set(USERS_1, "x", ttl)

    assert await fake_redis.exists("test:users:1") == 0


@pytest.mark.asyncio
async def test_drop_missing_key_is_not_an_error(provider):
    await provider.drop(CacheKey("users", "404"))


@pytest.mark.asyncio
async def test_operations_before_start_raise_not_connected(config):
    cache = RedisProvider(config)

    with pytest.raises(NotConnectedError):
        await cache.get(USERS_1)
    with pytest.raises(NotConnectedError):
        await cache.set(USERS_1, "x", 1000)
    with pytest.raises(NotConnectedError):
        await cache.drop(USERS_1)


@pytest.mark.asyncio
async def test_operations_after_stop_raise_not_connected(provider):
    await provider.stop()

    assert not provider.is_ready()
    with pytest.raises(NotConnectedError):
        await provider.get(USERS_1)
    with pytest.raises(NotConnectedError):
        await provider.set(USERS_1, "x", 1000)
    with pytest.raises(NotConnectedError):
        await provider.drop(USERS_1)


@pytest.mark.asyncio
async def test_operations_scheduled_before_stop_raise_not_connected(provider):
    pending = [
        asyncio.create_task(provider.get(USERS_1)),
        asyncio.create_task(provider.set(USERS_1, "x", 1000)),
        asyncio.create_task(provider.drop(USERS_1)),
    ]

    await provider.stop()
    results = await asyncio.gather(*pending, return_exceptions=True)

    assert all(isinstance(result, NotConnectedError) for result in results)


@pytest.mark.asyncio
async def test_stop_twice_leaves_provider_not_ready(provider):
    await provider.stop()
    await provider.stop()

    assert not provider.is_ready()


@pytest.mark.asyncio
async def test_store_errors_propagate_unchanged(config):
    cache = RedisProvider(config, client=BrokenRedis())
    await cache.start()

    with pytest.raises(ResponseError, match="WRONGTYPE"):
        await cache.get(USERS_1)
    with pytest.raises(ResponseError, match="OOM"):
        await cache.set(USERS_1, "x", 1000)
    with pytest.raises(ResponseError, match="READONLY"):
        await cache.drop(USERS_1)

    # Server errors do not affect readiness
    assert cache.is_ready()


@pytest.mark.asyncio
async def test_caller_managed_client(config, fake_redis):
    cache = RedisProvider(config, client=fake_redis)

    await cache.start()
    await cache.set(USERS_1, {"name": "Ann"}, 5000)
    await cache.stop()

    # stop() leaves the caller's connection usable
    assert await fake_redis.exists("test:users:1") == 1


@pytest.mark.asyncio
async def test_partitions_isolate_caches(fake_redis):
    tenant_a = RedisProvider(CacheConfig(partition="a"), client=fake_redis)
    tenant_b = RedisProvider(CacheConfig(partition="b"), client=fake_redis)

    await tenant_a.set(USERS_1, "from a", 5000)

    assert (await tenant_a.get(USERS_1)).item == "from a"
    assert await tenant_b.get(USERS_1) is None


@pytest.mark.asyncio
async def test_zlib_provider_round_trip(fake_redis):
    cache = RedisProvider(CacheConfig(compression="zlib"), client=fake_redis)

    await cache.set(USERS_1, {"n": 1}, 5000)

    assert (await cache.get(USERS_1)).item == {"n": 1}


@pytest.mark.asyncio
async def test_health_check_and_readiness(provider):
    assert provider.is_ready()
    assert await provider.health_check() is True

    provider.connection.client.status = StoreStatus.RECONNECTING
    assert not provider.is_ready()


@pytest.mark.asyncio
async def test_timing_collector_is_wired_through(config, fake_redis):
    events = []

    class Collector:
        def record(self, operation, duration, **fields):
            events.append(operation)

    cache = RedisProvider(config, client=RedisStoreClient(fake_redis, StoreStatus.READY), timing_collector=Collector())
    await cache.set(USERS_1, "x", 1000)
    await cache.get(USERS_1)

    assert events == ["compress", "decompress"]
