from __future__ import annotations

import fakeredis
import fakeredis.aioredis
import pytest

from envelope_cache.config import reset_settings
from envelope_cache.providers.cache_provider import CacheConfig, RedisProvider, RedisStoreClient


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    """Keep tests independent of the developer's REDIS_*/CACHE_* environment."""
    for name in (
        "REDIS_HOST",
        "REDIS_PORT",
        "REDIS_URL",
        "REDIS_SOCKET",
        "REDIS_SENTINELS",
        "REDIS_SENTINEL_NAME",
        "REDIS_PASSWORD",
        "REDIS_DB",
        "CACHE_PARTITION",
        "CACHE_COMPRESSION",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def fake_redis():
    return fakeredis.aioredis.FakeRedis(server=fakeredis.FakeServer())


@pytest.fixture
def config():
    return CacheConfig(partition="test")


@pytest.fixture
async def provider(config, fake_redis):
    """A started provider that owns a fakeredis-backed store client."""
    cache = RedisProvider(config, client_factory=lambda _: RedisStoreClient(fake_redis))
    await cache.start()
    yield cache
    await cache.stop()
