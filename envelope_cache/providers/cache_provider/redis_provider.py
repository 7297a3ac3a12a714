"""
Redis Cache Provider Implementation

This module provides the Redis implementation of the CacheProvider interface
using redis-py with async support.

Features:
- Values stored as compressed JSON envelopes (item + stored + ttl)
- Millisecond expiration enforced by Redis (PSETEX)
- Sentinel, URL, unix socket and host/port topologies
- Caller-managed clients for applications that own their Redis connection
- Structured logging for all operations

Key Design Decisions:
- A cache miss returns None; corruption and connection problems raise
- Redis errors from get/set/drop propagate unchanged
- Expiration is never re-checked on read; Redis is the authority
"""

from typing import Any, Optional, Union

import redis.asyncio as redis

from envelope_cache.logs import TimingCollector, get_component_logger, log_execution_time
from .base import CacheConfig, CacheKey, CacheProvider, Envelope
from .connection import ClientFactory, ConnectionManager
from .envelope import EnvelopeCodec
from .exceptions import CacheTTLError, CorruptEnvelopeError, EncodeError
from .store import RedisStoreClient, create_store_client

logger = get_component_logger("Cache")


class RedisProvider(CacheProvider):
    """
    Redis implementation of the cache provider interface

    Key Naming Convention:
    {partition}:{segment}:{id}

    Examples:
    - users:1
    - tenant-a:users:1

    Args:
        config: CacheConfig object containing Redis connection settings
        client: Caller-managed redis client; start() will not connect it
        client_factory: Builds the store client when no client is supplied
        timing_collector: Optional collector for compress/decompress timings
    """

    def __init__(
        self,
        config: CacheConfig,
        client: Optional[Union[RedisStoreClient, redis.Redis]] = None,
        client_factory: ClientFactory = create_store_client,
        timing_collector: Optional[TimingCollector] = None,
    ):
        super().__init__(config)

        self.connection = ConnectionManager(config, client=client, client_factory=client_factory)
        self.codec = EnvelopeCodec(config.compression, timing_collector=timing_collector)

    # ==================== Connection Management ====================

    async def start(self) -> None:
        """
        Establish the connection to Redis

        Raises:
            ConnectionStartError: If the initial connection attempt fails
        """
        with log_execution_time(logger, "Cache", "Start"):
            await self.connection.start()

    async def stop(self) -> None:
        """Close the connection to Redis. Safe to call more than once."""
        await self.connection.stop()

    def is_ready(self) -> bool:
        return self.connection.is_ready()

    async def health_check(self) -> bool:
        """
        Check if Redis server is healthy and responsive

        Returns:
            True if Redis server responds to PING, False otherwise
        """
        return await self.connection.health_check()

    # ==================== Cache Operations ====================

    async def get(self, key: CacheKey) -> Optional[Envelope]:
        """
        Retrieve the envelope stored under a logical key

        Args:
            key: Logical cache key

        Returns:
            The full Envelope (item, stored, ttl), or None on a cache miss

        Raises:
            NotConnectedError: If no connection is active
            CorruptEnvelopeError: If the stored bytes cannot be unpacked
        """
        client = self.connection.acquire()
        store_key = self.generate_key(key)

        try:
            result = await client.get_buffer(store_key)
        except Exception as e:
            logger.error(
                f"Failed to get key: {e}",
                subcomponent="RedisProvider",
                store_key=store_key,
            )
            raise

        if not result:
            logger.debug(
                "Cache miss",
                subcomponent="RedisProvider",
                store_key=store_key,
                cache_hit=False,
            )
            return None

        try:
            envelope = self.codec.decode(result)
        except CorruptEnvelopeError as e:
            logger.error(
                f"Corrupt cache entry: {e}",
                subcomponent="RedisProvider",
                store_key=store_key,
                status="error",
            )
            raise

        logger.debug(
            "Cache hit",
            subcomponent="RedisProvider",
            store_key=store_key,
            cache_hit=True,
            stored=envelope.stored,
        )

        return envelope

    async def set(self, key: CacheKey, value: Any, ttl: int) -> None:
        """
        Store a value under a logical key

        Args:
            key: Logical cache key
            value: JSON-representable value
            ttl: Time-to-live in milliseconds

        Raises:
            NotConnectedError: If no connection is active
            CacheTTLError: If ttl is not a positive integer
            EncodeError: If the value cannot be packed; nothing is written
        """
        client = self.connection.acquire()

        if isinstance(ttl, bool) or not isinstance(ttl, int) or ttl <= 0:
            raise CacheTTLError("TTL must be a positive number of milliseconds", {"ttl": ttl})

        store_key = self.generate_key(key)

        try:
            payload = self.codec.encode(value, ttl)
        except EncodeError as e:
            logger.error(
                f"Failed to encode value: {e}",
                subcomponent="RedisProvider",
                store_key=store_key,
                status="error",
            )
            raise

        try:
            await client.psetex(store_key, ttl, payload)
        except Exception as e:
            logger.error(
                f"Failed to set key: {e}",
                subcomponent="RedisProvider",
                store_key=store_key,
            )
            raise

        logger.debug(
            "Set key",
            subcomponent="RedisProvider",
            store_key=store_key,
            ttl=ttl,
            payload_bytes=len(payload),
        )

    async def drop(self, key: CacheKey) -> None:
        """
        Delete the value stored under a logical key

        Args:
            key: Logical cache key

        Raises:
            NotConnectedError: If no connection is active
        """
        client = self.connection.acquire()
        store_key = self.generate_key(key)

        try:
            deleted = await client.delete(store_key)
        except Exception as e:
            logger.error(
                f"Failed to delete key: {e}",
                subcomponent="RedisProvider",
                store_key=store_key,
            )
            raise

        logger.debug(
            "Deleted key",
            subcomponent="RedisProvider",
            store_key=store_key,
            deleted=deleted > 0,
        )
