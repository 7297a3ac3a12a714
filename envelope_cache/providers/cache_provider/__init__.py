"""
Cache Provider Module

Stores arbitrarily-typed values in Redis as compressed envelopes under
logically namespaced keys.

Quick Start:
    from envelope_cache.providers.cache_provider import (
        CacheKey,
        create_cache_provider,
    )

    provider = create_cache_provider(host="127.0.0.1", port=6379, partition="app")
    await provider.start()

    key = CacheKey(segment="users", id="1")
    await provider.set(key, {"name": "Ann"}, ttl=5000)   # milliseconds

    envelope = await provider.get(key)                   # None on a miss
    envelope.item, envelope.stored, envelope.ttl

    await provider.drop(key)
    await provider.stop()
"""

# Base classes and data types
from .base import (
    CacheProvider,
    CacheConfig,
    CacheKey,
    Envelope,
)

# Building blocks
from .connection import ConnectionManager
from .envelope import EnvelopeCodec
from .keys import generate_key
from .store import RedisStoreClient, StoreStatus, create_store_client

# Factory functions
from .factory import (
    create_cache_provider,
    get_default_cache_provider,
    register_cache_provider,
    get_available_cache_providers,
)

# Provider implementations
from .redis_provider import RedisProvider

# Exceptions
from .exceptions import (
    CacheProviderError,
    CacheConnectionError,
    NotConnectedError,
    ConnectionStartError,
    CacheConfigError,
    CacheKeyError,
    CacheTTLError,
    CacheSerializationError,
    EncodeError,
    CorruptEnvelopeError,
)


# Public API
__all__ = [
    # Base classes and data types
    "CacheProvider",
    "CacheConfig",
    "CacheKey",
    "Envelope",
    # Building blocks
    "ConnectionManager",
    "EnvelopeCodec",
    "generate_key",
    "RedisStoreClient",
    "StoreStatus",
    "create_store_client",
    # Factory functions
    "create_cache_provider",
    "get_default_cache_provider",
    "register_cache_provider",
    "get_available_cache_providers",
    # Providers
    "RedisProvider",
    # Exceptions
    "CacheProviderError",
    "CacheConnectionError",
    "NotConnectedError",
    "ConnectionStartError",
    "CacheConfigError",
    "CacheKeyError",
    "CacheTTLError",
    "CacheSerializationError",
    "EncodeError",
    "CorruptEnvelopeError",
]
