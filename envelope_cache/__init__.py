"""
envelope_cache

Redis caching adapter storing values as compressed, metadata-stamped
envelopes under (segment, id) keys.
"""

from envelope_cache.providers.cache_provider import (
    CacheConfig,
    CacheKey,
    Envelope,
    RedisProvider,
    create_cache_provider,
    get_default_cache_provider,
)

__version__ = "1.0.0"

__all__ = [
    "CacheConfig",
    "CacheKey",
    "Envelope",
    "RedisProvider",
    "create_cache_provider",
    "get_default_cache_provider",
]
