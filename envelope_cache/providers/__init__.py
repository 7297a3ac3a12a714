"""
Providers module

This module provides access to the cache providers of the envelope cache.
"""

from .cache_provider import create_cache_provider, RedisProvider

__all__ = [
    "create_cache_provider",
    "RedisProvider",
]
