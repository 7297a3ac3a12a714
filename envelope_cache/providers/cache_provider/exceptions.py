"""
Cache Provider Exceptions

This module defines custom exceptions for cache provider operations,
allowing callers to tell a cache miss apart from a cache failure.

Exception Hierarchy:
    CacheProviderError (base)
    ├── CacheConnectionError
    │   ├── NotConnectedError
    │   └── ConnectionStartError
    ├── CacheConfigError
    ├── CacheKeyError
    ├── CacheTTLError
    └── CacheSerializationError
        ├── EncodeError
        └── CorruptEnvelopeError

Raw redis errors raised by store commands are not wrapped; they reach the
caller unchanged.
"""

from envelope_cache.providers.exceptions import ProviderError


class CacheProviderError(ProviderError):
    """
    Base exception for cache provider errors

    This exception can be caught to handle any cache-related error generically,
    or specific subclasses can be caught for fine-grained error handling.

    Attributes:
        message: Error message describing what went wrong
        details: Optional dictionary with additional error context

    Example:
        try:
            envelope = await cache.get(CacheKey("users", "1"))
        except CacheProviderError as e:
            logger.error(f"Cache operation failed: {e}")
            # Fall back to the source of truth
    """

    def __init__(self, message: str, details: dict = None):
        """
        Initialize the exception

        Args:
            message: Error message
            details: Optional dictionary with additional context
        """
        super().__init__(message, details)
        self.message = message
        self.details = details or {}

    def __str__(self):
        """String representation of the error"""
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class CacheConnectionError(CacheProviderError):
    """
    Raised when the connection to the cache server is unusable

    Common Causes:
    - Cache server is down or unreachable
    - Authentication rejected
    - Operation issued before start() or after stop()
    """

    pass


class NotConnectedError(CacheConnectionError):
    """
    Raised when an operation is attempted with no active connection

    Never retried internally. Every get/set/drop issued before start()
    completes or after stop() raises this error.

    Example:
        try:
            await cache.set(key, value, ttl=5000)
        except NotConnectedError:
            await cache.start()
    """

    pass


class ConnectionStartError(CacheConnectionError):
    """
    Raised once by start() when the initial connection attempt fails

    The half-open connection has already been released when this is raised.
    The underlying store error is available as ``__cause__``.
    """

    pass


class CacheConfigError(CacheProviderError):
    """
    Raised when cache configuration is invalid

    Common Causes:
    - Invalid port number
    - Negative database index
    - Sentinel list given without a master group name
    - Unknown compression codec or provider type

    Example:
        try:
            config = CacheConfig(port=-1)
        except CacheConfigError as e:
            logger.error(f"Invalid cache configuration: {e}")
    """

    pass


class CacheKeyError(CacheProviderError):
    """
    Raised when a segment name fails validation

    Common Causes:
    - Empty segment name
    - Segment name containing a null character
    """

    pass


class CacheTTLError(CacheProviderError):
    """
    Raised when a TTL value is rejected before any store write

    Common Causes:
    - Zero or negative TTL
    - Non-integer TTL
    """

    pass


class CacheSerializationError(CacheProviderError):
    """
    Raised when envelope packing or unpacking fails

    Subclasses distinguish the write direction (EncodeError) from the read
    direction (CorruptEnvelopeError).
    """

    pass


class EncodeError(CacheSerializationError):
    """
    Raised when a value cannot be serialized or compressed for storage

    Common Causes:
    - Circular references in data structures
    - Non-serializable objects (sets, custom classes, bytes)

    The store write is never attempted after this error.
    """

    pass


class CorruptEnvelopeError(CacheSerializationError):
    """
    Raised when stored bytes fail decompression, parsing or validation

    Distinct from a cache miss: a miss returns None, corruption raises.
    """

    pass
