"""
Abstract Cache Provider Interface

This module provides the abstract interface for cache providers together with
the data types that flow through it:

- CacheConfig: connection topology, credentials and envelope settings
- CacheKey: the two-part logical key (segment, id) used by callers
- Envelope: a cached value plus the metadata stamped at write time

Key Design Principles:
- All I/O operations are async
- A cache miss (None) is always distinguishable from a cache failure (raise)
- Structured logging for all operations
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from envelope_cache.logs import get_logger
from .exceptions import CacheConfigError, CacheKeyError
from .keys import generate_key

logger = get_logger(__name__)


@dataclass(frozen=True)
class CacheKey:
    """
    Logical cache key

    Attributes:
        segment: Logical namespace/collection
        id: Item within the segment
    """

    segment: str
    id: str


@dataclass(frozen=True)
class Envelope:
    """
    A cached value together with its write-time metadata

    Attributes:
        item: The value supplied to set(); may be any JSON value, falsy included
        stored: Write time in milliseconds since the epoch
        ttl: Expiration requested at write time, in milliseconds
    """

    item: Any
    stored: int
    ttl: Optional[int] = None


@dataclass
class CacheConfig:
    """
    Configuration container for cache provider settings

    Topology (exactly one is used, in this order of precedence):
        sentinels + sentinel_name: Sentinel addresses and master group name
        url: Full connection URL
        socket: Unix socket path
        host + port: TCP address (default 127.0.0.1:6379)

    Credentials (passed in every mode):
        password: Authentication password (optional)
        db: Logical database index (optional)

    Envelope Settings:
        partition: Prefix applied to every store key
        compression: Compression codec name ("lz4" or "zlib")

    Socket Settings:
        socket_timeout: Per-command timeout in seconds
        socket_connect_timeout: Connection timeout in seconds

    Additional Settings:
        extra_params: Extra keyword arguments for the redis client
    """

    # Topology
    host: str = "127.0.0.1"
    port: int = 6379
    url: Optional[str] = None
    socket: Optional[str] = None
    sentinels: List[Tuple[str, int]] = field(default_factory=list)
    sentinel_name: Optional[str] = None

    # Credentials
    password: Optional[str] = None
    db: Optional[int] = None

    # Envelope settings
    partition: Optional[str] = None
    compression: str = "lz4"

    # Socket settings
    socket_timeout: Optional[float] = 5.0
    socket_connect_timeout: Optional[float] = 5.0

    extra_params: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not 0 < int(self.port) < 65536:
            raise CacheConfigError("Invalid port", {"port": self.port})

        if self.db is not None and int(self.db) < 0:
            raise CacheConfigError("Invalid database index", {"db": self.db})

        if self.sentinels and not self.sentinel_name:
            raise CacheConfigError("Sentinel topology requires sentinel_name")

        from .envelope import COMPRESSORS

        if self.compression not in COMPRESSORS:
            raise CacheConfigError(
                f"Unsupported compression codec: '{self.compression}'",
                {"supported": ", ".join(COMPRESSORS)},
            )

        self.sentinels = [(str(host), int(port)) for host, port in self.sentinels]

    @property
    def topology(self) -> str:
        """Name of the topology mode selected by precedence."""
        if self.sentinels:
            return "sentinel"
        if self.url:
            return "url"
        if self.socket:
            return "socket"
        return "tcp"

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert config to dictionary for logging

        The password is never included.
        """
        return {
            "topology": self.topology,
            "host": self.host,
            "port": self.port,
            "socket": self.socket,
            "sentinels": self.sentinels,
            "sentinel_name": self.sentinel_name,
            "db": self.db,
            "partition": self.partition,
            "compression": self.compression,
        }


class CacheProvider(ABC):
    """
    Abstract base class for cache providers

    Method Categories:
    - Connection Management: start, stop, is_ready, health_check
    - Cache Operations: get, set, drop
    - Keys: validate_segment_name, generate_key
    """

    def __init__(self, config: CacheConfig):
        """
        Initialize the cache provider with configuration

        Args:
            config: CacheConfig object containing provider settings
        """
        self.config = config
        self.partition = config.partition
        self.provider_type = self.__class__.__name__.lower().replace("provider", "")

        logger.info(
            f"Initialized {self.provider_type} cache provider",
            component="Cache",
            subcomponent="Provider",
            topology=config.topology,
            partition=config.partition,
        )

    # ==================== Connection Management ====================

    @abstractmethod
    async def start(self) -> None:
        """
        Establish the connection to the cache server

        Raises:
            ConnectionStartError: If the initial connection attempt fails
        """
        pass

    @abstractmethod
    async def stop(self) -> None:
        """
        Close the connection to the cache server

        Idempotent; calling it with no active connection does nothing.
        """
        pass

    @abstractmethod
    def is_ready(self) -> bool:
        """
        Check whether the connection can service commands right now

        Readiness can regress, so callers re-check before each operation.
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check if cache server is healthy and responsive

        Returns:
            True if cache server is healthy, False otherwise
        """
        pass

    # ==================== Cache Operations ====================

    @abstractmethod
    async def get(self, key: CacheKey) -> Optional[Envelope]:
        """
        Retrieve the envelope stored under a logical key

        Args:
            key: Logical cache key

        Returns:
            The full Envelope, or None on a cache miss

        Raises:
            NotConnectedError: If no connection is active
            CorruptEnvelopeError: If the stored bytes cannot be unpacked
        """
        pass

    @abstractmethod
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
        pass

    @abstractmethod
    async def drop(self, key: CacheKey) -> None:
        """
        Delete the value stored under a logical key

        Deleting a missing key is not an error.

        Raises:
            NotConnectedError: If no connection is active
        """
        pass

    # ==================== Keys ====================

    def validate_segment_name(self, name: str) -> None:
        """
        Validate a segment name at the consumer boundary

        Args:
            name: Segment name

        Raises:
            CacheKeyError: If the name is empty or contains a null character
        """
        if not name:
            raise CacheKeyError("Empty string")

        if "\0" in name:
            raise CacheKeyError("Includes null character", {"segment": name})

    def generate_key(self, key: CacheKey) -> str:
        """
        Build the store key for a logical key using the configured partition

        Format: {partition}:{segment}:{id}
        """
        return generate_key(key, self.partition)
