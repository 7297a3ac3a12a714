"""
Cache Provider Factory

This module provides factory functions for creating cache provider instances.
It supports:
- Registry-based provider system
- Dynamic provider registration
- Configuration-driven instantiation with fallback to application settings
"""

from typing import Dict, Optional, Type

from envelope_cache.config import get_settings
from envelope_cache.logs import get_logger
from .base import CacheConfig, CacheProvider
from .exceptions import CacheConfigError
from .redis_provider import RedisProvider

logger = get_logger(__name__)


# Provider registry - maps provider names to their implementation classes
CACHE_PROVIDER_REGISTRY: Dict[str, Type[CacheProvider]] = {
    "redis": RedisProvider,
}

# Keyword arguments handed to the provider constructor rather than CacheConfig
_PROVIDER_KWARGS = ("client", "client_factory", "timing_collector")


def register_cache_provider(name: str, provider_class: Type[CacheProvider]) -> None:
    """
    Register a new cache provider implementation

    Args:
        name: Provider name/identifier (e.g., "redis", "custom")
        provider_class: Provider class that implements CacheProvider interface

    Example:
        register_cache_provider("custom", CustomCacheProvider)
        provider = create_cache_provider(provider_type="custom")
    """
    name = name.lower()

    if name in CACHE_PROVIDER_REGISTRY:
        logger.warning(
            f"Overwriting existing cache provider registration: {name}",
            component="Cache",
            subcomponent="Factory",
        )

    CACHE_PROVIDER_REGISTRY[name] = provider_class

    logger.info(
        f"Registered cache provider: {name} -> {provider_class.__name__}",
        component="Cache",
        subcomponent="Factory",
    )


def get_available_cache_providers() -> list[str]:
    """
    Get list of available cache provider names

    Returns:
        List of registered provider identifiers
    """
    return list(CACHE_PROVIDER_REGISTRY.keys())


def create_cache_provider(
    provider_type: Optional[str] = None, config: Optional[CacheConfig] = None, **kwargs
) -> CacheProvider:
    """
    Factory function to create a cache provider instance

    Configuration can be given as:
    1. Complete CacheConfig object
    2. Individual parameters (host, port, url, socket, sentinels, ...)
    3. Settings from environment/.env for anything not given

    Args:
        provider_type: Provider identifier, defaults to "redis"
        config: Complete CacheConfig object (takes precedence over kwargs)
        **kwargs: Configuration parameters:
            - host, port, url, socket: Topology (see CacheConfig)
            - sentinels, sentinel_name: Sentinel topology
            - password: Authentication password
            - database / db: Logical database index
            - partition: Prefix applied to every store key
            - compression: "lz4" or "zlib"
            - client: Caller-managed redis client
            - client_factory, timing_collector: Provider collaborators
            - anything else is passed to the redis client as extra_params

    Returns:
        Configured cache provider instance (not yet started)

    Raises:
        CacheConfigError: If provider type is not supported or initialization fails

    Examples:
        provider = create_cache_provider(host="10.0.0.5", partition="app")
        await provider.start()

        provider = create_cache_provider(
            sentinels=[("10.0.0.1", 26379), ("10.0.0.2", 26379)],
            sentinel_name="mymaster",
        )
    """
    provider_type = (provider_type or "redis").lower()

    if provider_type not in CACHE_PROVIDER_REGISTRY:
        supported = ", ".join(get_available_cache_providers())
        error_msg = (
            f"Unsupported cache provider: '{provider_type}'. "
            f"Supported providers: {supported}"
        )
        logger.error(
            error_msg,
            component="Cache",
            subcomponent="Factory",
        )
        raise CacheConfigError(error_msg)

    provider_class = CACHE_PROVIDER_REGISTRY[provider_type]
    provider_kwargs = {name: kwargs.pop(name) for name in _PROVIDER_KWARGS if name in kwargs}

    try:
        if config is None:
            settings = get_settings()

            database = kwargs.pop("database", None)
            db = kwargs.pop("db", None)

            config = CacheConfig(
                host=kwargs.pop("host", settings.redis_host),
                port=kwargs.pop("port", settings.redis_port),
                url=kwargs.pop("url", settings.redis_url),
                socket=kwargs.pop("socket", settings.redis_socket),
                sentinels=kwargs.pop("sentinels", settings.redis_sentinels) or [],
                sentinel_name=kwargs.pop("sentinel_name", settings.redis_sentinel_name),
                password=kwargs.pop("password", settings.redis_password),
                db=database if database is not None else (db if db is not None else settings.redis_db),
                partition=kwargs.pop("partition", settings.cache_partition),
                compression=kwargs.pop("compression", settings.cache_compression),
                socket_timeout=kwargs.pop("socket_timeout", settings.redis_socket_timeout),
                socket_connect_timeout=kwargs.pop(
                    "socket_connect_timeout", settings.redis_socket_connect_timeout
                ),
                extra_params=kwargs,
            )

        provider = provider_class(config=config, **provider_kwargs)

    except CacheConfigError:
        raise

    except Exception as e:
        error_msg = f"Failed to initialize {provider_type} cache provider: {str(e)}"
        logger.error(
            error_msg,
            component="Cache",
            subcomponent="Factory",
            exc_info=True,
        )
        raise CacheConfigError(error_msg) from e

    logger.info(
        f"Successfully created {provider_type} cache provider",
        component="Cache",
        subcomponent="Factory",
        topology=config.topology,
    )

    return provider


def get_default_cache_provider() -> CacheProvider:
    """
    Get the default cache provider based on application settings

    Reads every option from environment variables or .env.

    Example:
        provider = get_default_cache_provider()
        await provider.start()
    """
    return create_cache_provider(provider_type="redis")
