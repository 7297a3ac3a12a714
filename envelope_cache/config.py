"""
Configuration settings for the envelope cache.

Simple configuration using Pydantic BaseSettings to read from the environment
or a .env file.
"""

import os
from typing import List, Optional, Tuple

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables or .env file."""

    # Redis Topology Configuration
    # Used by: providers/cache_provider/factory.py (get_default_cache_provider)
    # Exactly one topology is used: sentinels, then url, then socket, then host/port.
    redis_host: str = Field(
        default="127.0.0.1",
        description="Redis server host. Used when no sentinels, url or socket are configured.",
    )
    redis_port: int = Field(
        default=6379,
        description="Redis server port. Used together with redis_host.",
    )
    redis_url: Optional[str] = Field(
        default=None,
        description="Full redis:// or rediss:// connection URL.",
    )
    redis_socket: Optional[str] = Field(
        default=None,
        description="Filesystem path of a local unix socket.",
    )
    redis_sentinels: List[Tuple[str, int]] = Field(
        default_factory=list,
        description='Sentinel addresses as JSON, e.g. [["10.0.0.1", 26379]]. Takes priority over all other modes.',
    )
    redis_sentinel_name: Optional[str] = Field(
        default=None,
        description="Master group name monitored by the sentinels.",
    )

    # Redis Credentials
    # Passed uniformly to every topology mode.
    redis_password: Optional[str] = Field(
        default=None,
        description="Redis AUTH password (optional).",
    )
    redis_db: Optional[int] = Field(
        default=None,
        description="Logical database index. Left to the server default when unset.",
    )

    # Redis Socket Timeouts
    redis_socket_timeout: Optional[float] = Field(
        default=5.0,
        description="Per-command socket timeout in seconds.",
    )
    redis_socket_connect_timeout: Optional[float] = Field(
        default=5.0,
        description="Connection establishment timeout in seconds.",
    )

    # Envelope Configuration
    # Used by: providers/cache_provider/envelope.py, keys.py
    cache_partition: Optional[str] = Field(
        default=None,
        description="Prefix applied to every store key to isolate caches sharing one Redis.",
    )
    cache_compression: str = Field(
        default="lz4",
        description="Envelope compression codec: lz4 or zlib.",
    )

    # Logging Configuration
    # Used by: logs.py
    log_level: str = Field(
        default="INFO",
        description="Log level for the envelope_cache logger hierarchy.",
    )
    log_dir: Optional[str] = Field(
        default=None,
        description="Directory for rotating JSON log files. Console only when unset.",
    )

    model_config = SettingsConfigDict(
        env_file=os.path.join(os.getcwd(), ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None
