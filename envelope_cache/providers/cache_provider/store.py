"""
Redis Store Client

Thin event-emitting wrapper around ``redis.asyncio`` exposing the narrow
command set the cache needs:

- connect(): verify the connection, then emit "ready" or "error"
- get_buffer / psetex / delete / ping: raw-bytes commands
- quit() / end(): graceful and immediate release
- on / once / remove_all_listeners: observer registration
- status: "wait", "connecting", "ready", "reconnecting" or "end"

A command that fails with a connection or timeout error moves a ready client
to "reconnecting" and emits "error"; the next successful command moves it
back to "ready" and emits "ready". redis-py reconnects on its own on the
next command, so no reconnection loop runs here.
"""

from collections import defaultdict
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

import redis.asyncio as redis
from redis.asyncio.sentinel import Sentinel
from redis.exceptions import (
    ConnectionError as RedisConnectionError,
    TimeoutError as RedisTimeoutError,
)

from envelope_cache.logs import get_component_logger
from .base import CacheConfig

logger = get_component_logger("Cache")


class StoreStatus(str, Enum):
    """Connection status reported by a store client."""

    WAIT = "wait"
    CONNECTING = "connecting"
    READY = "ready"
    RECONNECTING = "reconnecting"
    END = "end"


class RedisStoreClient:
    """
    Event-emitting handle on a redis.asyncio client

    Args:
        client: Underlying redis.asyncio client (bytes responses)
        status: Initial status; caller-supplied clients start as "ready"
        sentinel: Sentinel that produced ``client``; its node connections are
            closed together with the client
    """

    def __init__(
        self,
        client: redis.Redis,
        status: StoreStatus = StoreStatus.WAIT,
        sentinel: Optional[Sentinel] = None,
    ):
        self.redis = client
        self.status = status
        self.sentinel = sentinel
        self._listeners: Dict[str, List[Callable[..., Any]]] = defaultdict(list)

    # ==================== Observers ====================

    def on(self, event: str, handler: Callable[..., Any]) -> None:
        self._listeners[event].append(handler)

    def once(self, event: str, handler: Callable[..., Any]) -> None:
        def wrapper(*args):
            self.remove_listener(event, wrapper)
            handler(*args)

        self._listeners[event].append(wrapper)

    def remove_listener(self, event: str, handler: Callable[..., Any]) -> None:
        if handler in self._listeners[event]:
            self._listeners[event].remove(handler)

    def remove_all_listeners(self) -> None:
        self._listeners.clear()

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def emit(self, event: str, *args) -> None:
        for handler in list(self._listeners.get(event, [])):
            handler(*args)

    # ==================== Lifecycle ====================

    async def connect(self) -> None:
        """Verify connectivity with PING and report the outcome as an event."""
        self.status = StoreStatus.CONNECTING

        try:
            await self.redis.ping()
        except Exception as e:
            self.status = StoreStatus.RECONNECTING
            self.emit("error", e)
            return

        self.status = StoreStatus.READY
        self.emit("ready")

    async def quit(self) -> None:
        """Close the client gracefully."""
        self.status = StoreStatus.END
        try:
            await self.redis.aclose()
        finally:
            await self._close_sentinels()

    async def end(self) -> None:
        """Release the client immediately, e.g. after a failed startup."""
        self.status = StoreStatus.END
        try:
            await self.redis.aclose()
        except Exception as e:
            logger.warning(
                f"Error while releasing Redis connection: {e}",
                subcomponent="StoreClient",
            )
        await self._close_sentinels()

    async def _close_sentinels(self) -> None:
        if self.sentinel is None:
            return

        for node in self.sentinel.sentinels:
            try:
                await node.aclose()
            except Exception as e:
                logger.warning(
                    f"Error while closing sentinel connection: {e}",
                    subcomponent="StoreClient",
                )

    # ==================== Commands ====================

    async def ping(self) -> bool:
        return bool(await self._call(self.redis.ping))

    async def get_buffer(self, key: str) -> Optional[bytes]:
        return await self._call(self.redis.get, key)

    async def psetex(self, key: str, ttl: int, value: bytes) -> Any:
        return await self._call(self.redis.psetex, key, ttl, value)

    async def delete(self, key: str) -> int:
        return await self._call(self.redis.delete, key)

    async def _call(self, command: Callable[..., Awaitable[Any]], *args) -> Any:
        try:
            result = await command(*args)
        except (RedisConnectionError, RedisTimeoutError) as e:
            if self.status == StoreStatus.READY:
                self.status = StoreStatus.RECONNECTING
                self.emit("error", e)
            raise

        if self.status == StoreStatus.RECONNECTING:
            self.status = StoreStatus.READY
            self.emit("ready")

        return result


def create_store_client(config: CacheConfig) -> RedisStoreClient:
    """
    Build an unconnected store client for the topology selected by config

    Precedence: sentinels, then url, then socket, then host/port. Password
    and database index are passed in every mode.

    Args:
        config: Cache configuration

    Returns:
        RedisStoreClient in the "wait" status
    """
    options: Dict[str, Any] = {
        "socket_timeout": config.socket_timeout,
        "socket_connect_timeout": config.socket_connect_timeout,
        **config.extra_params,
    }
    if config.password is not None:
        options["password"] = config.password
    if config.db is not None:
        options["db"] = config.db

    topology = config.topology
    sentinel = None

    if topology == "sentinel":
        sentinel = Sentinel(config.sentinels, **options)
        client = sentinel.master_for(config.sentinel_name)
    elif topology == "url":
        client = redis.Redis.from_url(config.url, **options)
    elif topology == "socket":
        client = redis.Redis(unix_socket_path=config.socket, **options)
    else:
        client = redis.Redis(host=config.host, port=config.port, **options)

    logger.debug(
        "Created Redis client",
        subcomponent="StoreClient",
        topology=topology,
    )

    return RedisStoreClient(client, sentinel=sentinel)
