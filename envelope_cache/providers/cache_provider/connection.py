"""
Connection Manager

Owns the lifecycle of the store client used by a cache provider:
startup, readiness detection, shutdown and failure reporting.

State transitions:
    unstarted -> connecting -> ready -> stopped
                               ready -> reconnecting (store reported an error)

start() completes exactly once. The first "ready" or "error" event emitted
by the client during startup settles the startup future; anything emitted
after that is ignored by the startup observers.
"""

import asyncio
from typing import Callable, Optional, Union

import redis.asyncio as redis

from envelope_cache.logs import get_component_logger
from .base import CacheConfig
from .exceptions import ConnectionStartError, NotConnectedError
from .store import RedisStoreClient, StoreStatus, create_store_client

logger = get_component_logger("Cache")

ClientFactory = Callable[[CacheConfig], RedisStoreClient]


class ConnectionManager:
    """
    Manage the single store connection shared by all cache operations

    Args:
        config: Cache configuration (topology and credentials)
        client: Caller-managed client. When given, start() does not connect
            and stop() does not close it.
        client_factory: Builds an unconnected RedisStoreClient from config
    """

    def __init__(
        self,
        config: CacheConfig,
        client: Optional[Union[RedisStoreClient, redis.Redis]] = None,
        client_factory: ClientFactory = create_store_client,
    ):
        self.config = config
        self.client_factory = client_factory

        if client is not None and not isinstance(client, RedisStoreClient):
            client = RedisStoreClient(client, status=StoreStatus.READY)

        self._external_client: Optional[RedisStoreClient] = client
        self._client: Optional[RedisStoreClient] = client
        self._pending: Optional[RedisStoreClient] = None
        self._startup: Optional[asyncio.Future] = None

    @property
    def client(self) -> Optional[RedisStoreClient]:
        """Active client handle, or None when not connected."""
        return self._client

    def is_ready(self) -> bool:
        """True only if a handle is active and reports "ready" right now."""
        return self._client is not None and self._client.status == StoreStatus.READY

    def acquire(self) -> RedisStoreClient:
        """
        Return the active client handle

        Raises:
            NotConnectedError: If no connection is active
        """
        client = self._client
        if client is None:
            raise NotConnectedError("Connection not started")
        return client

    async def start(self) -> None:
        """
        Establish the connection

        Raises:
            ConnectionStartError: If the store reports an error before it is ready
        """
        if self._client is None and self._external_client is not None:
            self._client = self._external_client

        if self._client is not None:
            await asyncio.sleep(0)
            return

        if self._startup is not None:
            pending = self._pending
            await asyncio.shield(self._startup)
            if self._client is not pending:
                raise ConnectionStartError("Connection stopped before it became ready")
            return

        loop = asyncio.get_running_loop()
        startup = loop.create_future()
        client = self.client_factory(self.config)

        self._startup = startup
        self._pending = client

        def complete(error: Optional[BaseException] = None) -> None:
            if startup.done():
                return
            if error is None:
                startup.set_result(None)
            else:
                startup.set_exception(error)

        def fail(error: BaseException) -> None:
            start_error = ConnectionStartError(f"Failed to connect to Redis: {error}")
            start_error.__cause__ = error
            complete(start_error)

        def on_error(error: BaseException) -> None:
            if self._client is client:
                logger.warning(
                    "Redis connection error",
                    subcomponent="ConnectionManager",
                    error=str(error),
                )
                return
            fail(error)

        def on_ready() -> None:
            if startup.done():
                return
            self._client = client
            complete()

        def on_connect_done(task: asyncio.Task) -> None:
            if not task.cancelled() and task.exception() is not None:
                fail(task.exception())

        client.on("error", on_error)
        client.once("ready", on_ready)

        logger.info(
            "Connecting to Redis",
            subcomponent="ConnectionManager",
            **self.config.to_dict(),
        )

        connect_task = loop.create_task(client.connect())
        connect_task.add_done_callback(on_connect_done)

        try:
            # Shielded so cancelling this caller does not cancel the shared startup
            await asyncio.shield(startup)
            if self._client is not client:
                raise ConnectionStartError("Connection stopped before it became ready")
        except BaseException as e:
            if not startup.done():
                startup.set_exception(ConnectionStartError("Connection start was cancelled"))
                # Retrieved here so an unobserved startup does not log a warning
                startup.exception()
            connect_task.cancel()
            client.remove_all_listeners()
            if self._client is client:
                self._client = None
            await client.end()
            if isinstance(e, ConnectionStartError):
                logger.error(
                    "Redis connection failed",
                    subcomponent="ConnectionManager",
                    status="failed",
                    error=str(e.__cause__ or e),
                )
            raise
        finally:
            if self._startup is startup:
                self._startup = None
                self._pending = None

        logger.info(
            "Connected to Redis",
            subcomponent="ConnectionManager",
            status="success",
            topology=self.config.topology,
        )

    async def stop(self) -> None:
        """
        Close the connection

        Detaches all observers and clears the handle before shutting the
        client down, so operations issued after stop() raise
        NotConnectedError. A startup still in progress is aborted.
        Idempotent.
        """
        pending, startup = self._pending, self._startup
        if pending is not None and startup is not None and not startup.done():
            self._pending = None
            self._startup = None
            pending.remove_all_listeners()
            startup.set_exception(ConnectionStartError("Connection stopped before it became ready"))

        client = self._client
        if client is None:
            return

        self._client = None
        client.remove_all_listeners()

        if client is self._external_client:
            logger.info("Detached caller-managed Redis client", subcomponent="ConnectionManager")
            return

        await client.quit()
        logger.info("Closed Redis connection", subcomponent="ConnectionManager")

    async def health_check(self) -> bool:
        """
        Ping the store through the active handle

        Returns:
            True if the store answered, False if not connected or the ping failed
        """
        client = self._client
        if client is None:
            return False

        try:
            return await client.ping()
        except Exception as e:
            logger.warning(
                f"Redis health check failed: {e}",
                subcomponent="ConnectionManager",
            )
            return False
