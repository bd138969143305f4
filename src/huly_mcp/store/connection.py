"""Lazy, single-flight connection to the Huly store.

One ConnectionManager per server process holds the only store handle.
Concurrent first callers share one connect attempt; a failed attempt leaves
the slot empty so the next call tries again.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from ..exceptions import is_connection_error
from ..observability.metrics import record_reconnect
from .base import StoreClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

ConnectFactory = Callable[[], Awaitable[StoreClient]]


class ConnectionManager:
    """Owns the cached store handle and the in-flight connect attempt."""

    def __init__(self, connect: ConnectFactory):
        self._connect = connect
        self._client: Optional[StoreClient] = None
        self._pending: Optional[asyncio.Future] = None

    @property
    def client(self) -> Optional[StoreClient]:
        """The cached handle, if any (no connect attempt)."""
        return self._client

    @property
    def connecting(self) -> bool:
        return self._pending is not None and not self._pending.done()

    async def get_connection(self) -> StoreClient:
        """Return the cached handle, connecting once if needed."""
        if self._client is not None:
            return self._client

        if self._pending is None:
            logger.info("Connecting to store")
            pending = asyncio.ensure_future(self._open())
            # The slot is freed when the attempt finishes, even if every
            # caller was cancelled meanwhile.
            pending.add_done_callback(self._attempt_finished)
            self._pending = pending

        # A cancelled caller must not cancel the attempt other callers await.
        return await asyncio.shield(self._pending)

    def _attempt_finished(self, pending: asyncio.Future) -> None:
        if self._pending is pending:
            self._pending = None
        if not pending.cancelled() and pending.exception() is not None:
            logger.debug("Store connect attempt failed: %s", pending.exception())

    async def _open(self) -> StoreClient:
        client = await self._connect()
        self._client = client
        return client

    def clear_connection(self) -> None:
        """Drop the cached handle unconditionally."""
        if self._client is not None:
            logger.info("Dropping cached store connection")
        self._client = None

    async def with_reconnect(self, op: Callable[[StoreClient], Awaitable[T]]) -> T:
        """Run ``op`` with the store handle, reconnecting and retrying once.

        Only connection-level failures are retried; anything else, and any
        failure of the second attempt, propagates unchanged.
        """
        client = None
        try:
            client = await self.get_connection()
            return await op(client)
        except Exception as exc:
            if not is_connection_error(exc):
                raise
            logger.warning("Store connection lost (%s), reconnecting", exc)
            record_reconnect()
            if client is not None and self._client is client:
                self.clear_connection()
                await self._discard(client)

        client = await self.get_connection()
        return await op(client)

    async def _discard(self, client: StoreClient) -> None:
        close = getattr(client, "close", None)
        if close is None:
            return
        try:
            await close()
        except Exception as e:
            logger.debug("Ignoring error while closing stale connection: %s", e)

    async def close(self) -> None:
        """Drop and close the cached handle (shutdown)."""
        client = self._client
        self.clear_connection()
        if client is not None:
            await self._discard(client)
