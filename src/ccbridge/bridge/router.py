"""Per-connection routing of inbound frames to one-shot waiters.

Each frame is classified once and delivered to at most one consumer:

    RESPONSE with a pending requestId -> the request waiting on that id
    UPDATE                            -> update handler + oldest update waiter
    anything else                     -> oldest reply waiter

Waiters are futures armed *before* the triggering frame is sent. Each
fires at most once and is removed when it fires, expires or is cancelled.
Frames nobody waits for are logged and dropped.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Any, Awaitable, Callable

from ccbridge.bridge.errors import ConnectionClosedError, ResponseTimeoutError
from ccbridge.domain.models import InboundMessage, MessageKind
from ccbridge.protocol.codec import decode

logger = logging.getLogger(__name__)

UpdateHandler = Callable[[InboundMessage], Any]


class FrameRouter:
    """Routes a connection's inbound frames to whoever is waiting for them."""

    def __init__(self, on_update: UpdateHandler | None = None) -> None:
        self._on_update = on_update
        self._replies: deque[asyncio.Future[str]] = deque()
        self._updates: deque[asyncio.Future[InboundMessage]] = deque()
        self._pending: dict[str, asyncio.Future[InboundMessage]] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending_count(self) -> int:
        """Number of armed waiters of every kind."""
        return (
            sum(not f.done() for f in self._replies)
            + sum(not f.done() for f in self._updates)
            + sum(not f.done() for f in self._pending.values())
        )

    # -------------------------------------------------------------------
    # Arming
    # -------------------------------------------------------------------

    def arm_reply(self) -> asyncio.Future[str]:
        """Arm a waiter for the next non-update, uncorrelated frame."""
        future = self._new_future()
        self._replies.append(future)
        return future

    def arm_update(self) -> asyncio.Future[InboundMessage]:
        """Arm a waiter for the next update push."""
        future = self._new_future()
        self._updates.append(future)
        return future

    def arm_response(self, request_id: str) -> asyncio.Future[InboundMessage]:
        """Arm a waiter for the RESPONSE frame carrying ``request_id``."""
        if request_id in self._pending:
            raise ValueError(f"Request id already pending: {request_id}")
        future = self._new_future()
        self._pending[request_id] = future
        return future

    async def wait(self, future: Awaitable[Any], timeout: float | None = None) -> Any:
        """Await an armed waiter, deregistering it on timeout.

        Raises:
            ResponseTimeoutError: If nothing arrived within ``timeout``.
            ConnectionClosedError: If the connection closed first.
        """
        try:
            return await asyncio.wait_for(future, timeout)
        except asyncio.TimeoutError:
            self.discard(future)
            raise ResponseTimeoutError(
                f"No reply from computer within {timeout}s", timeout=timeout
            ) from None

    def discard(self, future: Awaitable[Any]) -> None:
        """Remove a waiter without resolving it."""
        for queue in (self._replies, self._updates):
            try:
                queue.remove(future)  # type: ignore[arg-type]
            except ValueError:
                pass
        for request_id, pending in list(self._pending.items()):
            if pending is future:
                del self._pending[request_id]
        if isinstance(future, asyncio.Future) and not future.done():
            future.cancel()

    # -------------------------------------------------------------------
    # Delivery
    # -------------------------------------------------------------------

    def feed(self, raw: str) -> InboundMessage:
        """Classify one inbound frame and hand it to its consumer."""
        logger.debug("Raw message: %s", raw)
        message = decode(raw)

        if message.kind is MessageKind.RESPONSE:
            future = self._pending.pop(message.request_id or "", None)
            if future is not None and not future.done():
                future.set_result(message)
            else:
                logger.warning("Dropping response for unknown request %s", message.request_id)
            return message

        if message.kind is MessageKind.UPDATE:
            if self._on_update is not None:
                self._on_update(message)
            future = _pop_live(self._updates)
            if future is not None:
                future.set_result(message)
            return message

        future = _pop_live(self._replies)
        if future is not None:
            future.set_result(raw)
        else:
            logger.debug("No waiter for message: %s", raw[:200])
        return message

    def close(self) -> None:
        """Fail every armed waiter; the connection is gone."""
        if self._closed:
            return
        self._closed = True
        waiters = [*self._replies, *self._updates, *self._pending.values()]
        self._replies.clear()
        self._updates.clear()
        self._pending.clear()
        for future in waiters:
            if not future.done():
                future.set_exception(ConnectionClosedError("Computer disconnected"))

    def _new_future(self) -> asyncio.Future[Any]:
        if self._closed:
            raise ConnectionClosedError("Connection already closed")
        return asyncio.get_running_loop().create_future()


def _pop_live(queue: deque[asyncio.Future[Any]]) -> asyncio.Future[Any] | None:
    """Pop the oldest waiter that has not been cancelled."""
    while queue:
        future = queue.popleft()
        if not future.done():
            return future
    return None
