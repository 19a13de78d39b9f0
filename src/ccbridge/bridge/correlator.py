"""Matching replies from the computer to the commands that caused them.

The basic protocol has no request id: the reply to a command is simply
the next frame the computer sends that is not an update push. That only
works with one command outstanding at a time, so every verified exchange
here runs under a lock. ``request()`` adds an explicit ``requestId`` for
computers whose scripts echo it back.
"""

from __future__ import annotations

import asyncio
import logging
import uuid

from ccbridge.bridge.base import DeviceConnection
from ccbridge.bridge.dispatcher import CommandDispatcher
from ccbridge.bridge.errors import ConnectionClosedError
from ccbridge.domain.models import InboundMessage
from ccbridge.protocol.codec import CONFIRMATION_TOKEN, is_confirmation

logger = logging.getLogger(__name__)


class ResponseCorrelator:
    """Sends commands and resolves the computer's confirmation."""

    def __init__(
        self,
        dispatcher: CommandDispatcher,
        confirmation_token: str = CONFIRMATION_TOKEN,
        default_timeout: float | None = 10.0,
        verify_label: bool = False,
    ) -> None:
        self._dispatcher = dispatcher
        self._token = confirmation_token
        self._default_timeout = default_timeout
        self._verify_label = verify_label
        self._lock = asyncio.Lock()

    async def await_next(self, conn: DeviceConnection, timeout: float | None = None) -> bool:
        """Wait for the next reply frame on ``conn`` and check it.

        Args:
            conn: Connection to listen on.
            timeout: Seconds to wait. None waits until a frame arrives or
                the connection closes.

        Returns:
            True if the frame is the confirmation token, False otherwise.

        Raises:
            ResponseTimeoutError: If ``timeout`` elapsed first.
        """
        try:
            future = conn.router.arm_reply()
        except ConnectionClosedError:
            logger.warning("Connection closed before confirmation")
            return False
        return await self._confirm(conn, future, timeout)

    async def execute(self, line: str, timeout: float | None = None) -> bool:
        """Send a command and wait for its confirmation."""
        async with self._lock:
            conn = self._dispatcher.require_connection()
            future = conn.router.arm_reply()
            try:
                await self._dispatcher.dispatch(line)
            except BaseException:
                conn.router.discard(future)
                raise
            return await self._confirm(conn, future, self._timeout(timeout))

    async def set_label(
        self, label: str, verify: bool | None = None, timeout: float | None = None
    ) -> bool | None:
        """Set the computer's label.

        Unverified by default: the command is sent and None returned
        without reading a reply.

        Returns:
            None when unverified, else whether the computer confirmed.
        """
        line = f"setLabel {label}"
        if verify is None:
            verify = self._verify_label
        if not verify:
            await self._dispatcher.dispatch(line)
            return None
        success = await self.execute(line, timeout)
        if success:
            logger.info("Label set successfully.")
        else:
            logger.warning("Label confirmation failed!")
        return success

    async def request(self, line: str, timeout: float | None = None) -> InboundMessage:
        """Send a command tagged with a requestId and await the matching response.

        Raises:
            ResponseTimeoutError: If no response with the id arrived in time.
            ConnectionClosedError: If the computer disconnected first.
        """
        request_id = uuid.uuid4().hex[:8]
        conn = self._dispatcher.require_connection()
        future = conn.router.arm_response(request_id)
        try:
            await self._dispatcher.dispatch(line, request_id=request_id)
        except BaseException:
            conn.router.discard(future)
            raise
        logger.debug("Awaiting response to request %s", request_id)
        return await conn.router.wait(future, self._timeout(timeout))

    async def _confirm(
        self, conn: DeviceConnection, future: asyncio.Future[str], timeout: float | None
    ) -> bool:
        try:
            raw = await conn.router.wait(future, timeout)
        except ConnectionClosedError:
            logger.warning("Connection closed before confirmation")
            return False
        if is_confirmation(raw, self._token):
            logger.info("Execution confirmed.")
            return True
        logger.warning("Unexpected confirmation message: %s", raw)
        return False

    def _timeout(self, timeout: float | None) -> float | None:
        return timeout if timeout is not None else self._default_timeout
