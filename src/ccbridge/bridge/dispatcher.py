"""Sends operator commands to the active computer."""

from __future__ import annotations

import logging

from ccbridge.bridge.base import DeviceConnection
from ccbridge.bridge.errors import NotConnectedError
from ccbridge.bridge.registry import ConnectionManager
from ccbridge.domain.models import Command
from ccbridge.protocol.codec import encode_command, serialize_command

logger = logging.getLogger(__name__)


class CommandDispatcher:
    """Builds commands from operator lines and sends them, fire-and-forget.

    The dispatcher never waits for a reply. Callers that need one arm a
    waiter through :class:`ResponseCorrelator` before dispatching.
    """

    def __init__(self, manager: ConnectionManager) -> None:
        self._manager = manager

    def require_connection(self) -> DeviceConnection:
        """Return the active connection if it is open.

        Raises:
            NotConnectedError: If no computer is connected or its channel
                is not open.
        """
        conn = self._manager.get_active()
        if conn is None or not conn.is_open:
            raise NotConnectedError()
        return conn

    async def dispatch(self, line: str, request_id: str | None = None) -> Command:
        """Encode ``line`` as a Command and send it on the active connection.

        Raises:
            NotConnectedError: If there is nothing to send to. No frame
                is produced in that case.
        """
        conn = self.require_connection()
        command = encode_command(line, request_id=request_id)
        await conn.send_text(serialize_command(command))
        logger.info("Message sent: %s", line.strip())
        return command

    async def send_raw(self, text: str) -> None:
        """Send a bare text frame such as ``getUpdate``."""
        conn = self.require_connection()
        await conn.send_text(text)
        logger.debug("Raw frame sent: %s", text)
