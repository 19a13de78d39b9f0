"""Storing update pushes from computers."""

from __future__ import annotations

import logging

from ccbridge.bridge.base import DeviceConnection
from ccbridge.bridge.dispatcher import CommandDispatcher
from ccbridge.domain.models import InboundMessage, MessageKind
from ccbridge.protocol.codec import UPDATE_TYPE
from ccbridge.storage.base import KeyValueStore, StorageError

logger = logging.getLogger(__name__)


class UpdateIngestor:
    """Writes each update push to the store under ``/<computerName><computerId>``.

    Nothing is sent back to the computer. Updates without a usable
    identity are dropped with a warning.
    """

    def __init__(
        self,
        store: KeyValueStore,
        dispatcher: CommandDispatcher | None = None,
        update_command: str = "getUpdate",
    ) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self._update_command = update_command

    def ingest(self, message: InboundMessage) -> str | None:
        """Store an update.

        Returns:
            The identity key it was stored under, or None if dropped.
        """
        if message.kind is not MessageKind.UPDATE or message.payload is None:
            logger.warning("Received data, but type is not %s: %r", UPDATE_TYPE, message.type_name)
            return None
        key = message.identity_key
        if not key:
            logger.warning("Dropping update without computerName/computerId: %s", message.raw[:200])
            return None
        if "/" in key:
            # A slash would address some other part of the store
            logger.warning("Dropping update with / in its identity: %r", key)
            return None
        logger.info("Received an update from: %s", message.payload.get("computerName"))
        try:
            self._store.put(f"/{key}", message.payload)
        except StorageError as e:
            logger.error("Failed to store update for %s: %s", key, e)
            return None
        return key

    async def handle_inbound(
        self, conn: DeviceConnection, timeout: float | None = None
    ) -> InboundMessage:
        """Wait for the next update pushed on ``conn``.

        The router has already stored it by the time it is returned.

        Raises:
            ResponseTimeoutError: If no update arrived within ``timeout``.
            ConnectionClosedError: If the computer disconnected first.
        """
        return await conn.router.wait(conn.router.arm_update(), timeout)

    async def request_update(self, timeout: float | None = None) -> InboundMessage:
        """Ask the active computer for an update and wait for it.

        Raises:
            NotConnectedError: If no computer is connected.
            ResponseTimeoutError: If no update arrived within ``timeout``.
        """
        if self._dispatcher is None:
            raise RuntimeError("UpdateIngestor was created without a dispatcher")
        conn = self._dispatcher.require_connection()
        future = conn.router.arm_update()
        try:
            await self._dispatcher.send_raw(self._update_command)
        except BaseException:
            conn.router.discard(future)
            raise
        return await conn.router.wait(future, timeout)
