"""Registry for the single active computer connection."""

from __future__ import annotations

import logging
import threading

from ccbridge.bridge.base import DeviceConnection

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Holds the one connection commands are sent to.

    The last computer to connect wins: a new connection replaces the old
    one without closing it. A close event only clears the slot when it
    comes from the connection that is still registered, so a late close
    from a superseded connection cannot wipe its successor.
    """

    def __init__(self) -> None:
        self._active: DeviceConnection | None = None
        self._lock = threading.Lock()

    def set_active(self, conn: DeviceConnection) -> None:
        with self._lock:
            previous, self._active = self._active, conn
        if previous is not None and previous is not conn:
            logger.info("Connection %s superseded by %s", previous.peer, conn.peer)
        else:
            logger.info("Connected to CC computer at %s", conn.peer)

    def get_active(self) -> DeviceConnection | None:
        with self._lock:
            return self._active

    def clear_if_matches(self, conn: DeviceConnection) -> bool:
        """Clear the slot if ``conn`` is still the registered connection.

        Returns:
            True if the slot was cleared.
        """
        with self._lock:
            if self._active is not conn:
                return False
            self._active = None
        logger.info("Disconnected from %s", conn.peer)
        return True

    @property
    def is_connected(self) -> bool:
        conn = self.get_active()
        return conn is not None and conn.is_open
