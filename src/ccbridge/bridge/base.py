"""Abstract base class for a computer connection.

The registry, dispatcher and correlator only talk to this interface, so
the WebSocket transport can be swapped for an in-memory one in tests.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from ccbridge.bridge.router import FrameRouter

logger = logging.getLogger(__name__)


class DeviceConnection(ABC):
    """One bidirectional text channel to a computer.

    Every connection owns a :class:`FrameRouter`. The transport's reader
    feeds each received frame into it, and waiters armed on the router
    are resolved from there.
    """

    def __init__(self, router: FrameRouter | None = None) -> None:
        self.router = router if router is not None else FrameRouter()

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """Whether the channel is ready to send."""
        ...

    @property
    def peer(self) -> str:
        """Human-readable remote address, for logs."""
        return "unknown"

    @abstractmethod
    async def send_text(self, text: str) -> None:
        """Send one text frame.

        Raises:
            ConnectionClosedError: If the channel closed underneath us.
        """
        ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} peer={self.peer} open={self.is_open}>"
