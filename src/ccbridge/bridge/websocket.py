"""WebSocket transport for computer connections."""

from __future__ import annotations

import logging

from fastapi import WebSocket, WebSocketDisconnect
from fastapi.websockets import WebSocketState

from ccbridge.bridge.base import DeviceConnection
from ccbridge.bridge.errors import ConnectionClosedError
from ccbridge.bridge.router import FrameRouter

logger = logging.getLogger(__name__)


class WebSocketConnection(DeviceConnection):
    """A computer connected through a FastAPI WebSocket."""

    def __init__(self, websocket: WebSocket, router: FrameRouter | None = None) -> None:
        super().__init__(router)
        self._ws = websocket

    @property
    def is_open(self) -> bool:
        return (
            self._ws.client_state == WebSocketState.CONNECTED
            and self._ws.application_state == WebSocketState.CONNECTED
        )

    @property
    def peer(self) -> str:
        client = self._ws.client
        return f"{client.host}:{client.port}" if client else "unknown"

    async def send_text(self, text: str) -> None:
        try:
            await self._ws.send_text(text)
        except (WebSocketDisconnect, RuntimeError) as e:
            raise ConnectionClosedError(f"Send to {self.peer} failed: {e}") from e

    async def receive_frames(self) -> None:
        """Feed received frames into the router until the computer disconnects.

        Binary frames are decoded as UTF-8.
        """
        while True:
            message = await self._ws.receive()
            if message["type"] == "websocket.disconnect":
                logger.debug("Disconnect from %s (code=%s)", self.peer, message.get("code"))
                return
            text = message.get("text")
            if text is None:
                text = (message.get("bytes") or b"").decode("utf-8", errors="replace")
            self.router.feed(text)
