"""Bridge core: connection registry, command dispatch and reply routing.

Public API:
    DeviceConnection -- Abstract base class for a computer connection
    ConnectionManager -- Single active connection slot
    CommandDispatcher -- Fire-and-forget command sending
    ResponseCorrelator -- Confirmation and requestId matching
    UpdateIngestor -- Stores update pushes
    FrameRouter -- Per-connection delivery of inbound frames
    WebSocketConnection -- FastAPI WebSocket transport
"""

from ccbridge.bridge.base import DeviceConnection
from ccbridge.bridge.correlator import ResponseCorrelator
from ccbridge.bridge.dispatcher import CommandDispatcher
from ccbridge.bridge.errors import (
    BridgeError,
    ConnectionClosedError,
    NotConnectedError,
    ResponseTimeoutError,
)
from ccbridge.bridge.ingestor import UpdateIngestor
from ccbridge.bridge.registry import ConnectionManager
from ccbridge.bridge.router import FrameRouter

__all__ = [
    "BridgeError",
    "CommandDispatcher",
    "ConnectionClosedError",
    "ConnectionManager",
    "DeviceConnection",
    "FrameRouter",
    "NotConnectedError",
    "ResponseCorrelator",
    "ResponseTimeoutError",
    "UpdateIngestor",
    "WebSocketConnection",
]


def __getattr__(name: str) -> type:
    """Lazy import for the transport that requires FastAPI."""
    if name == "WebSocketConnection":
        from ccbridge.bridge.websocket import WebSocketConnection
        return WebSocketConnection
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
