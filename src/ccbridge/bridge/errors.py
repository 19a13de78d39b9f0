"""Errors raised by the bridge core.

None of these are fatal to the process: callers report them to the
operator (console line, HTTP status) and carry on.
"""

from __future__ import annotations


class BridgeError(Exception):
    """Base class for errors raised by the bridge core."""


class NotConnectedError(BridgeError):
    """Raised when a send is attempted with no open computer connection."""

    def __init__(self, message: str = "Not connected to computercraft client") -> None:
        super().__init__(message)


class ConnectionClosedError(BridgeError):
    """Raised when a connection closes while a send or waiter is pending."""


class ResponseTimeoutError(BridgeError):
    """Raised when a waiter expires before a matching frame arrives."""

    def __init__(self, message: str, timeout: float | None = None) -> None:
        super().__init__(message)
        self.timeout = timeout
