"""Wire codec for the computer protocol.

Outbound frames are JSON-encoded :class:`Command` objects (or bare text
words such as ``getUpdate``). Inbound frames are either the bare
confirmation token or JSON objects with a ``type`` discriminator.
Decoding never raises: malformed input is ordinary traffic.
"""

from __future__ import annotations

import json
import logging
import threading
import time

from ccbridge.domain.models import Command, InboundMessage, MessageKind

logger = logging.getLogger(__name__)

CONFIRMATION_TOKEN = "true"
UPDATE_TYPE = "update"
RESPONSE_TYPE = "response"


class _MillisClock:
    """Epoch milliseconds that never go backwards within the process."""

    def __init__(self) -> None:
        self._last = 0
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            self._last = max(self._last, time.time_ns() // 1_000_000)
            return self._last


_clock = _MillisClock()


def encode_command(line: str, request_id: str | None = None) -> Command:
    """Build a Command from an operator line.

    The first whitespace-delimited token is the verb, the rest are its
    arguments. Any verb is accepted; a blank line yields an empty verb.

    Example::

        >>> encode_command("move forward 3").args
        ['forward', '3']
    """
    tokens = line.split()
    command, args = (tokens[0], tokens[1:]) if tokens else ("", [])
    return Command(
        command=command,
        args=args,
        timestamp=_clock.now(),
        request_id=request_id,
    )


def serialize_command(command: Command) -> str:
    """Render a Command as the JSON text frame sent to the computer."""
    return command.model_dump_json(by_alias=True, exclude_none=True)


def decode(raw: str) -> InboundMessage:
    """Classify an inbound frame.

    Args:
        raw: Frame text as received.

    Returns:
        An InboundMessage of kind UPDATE, RESPONSE or UNRECOGNIZED.
    """
    try:
        parsed = json.loads(raw)
    except (ValueError, RecursionError):
        logger.warning("Ignoring non-JSON message: %r", raw[:200])
        return InboundMessage(kind=MessageKind.UNRECOGNIZED, raw=raw)

    if not isinstance(parsed, dict):
        # Bare JSON scalars, notably the confirmation token itself
        return InboundMessage(kind=MessageKind.UNRECOGNIZED, raw=raw)

    msg_type = parsed.get("type")
    if msg_type == UPDATE_TYPE:
        return InboundMessage(kind=MessageKind.UPDATE, raw=raw, payload=parsed)
    if msg_type == RESPONSE_TYPE and parsed.get("requestId") is not None:
        return InboundMessage(kind=MessageKind.RESPONSE, raw=raw, payload=parsed)

    logger.warning("Received data, but type is not update: %r", msg_type)
    return InboundMessage(kind=MessageKind.UNRECOGNIZED, raw=raw, payload=parsed)


def is_confirmation(raw: str, token: str = CONFIRMATION_TOKEN) -> bool:
    """True if the frame is exactly the confirmation token."""
    return raw == token
