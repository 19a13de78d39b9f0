"""Core domain models for the ccbridge system.

These models represent the messages flowing across the bridge: commands
sent to a computer and the classified frames received back from it.
"""

from __future__ import annotations

import enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class MessageKind(str, enum.Enum):
    """Classification of an inbound frame."""

    UPDATE = "update"  # Unsolicited state push from the computer
    RESPONSE = "response"  # Reply carrying the requestId of a command
    UNRECOGNIZED = "unrecognized"  # Anything else, including the bare token


# ---------------------------------------------------------------------------
# Outbound
# ---------------------------------------------------------------------------


class Command(BaseModel):
    """A structured instruction sent to the computer.

    Serialized on the wire as::

        {"type": "command", "command": "setLabel", "args": ["kitchen"],
         "timestamp": 1700000000000}

    ``requestId`` is only present when the sender wants the reply matched
    by id rather than by arrival order.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: Literal["command"] = "command"
    command: str = Field(description="Verb, the first token of the operator line")
    args: list[str] = Field(default_factory=list, description="Remaining tokens")
    timestamp: int = Field(ge=0, description="Epoch milliseconds at construction")
    request_id: str | None = Field(default=None, alias="requestId")


# ---------------------------------------------------------------------------
# Inbound
# ---------------------------------------------------------------------------


class InboundMessage(BaseModel):
    """A raw frame received from the computer, classified once."""

    model_config = ConfigDict(frozen=True)

    kind: MessageKind
    raw: str = Field(description="Frame text exactly as received")
    payload: dict[str, Any] | None = Field(
        default=None, description="Parsed JSON object, when the frame was one"
    )

    @property
    def type_name(self) -> str | None:
        """The ``type`` discriminator of the payload, if any."""
        if self.payload is None:
            return None
        value = self.payload.get("type")
        return value if isinstance(value, str) else None

    @property
    def request_id(self) -> str | None:
        if self.payload is None:
            return None
        value = self.payload.get("requestId")
        return None if value is None else str(value)

    @property
    def identity_key(self) -> str | None:
        """``computerName`` + ``computerId`` of an update, or None.

        ComputerCraft reports ids as numbers, so both parts are
        stringified before concatenation.
        """
        if self.kind is not MessageKind.UPDATE or self.payload is None:
            return None
        name = self.payload.get("computerName")
        computer_id = self.payload.get("computerId")
        if name is None or computer_id is None:
            return None
        name, computer_id = str(name), str(computer_id)
        if not name or not computer_id:
            return None
        return f"{name}{computer_id}"
