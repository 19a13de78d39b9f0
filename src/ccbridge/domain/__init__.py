"""Domain models for ccbridge.

All models use Pydantic v2 for validation and serialization.
"""

from ccbridge.domain.models import Command, InboundMessage, MessageKind

__all__ = [
    "Command",
    "InboundMessage",
    "MessageKind",
]
