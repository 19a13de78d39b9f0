"""Computer protocol: command encoding and inbound frame classification."""

from ccbridge.protocol.codec import (
    CONFIRMATION_TOKEN,
    decode,
    encode_command,
    is_confirmation,
    serialize_command,
)

__all__ = [
    "CONFIRMATION_TOKEN",
    "decode",
    "encode_command",
    "is_confirmation",
    "serialize_command",
]
