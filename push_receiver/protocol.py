"""Wire helpers for the MCS push relay protocol.

Inbound stream layout after connecting:

- one bare byte: server protocol version acknowledgment
- then frames of ``[1 byte tag][varint length][length bytes payload]``

The outbound login frame is prefixed with the client protocol version:
``[MCS_VERSION][login tag][varint length][payload]``.
"""

from __future__ import annotations

from dataclasses import dataclass

from .errors import IncompleteVarintError

MCS_VERSION = 41
MCS_HOST = "mtalk.google.com"
MCS_PORT = 5228

# Maximum backoff tier between reconnect attempts (seconds)
MAX_RETRY_DELAY = 15

_MSB = 0x80
_REST = 0x7F


@dataclass(frozen=True, slots=True)
class VarintResult:
    """Decoded varint value and the number of bytes it occupied."""

    value: int
    length: int


def decode_varint(buf: bytes, offset: int = 0) -> VarintResult:
    """Decode a base-128 varint starting at ``offset``.

    Args:
        buf: Bytes to read from
        offset: Index of the first varint byte

    Returns:
        Decoded value and bytes consumed

    Raises:
        IncompleteVarintError: If the buffer ends before a byte with the
            continuation bit clear
    """
    value = 0
    shift = 0
    index = offset
    while True:
        if index >= len(buf):
            raise IncompleteVarintError(
                f"Could not decode varint at offset {offset}"
            )
        byte = buf[index]
        index += 1
        value += (byte & _REST) << shift
        shift += 7
        if byte < _MSB:
            return VarintResult(value=value, length=index - offset)


def encode_varint(value: int) -> bytes:
    """Encode a non-negative integer as a base-128 varint."""
    if value < 0:
        raise ValueError(f"Varint value must be non-negative, got {value}")
    out = bytearray()
    while True:
        byte = value & _REST
        value >>= 7
        if value:
            out.append(byte | _MSB)
        else:
            out.append(byte)
            return bytes(out)


def build_frame(tag: int, payload: bytes) -> bytes:
    """Build an inbound-style frame: tag byte, varint length, payload."""
    if not 0 <= tag <= 0xFF:
        raise ValueError(f"Tag must fit in one byte, got {tag}")
    return bytes((tag,)) + encode_varint(len(payload)) + payload


def build_login_frame(tag: int, payload: bytes) -> bytes:
    """Build the outbound login frame.

    Args:
        tag: Schema tag of the login request message
        payload: Encoded login request

    Returns:
        Version byte followed by the length-delimited login frame
    """
    return bytes((MCS_VERSION,)) + build_frame(tag, payload)
