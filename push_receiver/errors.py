"""Client error types for MCS push receiver interactions."""

from __future__ import annotations


class PushReceiverError(Exception):
    """Base error for push receiver failures."""


class PushTimeout(PushReceiverError):
    """Timeout while communicating with the push service."""


class PushConnectionError(PushReceiverError):
    """Network connection to the push service failed."""


class PushHandshakeError(PushReceiverError):
    """TLS handshake with the push service failed."""


class PushResponseError(PushReceiverError):
    """HTTP response error from the push service."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status


class PushDecodeError(PushReceiverError):
    """Bytes on the wire could not be decoded."""


class IncompleteVarintError(PushDecodeError):
    """Buffer ended before the varint terminating byte.

    Not corruption: one more byte from the socket may complete it.
    """


class SchemaError(PushReceiverError):
    """Schema table lookup failed for an outbound message."""
