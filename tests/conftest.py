"""Pytest configuration and fixtures for push_receiver tests."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from push_receiver.schema import McsTag, Schema, SchemaEntry


class BytesCodec:
    """Codec whose messages are the raw payload bytes."""

    def encode(self, message: bytes) -> bytes:
        return bytes(message)

    def decode(self, data: bytes) -> bytes:
        return bytes(data)


class BrokenCodec:
    """Codec that fails on every decode."""

    def encode(self, message: Any) -> bytes:
        return b""

    def decode(self, data: bytes) -> Any:
        raise ValueError("cannot decode")


@pytest.fixture
def schema() -> Schema:
    """Create a schema with the message types the session cares about."""
    codec = BytesCodec()
    return Schema(
        [
            SchemaEntry(McsTag.HeartbeatPing, "HeartbeatPing", codec),
            SchemaEntry(McsTag.LoginRequest, "LoginRequest", codec),
            SchemaEntry(McsTag.LoginResponse, "LoginResponse", codec),
            SchemaEntry(McsTag.IqStanza, "IqStanza", BrokenCodec()),
            SchemaEntry(McsTag.DataMessageStanza, "DataMessageStanza", codec),
        ]
    )


@pytest.fixture
def mock_session() -> MagicMock:
    """Create a mock aiohttp ClientSession."""
    import aiohttp

    return MagicMock(spec=aiohttp.ClientSession)


def create_mock_response(
    status: int = 200,
    json_data: dict[str, Any] | None = None,
    text_data: str | None = None,
) -> AsyncMock:
    """Create a configured mock response.

    Args:
        status: HTTP status code
        json_data: Data to return from json() call
        text_data: Data to return from text() call

    Returns:
        Configured AsyncMock response
    """
    response = AsyncMock()
    response.status = status

    if json_data is not None:
        response.json.return_value = json_data
    if text_data is not None:
        response.text.return_value = text_data

    response.__aenter__.return_value = response
    response.__aexit__.return_value = None

    return response
