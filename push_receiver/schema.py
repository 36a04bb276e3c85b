"""Schema table mapping MCS tag numbers to message codecs.

The message definitions are supplied by the caller. This module only knows the
well-known tag numbering and how to wrap protobuf message classes as codecs.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Protocol

from google.protobuf.message import Message

from .errors import SchemaError

_LOGGER = logging.getLogger(__name__)

LOGIN_REQUEST = "LoginRequest"
LOGIN_RESPONSE = "LoginResponse"
DATA_MESSAGE_STANZA = "DataMessageStanza"


class McsTag(IntEnum):
    """Tag numbers used by the MCS protocol."""

    HeartbeatPing = 0
    HeartbeatAck = 1
    LoginRequest = 2
    LoginResponse = 3
    Close = 4
    MessageStanza = 5
    PresenceStanza = 6
    IqStanza = 7
    DataMessageStanza = 8
    BatchPresenceStanza = 9
    StreamErrorStanza = 10
    HttpRequest = 11
    HttpResponse = 12
    BindAccountRequest = 13
    BindAccountResponse = 14
    TalkMetadata = 15


class Codec(Protocol):
    """Encode/decode capability for one message type."""

    def encode(self, message: Any) -> bytes: ...
    def decode(self, data: bytes) -> Any: ...


class ProtobufCodec:
    """Codec backed by a generated protobuf message class."""

    def __init__(self, message_type: type[Message]) -> None:
        self.message_type = message_type

    def encode(self, message: Message) -> bytes:
        return message.SerializeToString()

    def decode(self, data: bytes) -> Message:
        message = self.message_type()
        message.ParseFromString(data)
        return message

    def __repr__(self) -> str:
        return f"ProtobufCodec({self.message_type.__name__})"


@dataclass(frozen=True, slots=True)
class SchemaEntry:
    """One row of the schema table."""

    tag: int
    name: str
    codec: Codec

    def encode(self, message: Any) -> bytes:
        return self.codec.encode(message)

    def decode(self, data: bytes) -> Any:
        return self.codec.decode(data)


class Schema:
    """Read-only lookup table of schema entries by tag and by name."""

    def __init__(self, entries: Iterable[SchemaEntry]) -> None:
        self._entries: tuple[SchemaEntry, ...] = tuple(entries)
        self._by_tag: dict[int, SchemaEntry] = {}
        self._by_name: dict[str, SchemaEntry] = {}
        for entry in self._entries:
            if not 0 <= entry.tag <= 0xFF:
                raise ValueError(f"Schema tag must fit in one byte: {entry.tag}")
            if entry.tag in self._by_tag:
                raise ValueError(f"Duplicate schema tag {entry.tag}")
            if entry.name in self._by_name:
                raise ValueError(f"Duplicate schema name {entry.name!r}")
            self._by_tag[entry.tag] = entry
            self._by_name[entry.name] = entry

    def by_tag(self, tag: int) -> SchemaEntry | None:
        """Return the entry for an inbound tag, or None when unknown."""
        return self._by_tag.get(tag)

    def by_name(self, name: str) -> SchemaEntry:
        """Return the entry for an outbound message name.

        Raises:
            SchemaError: If no entry has that name
        """
        try:
            return self._by_name[name]
        except KeyError as err:
            raise SchemaError(f"Schema has no entry named {name!r}") from err

    def __iter__(self) -> Iterator[SchemaEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name


def build_mcs_schema(message_types: Mapping[str, type[Message]]) -> Schema:
    """Build a schema from compiled MCS protobuf classes.

    Args:
        message_types: Map of MCS message name (e.g. "LoginRequest") to its
            generated protobuf class. Names without a known tag are skipped.

    Returns:
        Schema ordered by tag number
    """
    entries: list[SchemaEntry] = []
    for tag in McsTag:
        message_type = message_types.get(tag.name)
        if message_type is None:
            continue
        entries.append(SchemaEntry(int(tag), tag.name, ProtobufCodec(message_type)))

    unknown = set(message_types) - {tag.name for tag in McsTag}
    if unknown:
        _LOGGER.warning("Ignoring message types without MCS tag: %s", sorted(unknown))

    return Schema(entries)
