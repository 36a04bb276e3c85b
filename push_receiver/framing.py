"""Incremental reassembly of MCS frames from socket reads.

Socket reads arrive in arbitrary chunks: a read may hold part of a frame,
exactly one frame, or several frames back to back. ``decode_frame`` inspects a
buffer and reports what it holds; ``FrameAssembler`` keeps the unconsumed
remainder between reads.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .errors import IncompleteVarintError
from .protocol import decode_varint
from .state import SessionStateMachine

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Frame:
    """One decoded wire frame. Payload is still schema-encoded."""

    tag: int
    payload: bytes

    @property
    def length(self) -> int:
        return len(self.payload)


@dataclass(frozen=True, slots=True)
class FrameComplete:
    """A whole frame sits at the head of the buffer."""

    frame: Frame
    consumed: int


@dataclass(frozen=True, slots=True)
class FrameIncomplete:
    """More bytes are needed before the head frame can be decoded."""


@dataclass(frozen=True, slots=True)
class FrameMalformed:
    """The head of the buffer can never become a valid frame."""

    reason: str


FrameOutcome = FrameComplete | FrameIncomplete | FrameMalformed


def decode_frame(buffer: bytes, *, max_frame_size: int | None = None) -> FrameOutcome:
    """Decode the frame at the head of ``buffer``.

    Args:
        buffer: Bytes starting at a frame boundary
        max_frame_size: Optional upper bound on the declared payload length

    Returns:
        FrameComplete with the frame and total bytes it occupies,
        FrameIncomplete when the tag, length or payload is cut short, or
        FrameMalformed when the declared length exceeds ``max_frame_size``
    """
    if not buffer:
        return FrameIncomplete()

    tag = buffer[0]
    try:
        size = decode_varint(buffer, 1)
    except IncompleteVarintError:
        return FrameIncomplete()

    if max_frame_size is not None and size.value > max_frame_size:
        return FrameMalformed(
            f"tag {tag} declares {size.value} bytes, limit is {max_frame_size}"
        )

    header = 1 + size.length
    total = header + size.value
    if len(buffer) < total:
        return FrameIncomplete()

    return FrameComplete(Frame(tag=tag, payload=buffer[header:total]), total)


class FrameAssembler:
    """Turn a sequence of byte chunks into frames.

    Owns the pending buffer for a single socket. The first single-byte chunk
    seen while the state machine awaits the version acknowledgment is handed
    to the state machine instead of being parsed.
    """

    def __init__(
        self,
        state_machine: SessionStateMachine,
        *,
        max_frame_size: int | None = None,
    ) -> None:
        self._state = state_machine
        self._max_frame_size = max_frame_size
        self._pending = b""

    @property
    def pending(self) -> bytes:
        """Bytes received but not yet part of a complete frame."""
        return self._pending

    def feed(self, chunk: bytes) -> list[Frame]:
        """Add a chunk from the socket and return every frame it completes."""
        buffer = self._pending + chunk if self._pending else bytes(chunk)

        if len(buffer) == 1 and self._state.awaiting_version:
            self._pending = b""
            self._state.version_received(buffer[0])
            return []

        frames: list[Frame] = []
        while buffer:
            outcome = decode_frame(buffer, max_frame_size=self._max_frame_size)
            if isinstance(outcome, FrameComplete):
                frames.append(outcome.frame)
                buffer = buffer[outcome.consumed:]
            elif isinstance(outcome, FrameIncomplete):
                break
            else:
                _LOGGER.warning(
                    "[%s] Dropping %d buffered bytes: %s",
                    self._state.name,
                    len(buffer),
                    outcome.reason,
                )
                buffer = b""

        self._pending = buffer
        return frames
