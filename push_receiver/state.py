"""Per-socket session state machine."""

from __future__ import annotations

import logging
from enum import Enum

_LOGGER = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection phases, in order. Never reversed on a given socket."""

    CONNECTING = "connecting"
    VERSION_SEEN = "version_seen"
    LOGGED_IN = "logged_in"


class SessionStateMachine:
    """Track handshake progress for one socket.

    A new socket always gets a fresh machine in CONNECTING.
    """

    def __init__(self, name: str = "mcs") -> None:
        self.name = name
        self._state = ConnectionState.CONNECTING
        self.server_version: int | None = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def awaiting_version(self) -> bool:
        """True until the one-byte version acknowledgment arrives."""
        return self._state is ConnectionState.CONNECTING

    @property
    def is_logged_in(self) -> bool:
        return self._state is ConnectionState.LOGGED_IN

    def version_received(self, version: int) -> None:
        """Handle the server's version acknowledgment byte."""
        if self._state is not ConnectionState.CONNECTING:
            _LOGGER.debug("[%s] Ignoring late version byte %d", self.name, version)
            return
        self.server_version = version
        self._set_state(ConnectionState.VERSION_SEEN)

    def login_completed(self) -> None:
        """Handle a decoded login response."""
        self._set_state(ConnectionState.LOGGED_IN)

    def _set_state(self, state: ConnectionState) -> None:
        if self._state is not state:
            _LOGGER.debug(
                "[%s] State: %s → %s", self.name, self._state.value, state.value
            )
            self._state = state
