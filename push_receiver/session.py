"""Long-lived MCS session with automatic reconnect.

This module provides the public API for receiving push notifications. It
handles:
- TLS socket lifecycle and keep-alive
- Login request on every new socket
- Feeding socket reads through the frame assembler and dispatcher
- Linear, capped reconnect backoff on unexpected closure

Usage:
    handle = await connect(login_request, schema, on_notification, on_login)
    ...
    handle.close()
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable
from typing import Any

from .config import McsConfig
from .dispatcher import MessageCallback, MessageDispatcher
from .errors import (
    PushConnectionError,
    PushHandshakeError,
    PushTimeout,
)
from .framing import FrameAssembler
from .protocol import build_login_frame
from .schema import LOGIN_REQUEST, Schema, SchemaEntry
from .state import ConnectionState, SessionStateMachine
from .transport import open_tls_connection

_LOGGER = logging.getLogger(__name__)


class McsClientProtocol(asyncio.Protocol):
    """Socket event handler for one connection attempt.

    Holds the state machine and pending buffer for this socket only; both die
    with it.
    """

    def __init__(self, supervisor: ConnectionSupervisor) -> None:
        self._supervisor = supervisor
        self.name = supervisor.name
        self.state_machine = SessionStateMachine(self.name)
        self.assembler = FrameAssembler(
            self.state_machine, max_frame_size=supervisor.config.max_frame_size
        )
        self.dispatcher = MessageDispatcher(
            supervisor.schema,
            self.state_machine,
            notification_callback=supervisor.notification_callback,
            login_callback=supervisor.login_callback,
        )
        self.transport: asyncio.Transport | None = None
        self.connected_at: float | None = None
        self.user_closed = False

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self.transport = transport  # type: ignore[assignment]
        self.connected_at = time.monotonic()

    def data_received(self, data: bytes) -> None:
        for frame in self.assembler.feed(data):
            self.dispatcher.dispatch(frame)

    def eof_received(self) -> bool | None:
        _LOGGER.debug("[%s] EOF from MCS server", self.name)
        return None

    def connection_lost(self, exc: Exception | None) -> None:
        if isinstance(exc, ConnectionResetError):
            _LOGGER.info("[%s] Connection to MCS server lost", self.name)
        elif exc is not None:
            _LOGGER.warning(
                "[%s] Error while communicating with MCS server: %r", self.name, exc
            )
        self._supervisor._connection_lost(self)


class ConnectionSupervisor:
    """Own the MCS socket and keep it alive until closed.

    One supervisor is one logical session. Retry state lives here, so several
    sessions can run side by side.
    """

    def __init__(
        self,
        login_request: Any,
        schema: Schema | Iterable[SchemaEntry],
        notification_callback: MessageCallback | None = None,
        login_callback: MessageCallback | None = None,
        *,
        config: McsConfig | None = None,
    ) -> None:
        """Initialize supervisor.

        Args:
            login_request: Message encoded with the schema's LoginRequest codec
            schema: Schema table, or entries to build one from
            notification_callback: Called with each DataMessageStanza
            login_callback: Called with the LoginResponse
            config: Connection settings

        Raises:
            SchemaError: If the schema has no LoginRequest entry
        """
        self.config = config or McsConfig()
        self.name = self.config.label
        self.schema = schema if isinstance(schema, Schema) else Schema(schema)
        self.notification_callback = notification_callback
        self.login_callback = login_callback
        self.login_request = login_request

        login_entry = self.schema.by_name(LOGIN_REQUEST)
        self._login_frame = build_login_frame(
            login_entry.tag, login_entry.encode(login_request)
        )

        # Connection state
        self._transport: asyncio.Transport | None = None
        self._protocol: McsClientProtocol | None = None
        self._reconnect_task: asyncio.Task[None] | None = None
        self._retry_count = 0
        self._connecting = False
        self._close_requested = False
        self._closed = asyncio.Event()

        self._loop: asyncio.AbstractEventLoop | None = None

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    async def start(self) -> bool:
        """Open the socket and send the login request.

        Returns:
            True if the socket is up, False if a retry was scheduled instead.
            A call while a socket is open, opening or awaiting a scheduled
            reconnect does nothing.
        """
        if self._close_requested:
            _LOGGER.debug("[%s] Connection aborted: close requested", self.name)
            return False
        if (
            self._transport is not None
            or self._reconnect_task is not None
            or self._connecting
        ):
            _LOGGER.debug("[%s] Already connected or connecting", self.name)
            return self._transport is not None

        self._loop = asyncio.get_running_loop()
        _LOGGER.info(
            "[%s] Connecting to %s:%s (attempt #%d)",
            self.name,
            self.config.host,
            self.config.port,
            self._retry_count + 1,
        )

        self._connecting = True
        try:
            transport, protocol = await open_tls_connection(
                lambda: McsClientProtocol(self),
                self.config.host,
                self.config.port,
                use_tls=self.config.use_tls,
                keepalive=self.config.keepalive,
                timeout=self.config.connect_timeout,
            )
        except PushTimeout:
            _LOGGER.warning("[%s] Connection timeout - server unreachable", self.name)
            self._handle_connection_failure()
            return False
        except PushHandshakeError as err:
            _LOGGER.error("[%s] TLS handshake failed: %s", self.name, err.__cause__)
            self._handle_connection_failure()
            return False
        except PushConnectionError as err:
            _LOGGER.warning("[%s] Connection failed: %s", self.name, err.__cause__)
            self._handle_connection_failure()
            return False
        finally:
            self._connecting = False

        if self._close_requested:
            protocol.user_closed = True
            transport.abort()
            return False

        self._transport = transport
        self._protocol = protocol
        self._retry_count = 0
        _LOGGER.info("[%s] MCS socket connected", self.name)

        transport.write(self._login_frame)
        _LOGGER.debug("[%s] Login request sent", self.name)
        return True

    def close(self) -> None:
        """Stop the session for good. No reconnect follows."""
        if self._close_requested:
            return
        _LOGGER.info("[%s] Closing session", self.name)
        self._close_requested = True

        if self._reconnect_task is not None:
            self._reconnect_task.cancel()
            self._reconnect_task = None

        if self._protocol is not None:
            self._protocol.user_closed = True
        if self._transport is not None:
            self._transport.abort()
        else:
            self._closed.set()

    async def wait_closed(self) -> None:
        """Wait until ``close()`` was called and the socket is gone."""
        await self._closed.wait()

    @property
    def state(self) -> ConnectionState | None:
        """Handshake state of the current socket, None between sockets."""
        if self._protocol is None:
            return None
        return self._protocol.state_machine.state

    @property
    def is_connected(self) -> bool:
        """Check if the socket is up and logged in."""
        return self.state is ConnectionState.LOGGED_IN

    @property
    def is_closed(self) -> bool:
        return self._close_requested

    @property
    def retry_count(self) -> int:
        """Consecutive failed attempts since the last successful connect."""
        return self._retry_count

    # -------------------------------------------------------------------------
    # Internal: Reconnect
    # -------------------------------------------------------------------------

    def _connection_lost(self, protocol: McsClientProtocol) -> None:
        if protocol is not self._protocol:
            return

        if protocol.connected_at is not None:
            minutes = round((time.monotonic() - protocol.connected_at) / 60)
            _LOGGER.info("[%s] MCS socket closed after %d minutes", self.name, minutes)

        self._transport = None
        self._protocol = None

        if protocol.user_closed or self._close_requested:
            self._closed.set()
            return

        self._handle_connection_failure()

    def _next_retry_delay(self) -> int:
        delay = min(self._retry_count, self.config.max_retry_delay)
        self._retry_count += 1
        return delay

    def _handle_connection_failure(self) -> None:
        """Schedule a reconnect with linear, capped backoff."""
        if self._close_requested or self._reconnect_task is not None:
            return

        delay = self._next_retry_delay()
        _LOGGER.info("[%s] Will try to reconnect in %d seconds", self.name, delay)

        loop = self._loop or asyncio.get_running_loop()
        self._reconnect_task = loop.create_task(self._reconnect_after_delay(delay))

    async def _reconnect_after_delay(self, delay: float) -> None:
        """Reconnect after delay."""
        try:
            await asyncio.sleep(delay)
        except asyncio.CancelledError:
            _LOGGER.debug("[%s] Reconnect cancelled", self.name)
            return
        self._reconnect_task = None
        try:
            await self.start()
        except Exception:
            _LOGGER.exception("[%s] Unexpected error while reconnecting", self.name)
            self._handle_connection_failure()


async def connect(
    login_request: Any,
    schema: Schema | Iterable[SchemaEntry],
    notification_callback: MessageCallback | None = None,
    login_callback: MessageCallback | None = None,
    *,
    config: McsConfig | None = None,
) -> ConnectionSupervisor:
    """Connect to the MCS server and keep the session alive.

    Returns after the first connection attempt. If that attempt failed a
    retry is already scheduled. Call ``close()`` on the returned handle to
    stop.
    """
    supervisor = ConnectionSupervisor(
        login_request,
        schema,
        notification_callback,
        login_callback,
        config=config,
    )
    await supervisor.start()
    return supervisor
