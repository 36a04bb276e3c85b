"""TLS socket helpers for the MCS push relay."""

from __future__ import annotations

import asyncio
import socket
import ssl
from collections.abc import Callable
from typing import TypeVar

from ..errors import (
    PushConnectionError,
    PushHandshakeError,
    PushTimeout,
)

_ProtocolT = TypeVar("_ProtocolT", bound=asyncio.Protocol)


async def open_tls_connection(
    protocol_factory: Callable[[], _ProtocolT],
    host: str,
    port: int,
    *,
    use_tls: bool = True,
    keepalive: bool = True,
    timeout: float = 15.0,
) -> tuple[asyncio.Transport, _ProtocolT]:
    """Open a (TLS) stream connection driven by ``protocol_factory``.

    Args:
        protocol_factory: Factory for the asyncio protocol receiving events
        host: Target host
        port: Target port
        use_tls: Wrap the connection with the default TLS context
        keepalive: Enable SO_KEEPALIVE on the underlying socket
        timeout: Connect and handshake timeout

    Raises:
        PushTimeout: Connect or handshake did not finish in time
        PushHandshakeError: TLS handshake failed
        PushConnectionError: Any other socket level failure
    """
    loop = asyncio.get_running_loop()
    ssl_context = ssl.create_default_context() if use_tls else None
    try:
        transport, protocol = await asyncio.wait_for(
            loop.create_connection(
                protocol_factory,
                host,
                port,
                ssl=ssl_context,
            ),
            timeout=timeout,
        )
    except TimeoutError as err:
        raise PushTimeout(f"Connection to {host}:{port} timed out") from err
    except ssl.SSLError as err:
        raise PushHandshakeError(f"TLS handshake with {host}:{port} failed") from err
    except OSError as err:
        raise PushConnectionError(f"Connection to {host}:{port} failed") from err

    if keepalive:
        sock = transport.get_extra_info("socket")
        if sock is not None:
            try:
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
            except OSError as err:
                transport.abort()
                raise PushConnectionError(
                    f"Enabling keep-alive on {host}:{port} failed"
                ) from err

    return transport, protocol
