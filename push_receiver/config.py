"""Connection settings for the MCS session."""

from __future__ import annotations

from dataclasses import dataclass

from .protocol import MAX_RETRY_DELAY, MCS_HOST, MCS_PORT


@dataclass(frozen=True)
class McsConfig:
    """Configuration for a push receiver connection.

    Attributes:
        host: Push relay hostname
        port: Push relay port
        use_tls: Wrap the socket in TLS (only disabled against local test servers)
        connect_timeout: Seconds allowed for TCP connect plus TLS handshake
        max_retry_delay: Ceiling of the linear reconnect backoff (seconds)
        keepalive: Enable TCP keep-alive on the socket
        max_frame_size: Reject frames declaring a larger payload (None: no limit)
        name: Log prefix for this session (default: "host:port")
    """

    host: str = MCS_HOST
    port: int = MCS_PORT
    use_tls: bool = True
    connect_timeout: float = 15.0
    max_retry_delay: int = MAX_RETRY_DELAY
    keepalive: bool = True
    max_frame_size: int | None = None
    name: str | None = None

    def __post_init__(self) -> None:
        if self.connect_timeout <= 0:
            raise ValueError(
                f"connect_timeout must be positive, got {self.connect_timeout}"
            )
        if self.max_retry_delay < 0:
            raise ValueError(
                f"max_retry_delay must be non-negative, got {self.max_retry_delay}"
            )
        if self.max_frame_size is not None and self.max_frame_size < 0:
            raise ValueError(
                f"max_frame_size must be non-negative, got {self.max_frame_size}"
            )

    @property
    def label(self) -> str:
        return self.name or f"{self.host}:{self.port}"
