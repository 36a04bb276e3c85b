"""Transport layer for the push receiver.

Components:
- tls: TLS socket connection setup
"""

from .tls import open_tls_connection

__all__ = [
    "open_tls_connection",
]
