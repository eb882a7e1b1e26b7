"""Transport module for webshell.

Moves opaque byte chunks between the client bridge and the remote
bridge. The abstract interface is implemented by a WebSocket client for
real connections and an in-memory loopback for tests and embedding.

Public API:
    Transport -- Abstract base class
    WebSocketTransport -- WebSocket client backend
    LoopbackTransport -- In-memory backend
"""

from webshell.transport.base import (
    Transport,
    TransportClosed,
    TransportError,
    TransportUnavailable,
)
from webshell.transport.memory import LoopbackTransport

__all__ = [
    "LoopbackTransport",
    "Transport",
    "TransportClosed",
    "TransportError",
    "TransportUnavailable",
    "WebSocketTransport",
]


def __getattr__(name: str) -> type:
    """Lazy import for concrete implementations that require external deps."""
    if name == "WebSocketTransport":
        from webshell.transport.websocket import WebSocketTransport
        return WebSocketTransport
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
