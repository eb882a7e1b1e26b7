"""Abstract base class for the byte-chunk transport.

A transport is an ordered, reliable, duplex channel of opaque chunks.
Implementations must deliver chunks in the order they were sent and
must never truncate one. The bridge only depends on this interface, so
the WebSocket client can be swapped for an in-memory double in tests.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import AsyncIterator

from webshell.domain.models import ByteChunk

logger = logging.getLogger(__name__)


class Transport(ABC):
    """Abstract interface for a duplex byte-chunk connection.

    Example usage::

        async with WebSocketTransport("ws://localhost:8080/") as transport:
            await transport.send(b"ls\\r\\n")
            async for chunk in transport.receive():
                handle(chunk)
    """

    @abstractmethod
    async def connect(self) -> None:
        """Establish the connection.

        Raises:
            TransportError: If the connection cannot be established.
        """
        ...

    @abstractmethod
    async def send(self, chunk: ByteChunk) -> None:
        """Hand one chunk to the connection, whole.

        Raises:
            TransportUnavailable: If there is no open connection.
            TransportClosed: If the peer closed the connection gracefully.
            TransportError: On any other connection failure.
        """
        ...

    @abstractmethod
    def receive(self) -> AsyncIterator[ByteChunk]:
        """Iterate over inbound chunks in arrival order.

        The iterator ends normally when the peer closes the connection
        gracefully and raises TransportError on an abnormal close.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        ...

    async def __aenter__(self) -> Transport:
        await self.connect()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        await self.close()


class TransportError(Exception):
    """Raised when the underlying connection fails."""

    def __init__(self, message: str, transport: str = "") -> None:
        super().__init__(message)
        self.transport = transport


class TransportUnavailable(TransportError):
    """Raised when no open connection exists."""


class TransportClosed(TransportError):
    """Raised when the connection was shut down gracefully by a peer."""
