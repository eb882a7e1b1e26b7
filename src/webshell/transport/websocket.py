"""WebSocket transport backend.

Carries terminal chunks as WebSocket messages using the ``websockets``
client. Outbound chunks are sent as binary frames; inbound text frames
are re-encoded as UTF-8 so the bridge only ever sees bytes.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator

import websockets
from websockets.exceptions import ConnectionClosedError, ConnectionClosedOK, WebSocketException

from webshell.domain.models import ByteChunk
from webshell.transport.base import (
    Transport,
    TransportClosed,
    TransportError,
    TransportUnavailable,
)

logger = logging.getLogger(__name__)


class WebSocketTransport(Transport):
    """Connects to a remote bridge over a WebSocket."""

    def __init__(
        self,
        url: str = "ws://localhost:8080/",
        open_timeout: float = 10.0,
        close_timeout: float = 5.0,
        max_message_size: int | None = None,
    ) -> None:
        self._url = url
        self._open_timeout = open_timeout
        self._close_timeout = close_timeout
        self._max_message_size = max_message_size
        self._ws = None

    @property
    def url(self) -> str:
        return self._url

    @property
    def is_connected(self) -> bool:
        return self._ws is not None

    async def connect(self) -> None:
        """Open the WebSocket connection."""
        try:
            self._ws = await websockets.connect(
                self._url,
                open_timeout=self._open_timeout,
                close_timeout=self._close_timeout,
                max_size=self._max_message_size,
            )
        except (OSError, asyncio.TimeoutError, WebSocketException) as e:
            self._ws = None
            raise TransportError(
                f"Failed to connect to {self._url}: {e}", transport="websocket"
            ) from e
        logger.info("Connected to %s", self._url)

    async def send(self, chunk: ByteChunk) -> None:
        """Send one chunk as a single binary frame."""
        if self._ws is None:
            raise TransportUnavailable("Not connected", transport="websocket")
        try:
            await self._ws.send(chunk)
        except ConnectionClosedOK as e:
            raise TransportClosed(f"Connection closed: {e}", transport="websocket") from e
        except ConnectionClosedError as e:
            raise TransportError(f"Connection lost: {e}", transport="websocket") from e

    async def receive(self) -> AsyncIterator[ByteChunk]:
        """Yield inbound messages as bytes until the connection closes."""
        if self._ws is None:
            raise TransportUnavailable("Not connected", transport="websocket")
        try:
            async for message in self._ws:
                if isinstance(message, str):
                    message = message.encode("utf-8")
                yield message
        except ConnectionClosedError as e:
            raise TransportError(f"Connection lost: {e}", transport="websocket") from e

    async def close(self) -> None:
        """Close the WebSocket if it is open."""
        if self._ws is not None:
            ws = self._ws
            self._ws = None
            await ws.close()
            logger.info("Disconnected from %s", self._url)
