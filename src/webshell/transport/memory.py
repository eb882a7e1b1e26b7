"""In-memory loopback transport.

Keeps every chunk handed to ``send()`` in a ``sent`` log and lets the
caller inject inbound chunks, a graceful close or a failure. Message
boundaries are preserved exactly, which makes it the reference double
for relay tests and for embedding a session without a network.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator

from webshell.domain.models import ByteChunk
from webshell.transport.base import Transport, TransportError, TransportUnavailable

logger = logging.getLogger(__name__)

# Queue marker for a graceful close by the remote side
_EOF = object()


class LoopbackTransport(Transport):
    """A boundary-preserving transport that lives entirely in memory.

    With ``echo=True`` every sent chunk is also queued as inbound, so
    the same chunk comes back to the sender unchanged.
    """

    def __init__(
        self,
        echo: bool = False,
        connect_error: TransportError | None = None,
    ) -> None:
        self.sent: list[ByteChunk] = []
        self._echo = echo
        self._connect_error = connect_error
        self._inbound: asyncio.Queue = asyncio.Queue()
        self._connected = False
        self._closed = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def is_closed(self) -> bool:
        return self._closed

    async def connect(self) -> None:
        if self._connect_error is not None:
            raise self._connect_error
        self._connected = True
        logger.debug("Loopback transport connected")

    async def send(self, chunk: ByteChunk) -> None:
        if not self._connected:
            raise TransportUnavailable("Loopback transport not connected", transport="loopback")
        self.sent.append(chunk)
        if self._echo:
            self._inbound.put_nowait(chunk)

    async def receive(self) -> AsyncIterator[ByteChunk]:
        while True:
            item = await self._inbound.get()
            try:
                if item is _EOF:
                    return
                if isinstance(item, BaseException):
                    raise item
                yield item
            finally:
                self._inbound.task_done()

    async def close(self) -> None:
        self._connected = False
        self._closed = True

    # -- remote side controls -------------------------------------------

    async def deliver(self, chunk: ByteChunk) -> None:
        """Queue an inbound chunk and wait until the receiver has handled it."""
        self._inbound.put_nowait(chunk)
        await self._inbound.join()

    async def wait_delivered(self) -> None:
        """Wait until every queued inbound chunk (echoes included) was handled."""
        await self._inbound.join()

    def finish(self) -> None:
        """Simulate a graceful close by the remote side."""
        self._inbound.put_nowait(_EOF)

    def fail(self, error: TransportError) -> None:
        """Simulate an abnormal close by the remote side."""
        self._inbound.put_nowait(error)
