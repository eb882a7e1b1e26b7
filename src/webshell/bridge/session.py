"""Client bridge session: relays bytes between an emulator and a transport.

A Session owns exactly one emulator handle and one transport connection.
It moves chunks in both directions without inspecting, splitting or
merging them, and follows a small lifecycle::

    connecting -> open -> closed | failed

Only ``open`` relays. Outbound chunks go through a queue drained by a
single task so writes to the transport are never interleaved; inbound
chunks are written to the emulator from the task iterating the
transport, in arrival order.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime
from typing import Callable

from webshell.domain.models import (
    ByteChunk,
    InputPolicy,
    SessionSnapshot,
    SessionState,
    SessionStats,
)
from webshell.emulator.base import TerminalEmulator
from webshell.transport.base import Transport, TransportClosed, TransportError
from webshell.utils.chunks import describe_chunk

logger = logging.getLogger(__name__)

StateListener = Callable[["Session", SessionState], None]


class Session:
    """Relays one emulator to one transport connection.

    Example usage::

        session = Session(LocalTerminal(), WebSocketTransport(url))
        snapshot = await session.run()
    """

    def __init__(
        self,
        emulator: TerminalEmulator,
        transport: Transport,
        input_policy: InputPolicy = InputPolicy.BUFFER,
        max_pending_chunks: int = 0,
        session_id: str | None = None,
        trace: bool = False,
    ) -> None:
        """Create a session in the ``connecting`` state.

        Args:
            emulator: The emulator whose input is sent and which renders
                      inbound chunks.
            transport: An unconnected transport owned by this session.
            input_policy: Whether input produced while connecting is
                          buffered until the session opens or dropped.
            max_pending_chunks: Upper bound on queued outbound chunks.
                                0 means unbounded. Chunks beyond the
                                bound are dropped.
            session_id: Identifier used in logs. Generated if omitted.
            trace: Log every relayed chunk at DEBUG level.
        """
        self._emulator = emulator
        self._transport = transport
        self._input_policy = input_policy
        self._session_id = session_id or uuid.uuid4().hex[:12]
        self._trace = trace
        self._state = SessionState.CONNECTING
        self._outbound: asyncio.Queue[ByteChunk] = asyncio.Queue(maxsize=max_pending_chunks)
        self._connected = asyncio.Event()
        self._finished = asyncio.Event()
        self._listeners: list[StateListener] = []
        self._failure: BaseException | None = None
        self._stats = SessionStats()
        self._started_at = datetime.now()
        self._ended_at: datetime | None = None
        self._running = False

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def failure(self) -> BaseException | None:
        """The cause of the ``failed`` transition, if any."""
        return self._failure

    @property
    def stats(self) -> SessionStats:
        return self._stats

    @property
    def pending(self) -> int:
        """Outbound chunks queued but not yet handed to the transport."""
        return self._outbound.qsize()

    def add_listener(self, listener: StateListener) -> None:
        """Register a callback invoked after every state transition."""
        self._listeners.append(listener)

    # ------------------------------------------------------------------
    # Relay operations
    # ------------------------------------------------------------------

    def on_emulator_input(self, chunk: ByteChunk) -> None:
        """Forward an input chunk from the emulator to the transport.

        Never raises: input that cannot be sent is buffered or dropped
        according to the session's state and input policy.
        """
        if self._state is SessionState.OPEN:
            self._enqueue(chunk)
        elif self._state is SessionState.CONNECTING and self._input_policy is InputPolicy.BUFFER:
            self._enqueue(chunk)
        else:
            self._drop(chunk, f"session is {self._state.value}")

    def on_transport_message(self, chunk: ByteChunk) -> None:
        """Forward an inbound chunk from the transport to the emulator."""
        if self._state is not SessionState.OPEN:
            logger.debug(
                "[%s] Ignoring %d inbound bytes, session is %s",
                self._session_id, len(chunk), self._state.value,
            )
            return
        if self._trace:
            logger.debug("[%s] transport->emulator: %s", self._session_id, describe_chunk(chunk))
        self._stats.chunks_received += 1
        self._stats.bytes_received += len(chunk)
        self._emulator.write(chunk)

    def on_transport_error(self, cause: BaseException) -> None:
        """Move to ``failed`` after a transport-level failure."""
        if self._state.is_terminal:
            return
        self._failure = cause
        logger.error("[%s] Transport failed: %s", self._session_id, cause)
        self._transition(SessionState.FAILED)

    def on_transport_close(self) -> None:
        """Move to ``closed`` after a graceful shutdown by either side."""
        if self._state.is_terminal:
            return
        self._transition(SessionState.CLOSED)

    def close(self) -> None:
        """Close the session from the local side."""
        self.on_transport_close()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def run(self) -> SessionSnapshot:
        """Connect the transport and relay until the session ends.

        Attaches the emulator first if it is not attached yet (and
        detaches it again on exit in that case).

        Returns:
            A snapshot of the finished session.

        Raises:
            SessionError: If the session was already started.
        """
        if self._running or self._state is not SessionState.CONNECTING:
            raise SessionError(f"Session {self._session_id} was already started")
        self._running = True

        attached_here = False
        if not self._emulator.is_attached:
            self._emulator.attach()
            attached_here = True
        unsubscribe_input = self._emulator.on_input(self.on_emulator_input)
        unsubscribe_end = self._emulator.on_end(self.close)

        try:
            try:
                await self._transport.connect()
            except TransportError as e:
                self.on_transport_error(e)
                return self.snapshot()

            # The emulator may have ended while the connection was pending
            if self._state is SessionState.CONNECTING:
                self._transition(SessionState.OPEN)
                await self._relay()
        finally:
            unsubscribe_input()
            unsubscribe_end()
            if not self._state.is_terminal:
                self._transition(SessionState.CLOSED)
            await self._transport.close()
            if attached_here:
                self._emulator.detach()

        return self.snapshot()

    async def _relay(self) -> None:
        outbound = asyncio.create_task(self._pump_outbound())
        inbound = asyncio.create_task(self._pump_inbound())
        finished = asyncio.create_task(self._finished.wait())
        tasks = (outbound, inbound, finished)
        crash: Exception | None = None
        try:
            await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in tasks:
                task.cancel()
            results = await asyncio.gather(*tasks, return_exceptions=True)
            crash = next((r for r in results if isinstance(r, Exception)), None)
            if crash is not None:
                self.on_transport_error(crash)
        if crash is not None:
            raise crash

    async def _pump_outbound(self) -> None:
        while True:
            chunk = await self._outbound.get()
            try:
                await self._transport.send(chunk)
            except TransportClosed:
                self.on_transport_close()
                return
            except TransportError as e:
                self.on_transport_error(e)
                return
            finally:
                self._outbound.task_done()
            if self._trace:
                logger.debug("[%s] emulator->transport: %s", self._session_id, describe_chunk(chunk))
            self._stats.chunks_sent += 1
            self._stats.bytes_sent += len(chunk)

    async def _pump_inbound(self) -> None:
        try:
            async for chunk in self._transport.receive():
                self.on_transport_message(chunk)
        except TransportClosed:
            self.on_transport_close()
        except TransportError as e:
            self.on_transport_error(e)
        else:
            self.on_transport_close()

    async def wait_connected(self) -> SessionState:
        """Wait for the first transition out of ``connecting``."""
        await self._connected.wait()
        return self._state

    async def wait_finished(self) -> SessionState:
        """Wait until the session reaches ``closed`` or ``failed``."""
        await self._finished.wait()
        return self._state

    async def drain(self) -> None:
        """Wait until every queued outbound chunk has left the queue."""
        await self._outbound.join()

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            session_id=self._session_id,
            state=self._state,
            started_at=self._started_at,
            ended_at=self._ended_at,
            failure=str(self._failure) if self._failure is not None else None,
            stats=self._stats.model_copy(),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _enqueue(self, chunk: ByteChunk) -> None:
        try:
            self._outbound.put_nowait(chunk)
        except asyncio.QueueFull:
            self._drop(chunk, "outbound queue is full")

    def _drop(self, chunk: ByteChunk, reason: str) -> None:
        self._stats.chunks_dropped += 1
        logger.debug("[%s] Dropped %d input bytes: %s", self._session_id, len(chunk), reason)

    def _discard_pending(self) -> None:
        while not self._outbound.empty():
            chunk = self._outbound.get_nowait()
            self._outbound.task_done()
            self._drop(chunk, "session ended before it was sent")

    def _transition(self, state: SessionState) -> None:
        previous = self._state
        self._state = state
        logger.info("[%s] Session %s -> %s", self._session_id, previous.value, state.value)
        if previous is SessionState.CONNECTING:
            self._connected.set()
        if state.is_terminal:
            self._ended_at = datetime.now()
            self._discard_pending()
            self._finished.set()
        for listener in list(self._listeners):
            listener(self, state)


class SessionError(Exception):
    """Raised when the session API is misused."""
