"""Shared test fixtures for the webshell test suite.

Provides common fixtures used across unit tests: a recording emulator
double, loopback transports and sample chunks.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from webshell.domain.models import ByteChunk
from webshell.emulator.base import TerminalEmulator
from webshell.transport.base import Transport
from webshell.transport.memory import LoopbackTransport


class RecordingEmulator(TerminalEmulator):
    """Emulator double that records every write and lets tests type input."""

    def __init__(self) -> None:
        super().__init__()
        self.written: list[ByteChunk] = []
        self.attach_calls = 0
        self.detach_calls = 0

    def attach(self) -> None:
        self.attach_calls += 1
        self._is_attached = True

    def detach(self) -> None:
        self.detach_calls += 1
        self._is_attached = False

    def write(self, chunk: ByteChunk) -> None:
        self.written.append(chunk)

    def type(self, chunk: ByteChunk) -> None:
        """Simulate the user producing a chunk of input."""
        self.emit_input(chunk)


# ---------------------------------------------------------------------------
# Emulator / Transport Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def emulator() -> RecordingEmulator:
    """An emulator double with empty logs."""
    return RecordingEmulator()


@pytest.fixture
def emulator_factory() -> type[RecordingEmulator]:
    """Builds independent emulator doubles, for tests needing more than one."""
    return RecordingEmulator


@pytest.fixture
def loopback() -> LoopbackTransport:
    """A loopback transport that only records what is sent."""
    return LoopbackTransport()


@pytest.fixture
def echo_loopback() -> LoopbackTransport:
    """A loopback transport that sends every chunk straight back."""
    return LoopbackTransport(echo=True)


@pytest.fixture
def mock_transport() -> AsyncMock:
    """A mock Transport for call-count assertions."""
    return AsyncMock(spec=Transport)


# ---------------------------------------------------------------------------
# Chunk Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def escape_chunk() -> ByteChunk:
    """Bold italic red text followed by a reset."""
    return b"\x1b[1;3;31mhello\x1b[0m"


@pytest.fixture
def mixed_chunks() -> list[ByteChunk]:
    """Chunks mixing text, control bytes, escapes and multi-byte UTF-8."""
    return [
        b"ls -la",
        b"\r",
        b"\x1b[A",
        b"\x03",
        "héllo wörld ✓".encode("utf-8"),
        b"\x1b[1;3;31mred\x1b[0m",
        b"",
    ]
