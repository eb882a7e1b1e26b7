"""Key inspector: shows which bytes the terminal produces for each key.

Every input chunk is printed back as a JSON string followed by the code
point of its first character, e.g. ``"\\u001b[A" 27`` for the up arrow.
"""

from __future__ import annotations

import asyncio
import logging

from webshell.domain.models import ByteChunk
from webshell.emulator.base import TerminalEmulator
from webshell.utils.chunks import describe_chunk, first_code_point

logger = logging.getLogger(__name__)

# Ctrl+C arrives as a plain byte in raw mode
QUIT_CHUNK = b"\x03"

PROMPT = "Press keys to see the bytes they produce (Ctrl+C to quit):\r\n"


def format_chunk(chunk: ByteChunk) -> str:
    """One report line for an input chunk, without the line ending."""
    code_point = first_code_point(chunk)
    if code_point is None:
        return describe_chunk(chunk)
    return f"{describe_chunk(chunk)} {code_point}"


class KeyInspector:
    """Echoes a report line for every chunk the emulator produces."""

    def __init__(self, emulator: TerminalEmulator, quit_chunk: ByteChunk = QUIT_CHUNK) -> None:
        self._emulator = emulator
        self._quit_chunk = quit_chunk
        self._done = asyncio.Event()
        self._seen = 0

    @property
    def seen(self) -> int:
        return self._seen

    def handle(self, chunk: ByteChunk) -> None:
        self._seen += 1
        self._emulator.write(format_chunk(chunk).encode("utf-8") + b"\r\n")
        if chunk == self._quit_chunk:
            self._done.set()

    def stop(self) -> None:
        self._done.set()

    async def run(self) -> int:
        """Report input until Ctrl+C or end of input.

        Returns:
            The number of chunks reported.
        """
        unsubscribe_input = self._emulator.on_input(self.handle)
        unsubscribe_end = self._emulator.on_end(self.stop)
        try:
            self._emulator.write(PROMPT.encode("utf-8"))
            await self._done.wait()
        finally:
            unsubscribe_input()
            unsubscribe_end()
        logger.debug("Key inspector saw %d chunks", self._seen)
        return self._seen
