"""The host terminal as the emulator.

When the client runs inside a real terminal, that terminal already
parses and renders escape sequences, so the bridge only has to put it in
raw mode and move bytes: stdin chunks become input, and inbound chunks
are written straight to stdout.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
import termios
import tty

from webshell.domain.models import ByteChunk
from webshell.emulator.base import TerminalEmulator

logger = logging.getLogger(__name__)


class LocalTerminal(TerminalEmulator):
    """Relays the process's own stdin/stdout.

    ``attach()`` must be called from a running event loop: stdin is
    watched with the loop's reader callback so input is delivered as
    soon as it is available, one chunk per read.
    """

    def __init__(
        self,
        stdin_fd: int | None = None,
        stdout_fd: int | None = None,
        raw: bool = True,
        read_size: int = 4096,
    ) -> None:
        super().__init__()
        self._stdin_fd = sys.stdin.fileno() if stdin_fd is None else stdin_fd
        self._stdout_fd = sys.stdout.fileno() if stdout_fd is None else stdout_fd
        self._raw = raw
        self._read_size = read_size
        self._saved_attrs: list | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    def attach(self) -> None:
        """Switch stdin to raw mode and start watching it."""
        if self._is_attached:
            return
        loop = asyncio.get_running_loop()
        if self._raw and os.isatty(self._stdin_fd):
            self._saved_attrs = termios.tcgetattr(self._stdin_fd)
            tty.setraw(self._stdin_fd)
        loop.add_reader(self._stdin_fd, self._on_readable)
        self._loop = loop
        self._is_attached = True
        logger.debug("Attached to terminal (fd=%d, raw=%s)", self._stdin_fd, self._saved_attrs is not None)

    def detach(self) -> None:
        """Stop watching stdin and restore the terminal mode."""
        if self._loop is not None:
            self._loop.remove_reader(self._stdin_fd)
            self._loop = None
        if self._saved_attrs is not None:
            termios.tcsetattr(self._stdin_fd, termios.TCSADRAIN, self._saved_attrs)
            self._saved_attrs = None
        if self._is_attached:
            self._is_attached = False
            logger.debug("Detached from terminal")

    def write(self, chunk: ByteChunk) -> None:
        """Write the whole chunk to stdout."""
        view = memoryview(chunk)
        while view:
            written = os.write(self._stdout_fd, view)
            view = view[written:]

    def _on_readable(self) -> None:
        try:
            data = os.read(self._stdin_fd, self._read_size)
        except OSError as e:
            logger.warning("Reading terminal input failed: %s", e)
            data = b""
        if not data:
            if self._loop is not None:
                self._loop.remove_reader(self._stdin_fd)
                self._loop = None
            self.emit_end()
            return
        self.emit_input(data)
