"""Shell process behind the remote bridge.

Runs an interactive shell on a pseudo-terminal and exposes its master
side as a raw byte stream. Output is returned exactly as the pty
produces it, escape sequences included; the endpoint only relays it.
"""

from __future__ import annotations

import asyncio
import errno
import fcntl
import logging
import os
import pty
import signal
import struct
import termios

logger = logging.getLogger(__name__)


class PtyShell:
    """A shell subprocess attached to a pty.

    ``read()`` returns output chunks in order and ``b""`` once the shell
    has exited; ``write()`` feeds raw bytes to the shell's input.
    """

    def __init__(
        self,
        shell_command: str = "/bin/bash",
        shell_args: list[str] | None = None,
        rows: int = 24,
        cols: int = 80,
        read_size: int = 1024,
    ) -> None:
        self._shell_command = shell_command
        self._shell_args = list(shell_args) if shell_args is not None else ["-il"]
        self._rows = rows
        self._cols = cols
        self._read_size = read_size
        self._master_fd: int | None = None
        self._pid: int | None = None
        self._is_alive = False
        self._waiters: set[asyncio.Future] = set()

    @property
    def is_alive(self) -> bool:
        return self._is_alive

    @property
    def pid(self) -> int | None:
        return self._pid

    async def start(self) -> None:
        """Start the shell subprocess using a pty."""
        try:
            master_fd, slave_fd = pty.openpty()
        except OSError as e:
            raise ShellError(f"Failed to open pty: {e}") from e

        winsize = struct.pack("HHHH", self._rows, self._cols, 0, 0)
        fcntl.ioctl(slave_fd, termios.TIOCSWINSZ, winsize)

        env = os.environ.copy()
        env["TERM"] = "xterm-256color"
        env["COLUMNS"] = str(self._cols)
        env["LINES"] = str(self._rows)
        argv = [self._shell_command, *self._shell_args]

        try:
            pid = os.fork()
        except OSError as e:
            os.close(master_fd)
            os.close(slave_fd)
            raise ShellError(f"Failed to fork shell: {e}") from e

        if pid == 0:
            # Child process
            try:
                os.close(master_fd)
                os.setsid()
                fcntl.ioctl(slave_fd, termios.TIOCSCTTY, 0)
                os.dup2(slave_fd, 0)
                os.dup2(slave_fd, 1)
                os.dup2(slave_fd, 2)
                if slave_fd > 2:
                    os.close(slave_fd)
                os.execvpe(self._shell_command, argv, env)
            finally:
                os._exit(127)

        # Parent process
        os.close(slave_fd)

        # Make master_fd non-blocking; reads and writes wait on the event loop
        flags = fcntl.fcntl(master_fd, fcntl.F_GETFL)
        fcntl.fcntl(master_fd, fcntl.F_SETFL, flags | os.O_NONBLOCK)

        self._master_fd = master_fd
        self._pid = pid
        self._is_alive = True
        logger.info(
            "Started shell %s (pid=%d, %dx%d)",
            " ".join(argv), pid, self._cols, self._rows,
        )

    async def stop(self) -> None:
        """Stop the shell subprocess gracefully."""
        if self._pid is not None:
            try:
                os.kill(self._pid, signal.SIGTERM)
                await asyncio.sleep(0.5)
                try:
                    os.waitpid(self._pid, os.WNOHANG)
                except ChildProcessError:
                    pass
                # Check if still alive
                try:
                    os.kill(self._pid, 0)
                    os.kill(self._pid, signal.SIGKILL)
                    os.waitpid(self._pid, 0)
                except (ProcessLookupError, ChildProcessError):
                    pass
            except ProcessLookupError:
                pass
            self._pid = None

        if self._master_fd is not None:
            fd, self._master_fd = self._master_fd, None
            loop = asyncio.get_running_loop()
            loop.remove_reader(fd)
            loop.remove_writer(fd)
            try:
                os.close(fd)
            except OSError:
                pass

        self._is_alive = False
        # Wake pending reads and writes; they see the fd is gone
        for waiter in self._waiters:
            if not waiter.done():
                waiter.set_result(None)
        logger.info("Shell stopped")

    async def write(self, data: bytes) -> None:
        """Write raw bytes to the shell's input via the pty.

        Waits for the pty to accept more input when its buffer is full,
        so a program that is not reading never blocks the event loop.
        """
        view = memoryview(data)
        while view:
            fd = self._master_fd
            if not self._is_alive or fd is None:
                raise ShellError("Shell is not alive")
            try:
                written = os.write(fd, view)
            except BlockingIOError:
                await self._wait_ready(fd, writable=True)
                continue
            except OSError as e:
                raise ShellError(f"Failed to write to shell: {e}") from e
            view = view[written:]

    async def read(self) -> bytes:
        """Return the next chunk of shell output, or b"" once it has ended."""
        while self._is_alive and self._master_fd is not None:
            fd = self._master_fd
            try:
                data = os.read(fd, self._read_size)
            except BlockingIOError:
                await self._wait_ready(fd, writable=False)
                continue
            except OSError as e:
                # Linux reports EIO on the master once the slave side is closed
                if e.errno not in (errno.EIO, errno.EBADF):
                    raise ShellError(f"Failed to read from shell: {e}") from e
                data = b""
            if not data:
                self._is_alive = False
                logger.info("Shell output ended")
            return data
        return b""

    async def _wait_ready(self, fd: int, writable: bool) -> None:
        """Wait until the master fd is readable (or writable)."""
        loop = asyncio.get_running_loop()
        waiter = loop.create_future()

        def _ready() -> None:
            if not waiter.done():
                waiter.set_result(None)

        if writable:
            loop.add_writer(fd, _ready)
        else:
            loop.add_reader(fd, _ready)
        self._waiters.add(waiter)
        try:
            await waiter
        finally:
            self._waiters.discard(waiter)
            if self._master_fd == fd:
                if writable:
                    loop.remove_writer(fd)
                else:
                    loop.remove_reader(fd)


class ShellError(Exception):
    """Raised when shell operations fail."""
