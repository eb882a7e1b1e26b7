"""FastAPI server for the remote bridge.

Accepts WebSocket connections and gives each one its own shell on a
pty. Socket frames are written to the shell's input unchanged, and the
shell's output is sent back as frames in the order it was produced.

    WS   /          <-> raw terminal bytes (path is configurable)
    GET  /health    -> {"status": "ok", "active_sessions": 0, ...}
"""

from __future__ import annotations

import asyncio
import codecs
import logging
from typing import Callable

import uvicorn
from fastapi import FastAPI, WebSocket
from pydantic import BaseModel
from starlette.websockets import WebSocketState

from webshell.config.settings import EndpointConfig
from webshell.domain.models import FrameMode
from webshell.endpoint.shell import PtyShell, ShellError
from webshell.utils.chunks import describe_chunk

logger = logging.getLogger(__name__)

# WebSocket close codes (RFC 6455)
CLOSE_NORMAL = 1000
CLOSE_INTERNAL_ERROR = 1011

ShellFactory = Callable[[], PtyShell]


class EndpointStatus(BaseModel):
    status: str = "ok"
    active_sessions: int = 0
    shell_command: str = "/bin/bash"


def create_app(
    shell_factory: ShellFactory | None = None,
    shell_command: str = "/bin/bash",
    shell_args: list[str] | None = None,
    rows: int = 24,
    cols: int = 80,
    read_size: int = 1024,
    path: str = "/",
    frame_mode: FrameMode = FrameMode.TEXT,
    trace: bool = False,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        shell_factory: Builds the shell for each connection. Defaults to
                       a PtyShell built from the other arguments; tests
                       inject a fake here.
        shell_command: Shell executable to run per connection.
        shell_args: Arguments passed to the shell (default ``-il``).
        rows: Initial terminal height.
        cols: Initial terminal width.
        read_size: Maximum bytes read from the pty per output chunk.
        path: WebSocket route path.
        frame_mode: Send shell output as binary or UTF-8 text frames.
        trace: Log every relayed chunk at DEBUG level.
    """

    def default_factory() -> PtyShell:
        return PtyShell(
            shell_command=shell_command,
            shell_args=shell_args,
            rows=rows,
            cols=cols,
            read_size=read_size,
        )

    app = FastAPI(
        title="webshell Endpoint",
        description="Relays WebSocket terminal sessions to a shell on a pty",
        version="0.1.0",
    )
    app.state.shell_factory = shell_factory or default_factory
    app.state.active_sessions = 0

    @app.get("/health")
    async def health_check() -> EndpointStatus:
        return EndpointStatus(
            status="ok",
            active_sessions=app.state.active_sessions,
            shell_command=shell_command,
        )

    @app.websocket(path)
    async def shell_socket(websocket: WebSocket) -> None:
        await websocket.accept()
        shell = app.state.shell_factory()
        try:
            await shell.start()
        except ShellError as e:
            logger.error("Start shell failed: %s", e)
            await websocket.close(code=CLOSE_INTERNAL_ERROR, reason="start shell failed")
            return

        app.state.active_sessions += 1
        output = asyncio.create_task(_relay_shell_output(shell, websocket, frame_mode, trace))
        input_ = asyncio.create_task(_relay_socket_input(websocket, shell, trace))
        try:
            await asyncio.wait({output, input_}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (output, input_):
                task.cancel()
            for result in await asyncio.gather(output, input_, return_exceptions=True):
                if isinstance(result, Exception):
                    logger.error("Relay task failed: %s", result)
            await shell.stop()
            if (
                websocket.client_state == WebSocketState.CONNECTED
                and websocket.application_state == WebSocketState.CONNECTED
            ):
                await websocket.close(code=CLOSE_NORMAL)
            app.state.active_sessions -= 1

    return app


async def _relay_shell_output(
    shell: PtyShell, websocket: WebSocket, frame_mode: FrameMode, trace: bool
) -> None:
    """Read shell output -> write WebSocket frames, until the shell ends."""
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    while True:
        try:
            chunk = await shell.read()
        except ShellError as e:
            logger.error("Read from shell failed: %s", e)
            return
        if not chunk:
            logger.info("Shell output ended, closing socket")
            if frame_mode is FrameMode.TEXT:
                # An incomplete trailing sequence is sent as U+FFFD
                tail = decoder.decode(b"", final=True)
                if tail:
                    await websocket.send_text(tail)
            return
        if trace:
            logger.debug("shell->ws: %s", describe_chunk(chunk))
        if frame_mode is FrameMode.TEXT:
            # Hold back a trailing partial UTF-8 sequence until the rest arrives
            text = decoder.decode(chunk)
            if text:
                await websocket.send_text(text)
        else:
            await websocket.send_bytes(chunk)


async def _relay_socket_input(websocket: WebSocket, shell: PtyShell, trace: bool) -> None:
    """Read WebSocket frames -> write shell input, until the client leaves."""
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            logger.info("Client disconnected (code=%s)", message.get("code"))
            return
        data = message.get("bytes")
        if data is None:
            data = (message.get("text") or "").encode("utf-8")
        if not data:
            continue
        if trace:
            logger.debug("ws->shell: %s", describe_chunk(data))
        try:
            await shell.write(data)
        except ShellError as e:
            logger.error("Write to shell failed: %s", e)
            return


def serve(config: EndpointConfig) -> None:
    """Build the app from an endpoint config and run it under uvicorn."""
    app = create_app(
        shell_command=config.shell_command,
        shell_args=config.shell_args,
        rows=config.terminal_rows,
        cols=config.terminal_cols,
        read_size=config.read_size,
        path=config.path,
        frame_mode=config.frame_mode,
        trace=config.trace_chunks,
    )
    uvicorn.run(app, host=config.host, port=config.port)


def main() -> None:
    """Entry point for running the endpoint server standalone."""
    from webshell.config.settings import load_settings
    from webshell.utils.logging import setup_logging

    settings = load_settings()
    setup_logging(settings.logging)
    serve(settings.endpoint)


if __name__ == "__main__":
    main()
