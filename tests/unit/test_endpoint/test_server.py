"""Tests for the WebSocket shell endpoint."""

from __future__ import annotations

import asyncio
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from webshell.config.settings import EndpointConfig, Settings
from webshell.domain.models import FrameMode
from webshell.endpoint.server import CLOSE_INTERNAL_ERROR, create_app, main, serve
from webshell.endpoint.shell import ShellError


class FakeShell:
    """Shell double: greets with a prompt, then echoes whatever it is sent."""

    def __init__(self, banner: bytes = b"$ ", start_error: ShellError | None = None) -> None:
        self.banner = banner
        self.start_error = start_error
        self.written: list[bytes] = []
        self.started = False
        self.stopped = False
        self._output: asyncio.Queue | None = None

    @property
    def is_alive(self) -> bool:
        return self.started and not self.stopped

    async def start(self) -> None:
        if self.start_error is not None:
            raise self.start_error
        self._output = asyncio.Queue()
        self._output.put_nowait(self.banner)
        self.started = True

    async def stop(self) -> None:
        self.stopped = True

    async def write(self, data: bytes) -> None:
        self.written.append(data)
        if data == b"exit\r":
            self._output.put_nowait(b"")
        else:
            self._output.put_nowait(data)

    async def read(self) -> bytes:
        return await self._output.get()


@pytest.fixture
def shell() -> FakeShell:
    return FakeShell()


@pytest.fixture
def client(shell: FakeShell) -> TestClient:
    app = create_app(shell_factory=lambda: shell, frame_mode=FrameMode.BINARY)
    return TestClient(app)


class TestHealthEndpoint:
    def test_health_returns_ok(self, client: TestClient) -> None:
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["active_sessions"] == 0
        assert data["shell_command"] == "/bin/bash"


class TestShellSocket:
    def test_relays_both_directions(self, client: TestClient, shell: FakeShell) -> None:
        with client.websocket_connect("/") as ws:
            assert ws.receive_bytes() == b"$ "
            ws.send_bytes(b"ls\r\n")
            assert ws.receive_bytes() == b"ls\r\n"
            ws.send_bytes(b"\x1b[A")
            assert ws.receive_bytes() == b"\x1b[A"

        assert shell.written == [b"ls\r\n", b"\x1b[A"]

    def test_text_frames_reach_shell_as_utf8(self, client: TestClient, shell: FakeShell) -> None:
        with client.websocket_connect("/") as ws:
            ws.receive_bytes()
            ws.send_text("héllo")
            assert ws.receive_bytes() == "héllo".encode("utf-8")

        assert shell.written == ["héllo".encode("utf-8")]

    def test_shell_exit_closes_socket_normally(self, client: TestClient, shell: FakeShell) -> None:
        with client.websocket_connect("/") as ws:
            ws.receive_bytes()
            ws.send_bytes(b"exit\r")
            with pytest.raises(WebSocketDisconnect) as exc_info:
                ws.receive_bytes()

        assert exc_info.value.code == 1000
        assert shell.stopped

    def test_shell_start_failure_closes_with_internal_error(self) -> None:
        failing = FakeShell(start_error=ShellError("no pty"))
        app = create_app(shell_factory=lambda: failing)
        client = TestClient(app)

        with client.websocket_connect("/") as ws:
            with pytest.raises(WebSocketDisconnect) as exc_info:
                ws.receive_bytes()

        assert exc_info.value.code == CLOSE_INTERNAL_ERROR

    def test_custom_path(self, shell: FakeShell) -> None:
        client = TestClient(create_app(shell_factory=lambda: shell, path="/term"))

        with client.websocket_connect("/term") as ws:
            assert ws.receive_text() == "$ "


class TestTextFrameMode:
    def test_split_utf8_sequence_is_reassembled(self) -> None:
        check = "✓".encode("utf-8")
        shell = FakeShell(banner=check[:1])
        client = TestClient(create_app(shell_factory=lambda: shell, frame_mode=FrameMode.TEXT))

        with client.websocket_connect("/") as ws:
            ws.send_bytes(check[1:])
            assert ws.receive_text() == "✓"

    def test_incomplete_sequence_at_exit_becomes_replacement_char(self) -> None:
        check = "✓".encode("utf-8")
        shell = FakeShell(banner=check[:2])
        client = TestClient(create_app(shell_factory=lambda: shell, frame_mode=FrameMode.TEXT))

        with client.websocket_connect("/") as ws:
            ws.send_bytes(b"exit\r")
            assert ws.receive_text() == "\ufffd"
            with pytest.raises(WebSocketDisconnect) as exc_info:
                ws.receive_text()

        assert exc_info.value.code == 1000


class TestServe:
    def test_serve_uses_endpoint_config(self) -> None:
        config = EndpointConfig(host="127.0.0.1", port=9001, path="/term")

        with patch("webshell.endpoint.server.uvicorn.run") as run:
            serve(config)

        app = run.call_args.args[0]
        assert run.call_args.kwargs == {"host": "127.0.0.1", "port": 9001}
        assert any(getattr(route, "path", None) == "/term" for route in app.routes)

    def test_main_loads_settings(self) -> None:
        settings = Settings(endpoint=EndpointConfig(port=9002))

        with patch("webshell.config.settings.load_settings", return_value=settings), \
                patch("webshell.utils.logging.setup_logging"), \
                patch("webshell.endpoint.server.serve") as serve_mock:
            main()

        serve_mock.assert_called_once_with(settings.endpoint)
