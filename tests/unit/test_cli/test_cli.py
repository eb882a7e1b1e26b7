"""Tests for the command-line interface."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from webshell.cli import http_base_url, main, parse_args


class TestParseArgs:
    def test_connect_with_url(self) -> None:
        args = parse_args(["connect", "--url", "ws://host:1234/"])
        assert args.command == "connect"
        assert args.url == "ws://host:1234/"

    def test_global_options(self) -> None:
        args = parse_args(["-v", "-c", "my.yaml", "serve"])
        assert args.verbose is True
        assert args.config == Path("my.yaml")
        assert args.command == "serve"

    def test_escape_demo_delay(self) -> None:
        args = parse_args(["escape-demo", "--delay", "0"])
        assert args.delay == 0.0

    def test_no_command(self) -> None:
        assert parse_args([]).command is None


class TestHttpBaseUrl:
    @pytest.mark.parametrize(
        ("ws_url", "expected"),
        [
            ("ws://localhost:8080/", "http://localhost:8080"),
            ("wss://example.test/term", "https://example.test"),
            ("http://already:80/", "http://already:80"),
        ],
    )
    def test_conversion(self, ws_url: str, expected: str) -> None:
        assert http_base_url(ws_url) == expected


class TestMain:
    def test_escape_demo_plays_without_delay(self, tmp_path: Path) -> None:
        with patch("webshell.demo.escape.play", new=AsyncMock(return_value=0)) as mock_play, \
                patch("webshell.emulator.stdio.LocalTerminal"):
            main(["-c", str(tmp_path / "missing.yaml"), "escape-demo", "--delay", "0"])
        mock_play.assert_awaited_once()
        assert mock_play.await_args.kwargs["pacer"] is None

    def test_status_reports_unreachable(self, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([
                "-c", str(tmp_path / "missing.yaml"),
                "status", "--url", "http://127.0.0.1:9",
            ])
        assert exc_info.value.code == 1
        assert "not reachable" in capsys.readouterr().out
