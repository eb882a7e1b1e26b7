"""Tests for configuration loading and validation."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from webshell.config.settings import (
    ClientConfig,
    EndpointConfig,
    Settings,
    load_settings,
)
from webshell.domain.models import FrameMode, InputPolicy


class TestSettings:
    def test_default_settings(self) -> None:
        """Default Settings should be valid."""
        settings = Settings()
        assert settings.client.url == "ws://localhost:8080/"
        assert settings.client.input_policy is InputPolicy.BUFFER
        assert settings.endpoint.port == 8080
        assert settings.endpoint.shell_args == ["-il"]
        assert settings.demo.char_delay == 0.002

    def test_client_config_defaults(self) -> None:
        config = ClientConfig()
        assert config.max_pending_chunks == 0
        assert config.max_message_size is None
        assert config.trace_chunks is False

    def test_endpoint_config_rejects_bad_port(self) -> None:
        with pytest.raises(ValidationError):
            EndpointConfig(port=70000)

    def test_policy_parsed_from_string(self) -> None:
        config = ClientConfig(input_policy="drop")
        assert config.input_policy is InputPolicy.DROP

    def test_load_settings_missing_file(self, tmp_path: Path) -> None:
        """load_settings with missing file should return defaults."""
        settings = load_settings(tmp_path / "nonexistent.yaml")
        assert settings.client.url == "ws://localhost:8080/"

    def test_load_settings_from_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "webshell.yaml"
        path.write_text(
            "client:\n"
            "  url: ws://remote.test:9000/term\n"
            "  input_policy: drop\n"
            "endpoint:\n"
            "  frame_mode: binary\n"
            "  shell_args: []\n"
        )
        settings = load_settings(path)
        assert settings.client.url == "ws://remote.test:9000/term"
        assert settings.client.input_policy is InputPolicy.DROP
        assert settings.endpoint.frame_mode is FrameMode.BINARY
        assert settings.endpoint.shell_args == []

    def test_env_overrides_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "webshell.yaml"
        path.write_text("client:\n  url: ws://from-yaml/\n  open_timeout: 3.0\n")
        monkeypatch.setenv("WEBSHELL_CLIENT__URL", "ws://from-env/")

        settings = load_settings(path)

        assert settings.client.url == "ws://from-env/"
        assert settings.client.open_timeout == 3.0
