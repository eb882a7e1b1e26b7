"""Configuration management for webshell.

Loads settings from a YAML configuration file with environment variable
overrides (``WEBSHELL_`` prefix, ``__`` between nested keys). Supports
.env files.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from webshell.domain.models import FrameMode, InputPolicy

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/webshell.yaml")


class ClientConfig(BaseModel):
    url: str = Field(default="ws://localhost:8080/", description="Remote bridge WebSocket URL")
    input_policy: InputPolicy = Field(default=InputPolicy.BUFFER)
    max_pending_chunks: int = Field(default=0, ge=0, description="0 means unbounded")
    open_timeout: float = Field(default=10.0, gt=0)
    close_timeout: float = Field(default=5.0, gt=0)
    max_message_size: int | None = Field(default=None, gt=0)
    trace_chunks: bool = Field(default=False)


class EndpointConfig(BaseModel):
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080, ge=1, le=65535)
    path: str = Field(default="/")
    shell_command: str = Field(default="/bin/bash")
    shell_args: list[str] = Field(default_factory=lambda: ["-il"])
    terminal_rows: int = Field(default=24, gt=0)
    terminal_cols: int = Field(default=80, gt=0)
    read_size: int = Field(default=1024, gt=0)
    frame_mode: FrameMode = Field(default=FrameMode.TEXT)
    trace_chunks: bool = Field(default=False)


class DemoConfig(BaseModel):
    char_delay: float = Field(default=0.002, ge=0, description="Seconds between characters")


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for webshell.

    Loads from YAML file and supports environment variable overrides.
    Reads .env files automatically.
    """

    model_config = {
        "env_prefix": "WEBSHELL_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    client: ClientConfig = Field(default_factory=ClientConfig)
    endpoint: EndpointConfig = Field(default_factory=EndpointConfig)
    demo: DemoConfig = Field(default_factory=DemoConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # YAML values arrive as init kwargs; the environment wins over them
        return env_settings, dotenv_settings, init_settings, file_secret_settings


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Priority: env vars > .env file > YAML file > defaults
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    yaml_data = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    return Settings(**yaml_data)
