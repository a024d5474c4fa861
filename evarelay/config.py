"""Configuration management for the relay bot.

Loads settings from YAML config file with Pydantic validation.
Config file location: ~/.evarelay/config.yaml
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field

from evarelay.chunking import DEFAULT_MAX_LENGTH


# === Default paths ===

def get_relay_home() -> Path:
    """Get the relay data directory (~/.evarelay)."""
    return Path(os.environ.get("EVARELAY_HOME", Path.home() / ".evarelay"))


# === Configuration Models ===


class WorkerConfig(BaseModel):
    """Response-generating worker endpoint."""

    url: str = "https://eva.valkyrja.link"
    chat_path: str = "/chat"
    timeout: float = 30.0  # seconds

    @property
    def chat_url(self) -> str:
        return self.url.rstrip("/") + "/" + self.chat_path.lstrip("/")


class DiscordConfig(BaseModel):
    """Discord adapter configuration."""

    enabled: bool = True
    bot_token_env: str = "DISCORD_TOKEN"  # Environment variable name for bot token
    command_prefix: str = "!ai"
    respond_to_mentions: bool = True
    reply_mode: Literal["reply", "send"] = "reply"
    max_message_length: int = Field(default=DEFAULT_MAX_LENGTH, ge=1)
    forward_all: bool = True  # Forward every message for worker memory, not just triggers
    allowed_user_ids: list[int] = Field(default_factory=list)  # Empty = allow all
    allowed_channel_ids: list[int] = Field(default_factory=list)  # Empty = allow all

    def get_bot_token(self) -> str | None:
        """Resolve bot token from environment variable."""
        return os.environ.get(self.bot_token_env)


class RelayConfig(BaseModel):
    """Root configuration."""

    worker: WorkerConfig = Field(default_factory=WorkerConfig)
    discord: DiscordConfig = Field(default_factory=DiscordConfig)
    log_level: str = "info"


# === Config Loading ===


def load_config(config_path: Path | None = None) -> RelayConfig:
    """Load configuration from YAML file.

    Falls back to defaults if the config file doesn't exist.
    """
    if config_path is None:
        config_path = get_relay_home() / "config.yaml"

    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        return RelayConfig(**raw)

    return RelayConfig()


def save_default_config(config_path: Path | None = None) -> Path:
    """Save the default configuration to a YAML file.

    Creates parent directories if needed. Returns the path.
    """
    if config_path is None:
        config_path = get_relay_home() / "config.yaml"

    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = RelayConfig().model_dump()

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(data, f, default_flow_style=False, allow_unicode=True, sort_keys=False)

    return config_path
