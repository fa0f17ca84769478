"""Configuration management with Pydantic Settings + optional YAML."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from absolutebot.utils.platform import get_config_dir, get_data_dir


class BotConfig(BaseModel):
    bot_name: str = "Абсолют"
    history_size: int = 10
    mention_probability: float = 0.005
    telegram_mention_probability: float = 0.008
    system_log_marker: str = "[Система]"
    censor_replacement: str = "***"
    # occasional unprompted reactions; empty ids switch them off
    telegram_sticker_id: str = ""
    telegram_winter_sticker_id: str = ""
    sticker_probability: float = 0.01
    twitch_emote: str = ""
    emote_probability: float = 0.0015
    # word lists for keyboard layout correction, one word per line
    russian_words_path: str = ""
    english_words_path: str = ""


class DiscordConfig(BaseModel):
    token: str = ""
    guild_ids: list[int] = Field(default_factory=list)
    max_message_length: int = 1900
    # guild id -> channel type name, channel id -> channel type name
    guild_types: dict[int, str] = Field(default_factory=dict)
    channel_types: dict[int, str] = Field(default_factory=dict)


class SchedulerConfig(BaseModel):
    enabled: bool = True
    birthday_hour: int = 12


class CooldownConfig(BaseModel):
    # platform tag -> seconds, used until a value is stored at runtime
    default_seconds: dict[str, int] = Field(default_factory=dict)


class ChunkerConfig(BaseModel):
    min_chunk_size: int = 100
    typing_delay: float = 0.5


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ABSOLUTEBOT_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    bot: BotConfig = Field(default_factory=BotConfig)
    discord: DiscordConfig = Field(default_factory=DiscordConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    cooldown: CooldownConfig = Field(default_factory=CooldownConfig)
    chunker: ChunkerConfig = Field(default_factory=ChunkerConfig)
    data_dir: str = ""
    log_level: str = "INFO"
    log_json: bool = False

    def get_data_dir(self) -> Path:
        if self.data_dir:
            return Path(self.data_dir)
        return get_data_dir()


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from env vars, optionally overlaying a YAML config."""
    yaml_data: dict[str, Any] = {}

    if config_path is None:
        config_path = os.environ.get("ABSOLUTEBOT_CONFIG")
    if config_path is None:
        default = get_config_dir() / "config.yaml"
        if default.exists():
            config_path = default

    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            with open(path, encoding="utf-8") as f:
                yaml_data = yaml.safe_load(f) or {}

    return Settings(**yaml_data)
