"""Tests for settings loading."""

from absolutebot.config import Settings, load_settings
from absolutebot.utils import platform


def test_yaml_overlay(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "bot:\n  bot_name: Тест\ncooldown:\n  default_seconds:\n    Twitch: 30\n",
        encoding="utf-8",
    )
    settings = load_settings(path)
    assert settings.bot.bot_name == "Тест"
    assert settings.bot.history_size == 10
    assert settings.cooldown.default_seconds == {"Twitch": 30}


def test_missing_file_gives_defaults(tmp_path):
    settings = load_settings(tmp_path / "absent.yaml")
    assert settings.bot.bot_name == "Абсолют"
    assert settings.scheduler.birthday_hour == 12


def test_env_override(monkeypatch, tmp_path):
    monkeypatch.setenv("ABSOLUTEBOT_CONFIG_DIR", str(tmp_path))
    monkeypatch.delenv("ABSOLUTEBOT_CONFIG", raising=False)
    monkeypatch.setenv("ABSOLUTEBOT_LOG_LEVEL", "DEBUG")
    assert load_settings().log_level == "DEBUG"


def test_data_dir(tmp_path):
    assert Settings(data_dir=str(tmp_path)).get_data_dir() == tmp_path


def test_directory_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("ABSOLUTEBOT_CONFIG_DIR", str(tmp_path / "cfg"))
    monkeypatch.setenv("ABSOLUTEBOT_DATA_DIR", str(tmp_path / "db"))
    assert platform.get_config_dir() == tmp_path / "cfg"
    assert platform.get_data_dir() == tmp_path / "db"


def test_xdg_directories(monkeypatch, tmp_path):
    monkeypatch.delenv("ABSOLUTEBOT_CONFIG_DIR", raising=False)
    monkeypatch.delenv("ABSOLUTEBOT_DATA_DIR", raising=False)
    monkeypatch.setattr(platform.sys, "platform", "linux")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.delenv("XDG_DATA_HOME", raising=False)
    monkeypatch.setattr(platform.Path, "home", classmethod(lambda cls: tmp_path))
    assert platform.get_config_dir() == tmp_path / "config" / "absolutebot"
    assert platform.get_data_dir() == tmp_path / ".local" / "share" / "absolutebot"


def test_windows_directories(monkeypatch, tmp_path):
    monkeypatch.delenv("ABSOLUTEBOT_CONFIG_DIR", raising=False)
    monkeypatch.delenv("ABSOLUTEBOT_DATA_DIR", raising=False)
    monkeypatch.setattr(platform.sys, "platform", "win32")
    monkeypatch.setenv("APPDATA", str(tmp_path / "Roaming"))
    monkeypatch.delenv("LOCALAPPDATA", raising=False)
    monkeypatch.setattr(platform.Path, "home", classmethod(lambda cls: tmp_path))
    assert platform.get_config_dir() == tmp_path / "Roaming" / "absolutebot"
    assert platform.get_data_dir() == tmp_path / "AppData" / "Local" / "absolutebot"
