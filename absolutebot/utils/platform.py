"""Where the bot keeps its YAML config and SQLite databases."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import NamedTuple

APP_DIR_NAME = "absolutebot"


class _Location(NamedTuple):
    override: str
    windows_env: str
    windows_default: tuple[str, ...]
    xdg_env: str
    xdg_default: tuple[str, ...]


_CONFIG = _Location(
    "ABSOLUTEBOT_CONFIG_DIR", "APPDATA", ("AppData", "Roaming"), "XDG_CONFIG_HOME", (".config",)
)
_DATA = _Location(
    "ABSOLUTEBOT_DATA_DIR", "LOCALAPPDATA", ("AppData", "Local"), "XDG_DATA_HOME", (".local", "share")
)


def _app_dir(location: _Location) -> Path:
    override = os.environ.get(location.override)
    if override:
        return Path(override).expanduser()

    home = Path.home()
    if sys.platform == "win32":
        base = os.environ.get(location.windows_env) or home.joinpath(*location.windows_default)
    elif sys.platform == "darwin":
        # config and databases share one folder on macOS
        base = home / "Library" / "Application Support"
    else:
        base = os.environ.get(location.xdg_env) or home.joinpath(*location.xdg_default)
    return Path(base) / APP_DIR_NAME


def get_config_dir() -> Path:
    """Directory searched for ``config.yaml``."""
    return _app_dir(_CONFIG)


def get_data_dir() -> Path:
    """Directory holding the ``*.db`` stores."""
    return _app_dir(_DATA)
