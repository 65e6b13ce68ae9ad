"""
config_paths.py
Central helpers for resolving user-writable config and data directories.

Follows the XDG Base Directory Specification:
  Config lives in $XDG_CONFIG_HOME/XvTHydrospanner  (default: ~/.config/XvTHydrospanner)
  Data (warehouse, profiles, backups) lives in $XDG_DATA_HOME/XvTHydrospanner
  (default: ~/.local/share/XvTHydrospanner)

$HYDROSPANNER_CONFIG_DIR overrides the config directory (tests, portable installs).
"""

import os
from pathlib import Path

APP_NAME = "XvTHydrospanner"


def get_config_dir() -> Path:
    """Return the app config directory, creating it if it doesn't exist."""
    env = os.environ.get("HYDROSPANNER_CONFIG_DIR")
    if env:
        config_dir = Path(env)
    else:
        xdg = os.environ.get("XDG_CONFIG_HOME")
        base = Path(xdg) if xdg else Path.home() / ".config"
        config_dir = base / APP_NAME
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_config_path() -> Path:
    """Return the path to config.json in the config directory."""
    return get_config_dir() / "config.json"


def get_data_dir() -> Path:
    """Return the default root for warehouse, profiles and backups.

    Not created here; the services that use a sub-directory create it.
    """
    xdg = os.environ.get("XDG_DATA_HOME")
    base = Path(xdg) if xdg else Path.home() / ".local" / "share"
    return base / APP_NAME
