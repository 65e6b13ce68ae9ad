"""
config.py
Application configuration stored as JSON (see config_paths.get_config_path).

load_config() never fails on a bad file: unreadable JSON is logged and the
defaults are used, the same as a first start.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, fields
from pathlib import Path

from hydrospanner.config_paths import get_config_path, get_data_dir

log = logging.getLogger(__name__)

DEFAULT_GAME_INSTALL_PATH = str(Path.home() / "GOG Games" / "Star Wars - XvT")


# JSON key -> AppConfig attribute, matching the Windows tool's config.json
_CONFIG_KEYS: dict[str, str] = {
    "GameInstallPath":        "game_install_path",
    "WarehousePath":          "warehouse_path",
    "ProfilesPath":           "profiles_path",
    "BackupPath":             "backup_path",
    "ActiveProfileId":        "active_profile_id",
    "AutoBackup":             "auto_backup",
    "ConfirmBeforeApply":     "confirm_before_apply",
    "MaxBackupVersions":      "max_backup_versions",
    "LastImportDirectory":    "last_import_directory",
    "RemoteRepositoryOwner":  "remote_repository_owner",
    "RemoteRepositoryName":   "remote_repository_name",
    "RemoteRepositoryBranch": "remote_repository_branch",
}


@dataclass
class AppConfig:
    game_install_path: str = ""
    warehouse_path: str = ""
    profiles_path: str = ""
    backup_path: str = ""
    active_profile_id: str | None = None
    auto_backup: bool = True            # per-file backups before overwriting
    confirm_before_apply: bool = True
    max_backup_versions: int = 5        # kept per modification by cleanup
    last_import_directory: str | None = None
    remote_repository_owner: str | None = None
    remote_repository_name: str | None = None
    remote_repository_branch: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "AppConfig":
        """Build from PascalCase keys (as written by the Windows tool).

        snake_case attribute names are accepted too; unknown keys such as
        the Windows tool's "Theme" are ignored.
        """
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known}
        for key, attr in _CONFIG_KEYS.items():
            if key in data:
                kwargs[attr] = data[key]
        return cls(**kwargs)

    def to_dict(self) -> dict:
        return {key: getattr(self, attr) for key, attr in _CONFIG_KEYS.items()}


def default_config() -> AppConfig:
    data_dir = get_data_dir()
    return AppConfig(
        game_install_path=DEFAULT_GAME_INSTALL_PATH,
        warehouse_path=str(data_dir / "Warehouse"),
        profiles_path=str(data_dir / "Profiles"),
        backup_path=str(data_dir / "Backups"),
    )


def save_config(config: AppConfig, path: Path | None = None) -> None:
    path = Path(path) if path else get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config.to_dict(), indent=2), encoding="utf-8")


def load_config(path: Path | None = None) -> AppConfig:
    """Read the config file, writing the defaults first if it does not exist."""
    path = Path(path) if path else get_config_path()
    if not path.is_file():
        config = default_config()
        save_config(config, path)
        return config
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("config file does not hold an object")
        return AppConfig.from_dict(data)
    except (OSError, ValueError, TypeError) as e:
        log.error("Error loading config %s: %s", path, e)
        return default_config()


def validate_config(config: AppConfig) -> tuple[bool, list[str]]:
    """Return (is_valid, errors) for the paths the engine needs."""
    errors: list[str] = []
    if not config.game_install_path.strip():
        errors.append("Game install path is not set")
    elif not Path(config.game_install_path).is_dir():
        errors.append("Game install path does not exist")
    if not config.warehouse_path.strip():
        errors.append("Warehouse path is not set")
    if not config.profiles_path.strip():
        errors.append("Profiles path is not set")
    if not config.backup_path.strip():
        errors.append("Backup path is not set")
    if config.max_backup_versions < 1:
        errors.append("Max backup versions must be at least 1")
    return not errors, errors
