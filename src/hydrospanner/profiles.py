"""
profiles.py
Load, save and manage mod profiles.

Each profile is stored as <profiles_dir>/<profile id>.json.  At most one
profile is active.  The read-only "Base Game Install" profile stands for the
untouched installation and cannot hold modifications.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path

from hydrospanner.app_log import LogFn, make_log_fn
from hydrospanner.models import FileModification, ModProfile, WarehouseFile

log = logging.getLogger(__name__)

BASE_PROFILE_NAME = "Base Game Install"


class ProfileError(Exception):
    """Raised for unknown profiles and operations a profile does not allow."""


class ProfileStore:
    def __init__(self, profiles_dir: Path, log_fn: LogFn | None = None):
        self._dir = Path(profiles_dir)
        self._log = make_log_fn(log_fn)
        self._profiles: list[ModProfile] = []
        self._dir.mkdir(parents=True, exist_ok=True)

    def _path_for(self, profile_id: str) -> Path:
        return self._dir / f"{profile_id}.json"

    def load_all(self) -> list[ModProfile]:
        """Read every profile file; unreadable ones are logged and skipped."""
        self._profiles = []
        for path in sorted(self._dir.glob("*.json")):
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
                if not isinstance(data, dict):
                    raise ValueError("profile file does not hold an object")
                self._profiles.append(ModProfile.from_dict(data))
            except (OSError, ValueError) as e:
                log.warning("Error loading profile %s: %s", path.name, e)
        return list(self._profiles)

    def save(self, profile: ModProfile) -> None:
        profile.last_modified = datetime.now()
        path = self._path_for(profile.id)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps(profile.to_dict(), indent=2), encoding="utf-8")
        tmp.replace(path)

        for idx, existing in enumerate(self._profiles):
            if existing.id == profile.id:
                self._profiles[idx] = profile
                return
        self._profiles.append(profile)

    def create(self, name: str, description: str = "") -> ModProfile:
        profile = ModProfile(name=name, description=description)
        self.save(profile)
        self._log(f"Created profile: {name}")
        return profile

    def delete(self, profile_id: str) -> None:
        profile = self.get(profile_id)
        if profile is None:
            raise ProfileError(f"Profile {profile_id} not found")
        if profile.is_active:
            raise ProfileError("Cannot delete the active profile")
        self._path_for(profile_id).unlink(missing_ok=True)
        self._profiles.remove(profile)
        self._log(f"Deleted profile: {profile.name}")

    def get(self, profile_id: str) -> ModProfile | None:
        for profile in self._profiles:
            if profile.id == profile_id:
                return profile
        return None

    def find_by_name(self, name: str) -> ModProfile | None:
        wanted = name.lower()
        for profile in self._profiles:
            if profile.name.lower() == wanted:
                return profile
        return None

    def get_active(self) -> ModProfile | None:
        for profile in self._profiles:
            if profile.is_active:
                return profile
        return None

    def get_all(self) -> list[ModProfile]:
        return list(self._profiles)

    def set_active(self, profile_id: str) -> ModProfile:
        """Mark profile_id active and every other profile inactive."""
        new_active = self.get(profile_id)
        if new_active is None:
            raise ProfileError(f"Profile {profile_id} not found")
        for profile in self._profiles:
            if profile.is_active and profile.id != profile_id:
                profile.is_active = False
                self.save(profile)
        new_active.is_active = True
        self.save(new_active)
        return new_active

    def clone(self, source_id: str, new_name: str) -> ModProfile:
        """Copy a profile's modifications into a new, inactive profile."""
        source = self.get(source_id)
        if source is None:
            raise ProfileError(f"Profile {source_id} not found")
        clone = ModProfile(
            name=new_name,
            description=f"Cloned from {source.name}",
            file_modifications=[
                FileModification(
                    relative_game_path=m.relative_game_path,
                    warehouse_file_id=m.warehouse_file_id,
                    category=m.category,
                    description=m.description,
                )
                for m in source.file_modifications
            ],
            custom_settings=dict(source.custom_settings),
        )
        self.save(clone)
        return clone

    def ensure_base_profile(self) -> ModProfile:
        """Return the read-only base install profile, creating it if needed."""
        for profile in self._profiles:
            if profile.is_read_only:
                return profile
        base = ModProfile(
            name=BASE_PROFILE_NAME,
            description="The game as installed, without any mods",
            is_read_only=True,
        )
        self.save(base)
        return base

    # -- modifications ------------------------------------------------------

    def add_modification(
        self,
        profile: ModProfile,
        warehouse_file: WarehouseFile,
        relative_path: str | None = None,
        description: str = "",
    ) -> FileModification:
        """Append a modification for warehouse_file and save the profile.

        relative_path defaults to the warehouse file's target path.
        """
        if profile.is_read_only:
            raise ProfileError(f"Profile {profile.name} is read-only")
        mod = FileModification(
            relative_game_path=(relative_path or warehouse_file.target_relative_path).replace("\\", "/"),
            warehouse_file_id=warehouse_file.id,
            category=warehouse_file.category,
            description=description or warehouse_file.description,
        )
        profile.file_modifications.append(mod)
        self.save(profile)
        return mod

    def remove_modification(self, profile: ModProfile, modification_id: str) -> bool:
        mod = profile.find_modification(modification_id)
        if mod is None:
            return False
        profile.file_modifications.remove(mod)
        self.save(profile)
        return True
