"""
models.py
Data model shared by the warehouse, the profile store and the engine.

Objects are persisted as JSON.  Keys use the PascalCase names written by the
original Windows tool (e.g. "RelativeGamePath") so existing catalog.json and
profile files load unchanged.  The _KEY_MAP tables map JSON keys to
attribute names; unknown keys are ignored on load, missing keys keep their
defaults.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from pathlib import PurePath

LST_EXTENSION = ".lst"


def _new_id() -> str:
    return str(uuid.uuid4())


def is_lst_name(file_name: str) -> bool:
    """True when file_name carries the list-file extension (any case)."""
    return PurePath(file_name.replace("\\", "/")).suffix.lower() == LST_EXTENSION


class ModCategory(Enum):
    MISSION       = "Mission"
    GRAPHICS      = "Graphics"
    SOUND         = "Sound"
    MUSIC         = "Music"
    CONFIGURATION = "Configuration"
    RESOURCE      = "Resource"
    CAMPAIGN      = "Campaign"
    TRAINING      = "Training"
    BATTLE        = "Battle"
    MELEE         = "Melee"
    TOURNAMENT    = "Tournament"
    OTHER         = "Other"

    @classmethod
    def parse(cls, raw) -> "ModCategory":
        """Accept a category name ("Melee"), its index (8) or a member."""
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, int):
            members = list(cls)
            return members[raw] if 0 <= raw < len(members) else cls.OTHER
        if isinstance(raw, str):
            for member in cls:
                if member.value.lower() == raw.strip().lower():
                    return member
        return cls.OTHER


# ---------------------------------------------------------------------------
# JSON helpers
# ---------------------------------------------------------------------------

def _format_dt(value: datetime) -> str:
    return value.isoformat(timespec="seconds")


def _parse_dt(raw) -> datetime:
    if isinstance(raw, str) and raw:
        try:
            # .NET writes up to 7 fractional digits; fromisoformat takes 6.
            head, _, frac = raw.partition(".")
            if frac:
                n = len(frac) - len(frac.lstrip("0123456789"))
                digits, tz = frac[:n], frac[n:]
                raw = f"{head}.{digits[:6]}{tz}"
            return datetime.fromisoformat(raw)
        except ValueError:
            pass
    return datetime.now()


def _dump(obj, key_map: dict[str, str]) -> dict:
    out: dict = {}
    for key, attr in key_map.items():
        value = getattr(obj, attr)
        if isinstance(value, datetime):
            value = _format_dt(value)
        elif isinstance(value, ModCategory):
            value = value.value
        elif isinstance(value, list):
            value = [v.to_dict() if hasattr(v, "to_dict") else v for v in value]
        elif isinstance(value, dict):
            value = dict(value)
        out[key] = value
    return out


def _load_kwargs(cls, data: dict, key_map: dict[str, str]) -> dict:
    """Translate JSON keys to constructor kwargs, dropping unknown keys."""
    known = {f.name for f in fields(cls)}
    kwargs = {}
    for key, attr in key_map.items():
        if key in data and attr in known:
            kwargs[attr] = data[key]
    return kwargs


# ---------------------------------------------------------------------------
# FileModification
# ---------------------------------------------------------------------------

_MODIFICATION_KEYS: dict[str, str] = {
    "Id":               "id",
    "RelativeGamePath": "relative_game_path",
    "WarehouseFileId":  "warehouse_file_id",
    "BackupPath":       "backup_path",
    "Category":         "category",
    "IsApplied":        "is_applied",
    "Description":      "description",
}


@dataclass
class FileModification:
    """One intended overlay of a warehouse file onto a game path."""

    relative_game_path: str = ""        # e.g. "BalanceOfPower/MELEE/MELEE.LST"
    warehouse_file_id: str = ""
    backup_path: str | None = None      # per-file backup of what was overwritten
    category: ModCategory = ModCategory.OTHER
    is_applied: bool = False
    description: str = ""
    id: str = field(default_factory=_new_id)

    def to_dict(self) -> dict:
        return _dump(self, _MODIFICATION_KEYS)

    @classmethod
    def from_dict(cls, data: dict) -> "FileModification":
        kwargs = _load_kwargs(cls, data, _MODIFICATION_KEYS)
        kwargs["category"] = ModCategory.parse(kwargs.get("category"))
        kwargs["is_applied"] = bool(kwargs.get("is_applied", False))
        return cls(**kwargs)


# ---------------------------------------------------------------------------
# ModProfile
# ---------------------------------------------------------------------------

_PROFILE_KEYS: dict[str, str] = {
    "Id":                "id",
    "Name":              "name",
    "Description":       "description",
    "CreatedDate":       "created_date",
    "LastModified":      "last_modified",
    "IsActive":          "is_active",
    "IsReadOnly":        "is_read_only",
    "FileModifications": "file_modifications",
    "CustomSettings":    "custom_settings",
}


@dataclass
class ModProfile:
    """A named, ordered set of file modifications."""

    name: str = ""
    description: str = ""
    created_date: datetime = field(default_factory=datetime.now)
    last_modified: datetime = field(default_factory=datetime.now)
    is_active: bool = False
    is_read_only: bool = False          # the untouched base install; never applied
    file_modifications: list[FileModification] = field(default_factory=list)
    custom_settings: dict[str, str] = field(default_factory=dict)
    id: str = field(default_factory=_new_id)

    def find_modification(self, mod_id: str) -> FileModification | None:
        for mod in self.file_modifications:
            if mod.id == mod_id:
                return mod
        return None

    def to_dict(self) -> dict:
        return _dump(self, _PROFILE_KEYS)

    @classmethod
    def from_dict(cls, data: dict) -> "ModProfile":
        kwargs = _load_kwargs(cls, data, _PROFILE_KEYS)
        kwargs["created_date"] = _parse_dt(kwargs.get("created_date"))
        kwargs["last_modified"] = _parse_dt(kwargs.get("last_modified"))
        kwargs["is_active"] = bool(kwargs.get("is_active", False))
        kwargs["is_read_only"] = bool(kwargs.get("is_read_only", False))
        kwargs["file_modifications"] = [
            FileModification.from_dict(m)
            for m in kwargs.get("file_modifications") or []
            if isinstance(m, dict)
        ]
        settings = kwargs.get("custom_settings")
        kwargs["custom_settings"] = dict(settings) if isinstance(settings, dict) else {}
        return cls(**kwargs)


# ---------------------------------------------------------------------------
# WarehouseFile / ModPackage
# ---------------------------------------------------------------------------

_WAREHOUSE_FILE_KEYS: dict[str, str] = {
    "Id":                 "id",
    "Name":               "name",
    "Description":        "description",
    "StoragePath":        "storage_path",
    "OriginalFileName":   "original_file_name",
    "FileExtension":      "file_extension",
    "Category":           "category",
    "TargetRelativePath": "target_relative_path",
    "FileSizeBytes":      "file_size_bytes",
    "DateAdded":          "date_added",
    "Tags":               "tags",
    "Author":             "author",
    "Version":            "version",
    "ModPackageId":       "mod_package_id",
}


@dataclass
class WarehouseFile:
    """Metadata for one mod file stored in the warehouse."""

    name: str = ""
    description: str = ""
    storage_path: str = ""              # physical copy inside the warehouse dir
    original_file_name: str = ""
    file_extension: str = ""            # e.g. ".TIE", ".LST"
    category: ModCategory = ModCategory.OTHER
    target_relative_path: str = ""
    file_size_bytes: int = 0
    date_added: datetime = field(default_factory=datetime.now)
    tags: list[str] = field(default_factory=list)
    author: str | None = None
    version: str | None = None
    mod_package_id: str | None = None
    id: str = field(default_factory=_new_id)

    @property
    def is_lst(self) -> bool:
        return is_lst_name(self.original_file_name)

    def to_dict(self) -> dict:
        return _dump(self, _WAREHOUSE_FILE_KEYS)

    @classmethod
    def from_dict(cls, data: dict) -> "WarehouseFile":
        kwargs = _load_kwargs(cls, data, _WAREHOUSE_FILE_KEYS)
        kwargs["category"] = ModCategory.parse(kwargs.get("category"))
        kwargs["date_added"] = _parse_dt(kwargs.get("date_added"))
        kwargs["file_size_bytes"] = int(kwargs.get("file_size_bytes") or 0)
        kwargs["tags"] = [str(t) for t in kwargs.get("tags") or []]
        return cls(**kwargs)


_PACKAGE_KEYS: dict[str, str] = {
    "Id":          "id",
    "Name":        "name",
    "Description": "description",
    "Author":      "author",
    "Version":     "version",
    "DateAdded":   "date_added",
    "Tags":        "tags",
    "FileIds":     "file_ids",
}


@dataclass
class ModPackage:
    """A group of warehouse files that were added together."""

    name: str = ""
    description: str = ""
    author: str | None = None
    version: str | None = None
    date_added: datetime = field(default_factory=datetime.now)
    tags: list[str] = field(default_factory=list)
    file_ids: list[str] = field(default_factory=list)
    id: str = field(default_factory=_new_id)

    def to_dict(self) -> dict:
        return _dump(self, _PACKAGE_KEYS)

    @classmethod
    def from_dict(cls, data: dict) -> "ModPackage":
        kwargs = _load_kwargs(cls, data, _PACKAGE_KEYS)
        kwargs["date_added"] = _parse_dt(kwargs.get("date_added"))
        kwargs["tags"] = [str(t) for t in kwargs.get("tags") or []]
        kwargs["file_ids"] = [str(i) for i in kwargs.get("file_ids") or []]
        return cls(**kwargs)
