"""
categories.py
Game folder layout for X-Wing vs. TIE Fighter / Balance of Power.

Decides where a file from a mod archive belongs in the game install and
which ModCategory it falls under, from the folder names in its archive path
and, failing that, its extension.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePosixPath

from hydrospanner.models import ModCategory

BOP_PREFIX = "BalanceOfPower/"


@dataclass
class GameFileCategory:
    name: str
    relative_path: str
    description: str
    file_extensions: list[str] = field(default_factory=list)


def default_categories() -> list[GameFileCategory]:
    """The game's mod-relevant directories."""
    mission = [".LST", ".TIE"]
    return [
        GameFileCategory("Battle Missions", "Battle", "Battle mode mission files", mission),
        GameFileCategory("Combat Missions", "Combat", "Single combat mission files", mission),
        GameFileCategory("Balance of Power - Battle", "BalanceOfPower/BATTLE",
                         "Balance of Power expansion battle missions", mission),
        GameFileCategory("Balance of Power - Campaign", "BalanceOfPower/CAMPAIGN",
                         "Balance of Power campaign missions", mission),
        GameFileCategory("Balance of Power - Training", "BalanceOfPower/TRAIN",
                         "Balance of Power training missions", mission),
        GameFileCategory("Balance of Power - Melee", "BalanceOfPower/MELEE",
                         "Balance of Power melee missions", mission),
        GameFileCategory("Balance of Power - Tournament", "BalanceOfPower/TOURN",
                         "Balance of Power tournament missions", mission),
        GameFileCategory("Graphics - 320x200", "cp320",
                         "Graphics and cockpit files for 320x200 resolution", [".LFD", ".INT", ".PNL"]),
        GameFileCategory("Graphics - 640x480", "cp640",
                         "Graphics and cockpit files for 640x480 resolution", [".LFD", ".INT", ".PNL"]),
        GameFileCategory("Movies - A", "Amovie", "Movie files (A series)", [".WRK"]),
        GameFileCategory("Movies - B", "Bmovie", "Movie files (B series)", [".WRK"]),
        GameFileCategory("Music", "Music", "Music files", [".VOC", ".WAV"]),
        GameFileCategory("Sound Effects", "wave", "Sound effect files", [".WAV", ".VOC"]),
        GameFileCategory("Resources", "resource", "Game resource files", [".LFD"]),
        GameFileCategory("Configuration", "", "Game configuration files", [".CFG", ".TXT"]),
    ]


# Archive folder name (upper case) -> (target directory, category).
# Order matters: the first known folder found in an archive path wins.
_KNOWN_FOLDERS: dict[str, tuple[str, ModCategory]] = {
    "BATTLE":     ("BalanceOfPower/BATTLE",   ModCategory.BATTLE),
    "COMBAT":     ("Combat",                  ModCategory.MISSION),
    "TRAIN":      ("BalanceOfPower/TRAIN",    ModCategory.TRAINING),
    "TRAINING":   ("BalanceOfPower/TRAIN",    ModCategory.TRAINING),
    "MELEE":      ("BalanceOfPower/MELEE",    ModCategory.MELEE),
    "CAMPAIGN":   ("BalanceOfPower/CAMPAIGN", ModCategory.CAMPAIGN),
    "TOURN":      ("BalanceOfPower/TOURN",    ModCategory.TOURNAMENT),
    "TOURNAMENT": ("BalanceOfPower/TOURN",    ModCategory.TOURNAMENT),
    "CP320":      ("cp320",                   ModCategory.GRAPHICS),
    "CP640":      ("cp640",                   ModCategory.GRAPHICS),
    "AMOVIE":     ("Amovie",                  ModCategory.GRAPHICS),
    "BMOVIE":     ("Bmovie",                  ModCategory.GRAPHICS),
    "MUSIC":      ("Music",                   ModCategory.MUSIC),
    "WAVE":       ("wave",                    ModCategory.SOUND),
    "RESOURCE":   ("resource",                ModCategory.RESOURCE),
}

_EXTENSION_CATEGORY: dict[str, ModCategory] = {
    ".TIE": ModCategory.MISSION,
    ".LST": ModCategory.BATTLE,
    ".LFD": ModCategory.RESOURCE,
    ".WAV": ModCategory.SOUND,
    ".VOC": ModCategory.SOUND,
    ".WRK": ModCategory.GRAPHICS,
    ".CFG": ModCategory.CONFIGURATION,
    ".TXT": ModCategory.CONFIGURATION,
}

_EXTENSION_TARGET_DIR: dict[str, str] = {
    ".TIE": "BalanceOfPower/BATTLE",
    ".LST": "BalanceOfPower/BATTLE",
    ".LFD": "BalanceOfPower",
    ".WAV": "wave",
    ".VOC": "wave",
    ".WRK": "Amovie",
}

# Substring checks on an upper-cased target path, first match wins
_PATH_MARKERS: list[tuple[str, ModCategory]] = [
    ("/BATTLE/", ModCategory.BATTLE),
    ("COMBAT/", ModCategory.MISSION),
    ("/TRAIN/", ModCategory.TRAINING),
    ("/MELEE/", ModCategory.MELEE),
    ("/CAMPAIGN/", ModCategory.CAMPAIGN),
    ("/TOURN/", ModCategory.TOURNAMENT),
    ("CP320/", ModCategory.GRAPHICS),
    ("CP640/", ModCategory.GRAPHICS),
    ("AMOVIE/", ModCategory.GRAPHICS),
    ("BMOVIE/", ModCategory.GRAPHICS),
    ("MUSIC/", ModCategory.MUSIC),
    ("WAVE/", ModCategory.SOUND),
    ("RESOURCE/", ModCategory.RESOURCE),
]


def _ext(file_name: str) -> str:
    return PurePosixPath(file_name.replace("\\", "/")).suffix.upper()


def category_for_extension(extension: str) -> ModCategory:
    return _EXTENSION_CATEGORY.get(extension.upper(), ModCategory.OTHER)


def category_from_path(target_path: str) -> ModCategory:
    """Category for a game-relative target path."""
    upper = target_path.replace("\\", "/").upper()
    for marker, category in _PATH_MARKERS:
        if marker in upper:
            return category
    return category_for_extension(_ext(target_path))


def known_folder(archive_path: str) -> str | None:
    """Return the first known game folder (upper case) in archive_path."""
    parts = [p.upper() for p in archive_path.replace("\\", "/").split("/")]
    for folder in _KNOWN_FOLDERS:
        if folder in parts:
            return folder
    return None


def determine_target(archive_path: str, file_name: str) -> tuple[ModCategory, str]:
    """Return (category, target_relative_path) for a file found in an archive.

    archive_path : the file's path inside the archive (any separator)
    file_name    : the bare file name
    """
    folder = known_folder(archive_path)
    if folder is not None:
        target_dir, category = _KNOWN_FOLDERS[folder]
        return category, f"{target_dir}/{file_name}"

    ext = _ext(file_name)
    target_dir = _EXTENSION_TARGET_DIR.get(ext)
    target = f"{target_dir}/{file_name}" if target_dir else file_name
    return category_for_extension(ext), target


def game_root_twin(target_path: str) -> str | None:
    """'BalanceOfPower/X/f.tie' -> 'X/f.tie'; None for paths outside BalanceOfPower."""
    normalized = target_path.replace("\\", "/")
    if normalized.lower().startswith(BOP_PREFIX.lower()):
        return normalized[len(BOP_PREFIX):]
    return None


def files_without_folder_structure(archive_paths: list[str]) -> list[str]:
    """File names whose archive path holds no known game folder.

    These need the user to pick a location before they can be added.
    """
    result = []
    for path in archive_paths:
        name = PurePosixPath(path.replace("\\", "/")).name
        if name and known_folder(path) is None:
            result.append(name)
    return result
