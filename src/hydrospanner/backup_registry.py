"""
backup_registry.py
Pristine ("base") copies of every LST file a mod has ever touched.

LST files are merged, not overwritten, so the only way to take a mod's
missions back out is to restore the untouched file and merge again.  The
first time any mod touches an LST path its live content is copied to

    <backup_root>/BaseLstFiles/<relative path>

and the relative path is recorded in

    <backup_root>/BaseLstFiles/registry.txt      (one path per line, sorted)

Invariant: a path is registered iff its backup file exists.  A registered
path whose backup has gone missing is reported, never auto-repaired: the
entry is the only record that pristine content was ever captured.

Typical workflow (driven by ModApplicator / ProfileOperator):
  1. ensure_base_backup(rel)   before the first merge into rel
  2. restore_all()             before every profile switch
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from hydrospanner.app_log import LogFn, make_log_fn
from hydrospanner.path_resolver import normalize_rel, resolve_case, split_rel

log = logging.getLogger(__name__)

BASE_LST_DIR = "BaseLstFiles"
REGISTRY_NAME = "registry.txt"


class BaseLstRegistry:
    """Registry of captured pristine LST files for one game installation.

    game_root   : the live game install directory
    backup_root : the application's backup directory
    log_fn      : progress sink; defaults to the global app log
    """

    def __init__(self, game_root: Path, backup_root: Path, log_fn: LogFn | None = None):
        self._game_root = Path(game_root)
        self._base_dir = Path(backup_root) / BASE_LST_DIR
        self._registry_path = self._base_dir / REGISTRY_NAME
        self._log = make_log_fn(log_fn)
        # lowercase key -> relative path as first registered
        self._entries: dict[str, str] = {}
        self._base_dir.mkdir(parents=True, exist_ok=True)
        self._load()

    # -- persistence --------------------------------------------------------

    def _load(self) -> None:
        if not self._registry_path.is_file():
            return
        for line in self._registry_path.read_text(encoding="utf-8").splitlines():
            rel = normalize_rel(line.strip())
            if rel:
                self._entries.setdefault(rel.lower(), rel)

    def _save(self) -> None:
        lines = sorted(self._entries.values())
        tmp = self._registry_path.with_suffix(".tmp")
        tmp.write_text("\n".join(lines) + ("\n" if lines else ""), encoding="utf-8")
        tmp.replace(self._registry_path)

    # -- queries ------------------------------------------------------------

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    @property
    def registry_path(self) -> Path:
        return self._registry_path

    @property
    def paths(self) -> list[str]:
        """Sorted snapshot of the registered relative paths."""
        return sorted(self._entries.values())

    def is_registered(self, rel_str: str) -> bool:
        return normalize_rel(rel_str).lower() in self._entries

    def backup_path_for(self, rel_str: str) -> Path:
        """Where the pristine copy of rel_str lives (or would live)."""
        key = normalize_rel(rel_str)
        rel = self._entries.get(key.lower(), key)
        return self._base_dir.joinpath(*split_rel(rel))

    # -- operations ---------------------------------------------------------

    def ensure_base_backup(self, rel_str: str) -> bool:
        """Capture the pristine content of rel_str if not already captured.

        Returns True when a backup is registered after the call, False when
        the live file does not exist (nothing to protect).  A backup file left
        behind by an interrupted run is adopted as is, since the live file may
        already carry merged content.  Copy errors propagate as OSError.
        """
        rel = normalize_rel(rel_str)
        if rel.lower() in self._entries:
            return True

        source = resolve_case(self._game_root, rel)
        if not source.is_file():
            return False

        backup = self._base_dir.joinpath(*split_rel(rel))
        if backup.is_file():
            self._log(f"Adopting existing base LST backup: {rel}")
        else:
            backup.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, backup)
            self._log(f"Backed up base LST file: {rel}")

        self._entries[rel.lower()] = rel
        self._save()
        return True

    def restore(self, rel_str: str) -> bool:
        """Copy the pristine backup of rel_str back over the live file."""
        key = normalize_rel(rel_str).lower()
        rel = self._entries.get(key)
        if rel is None:
            return False

        backup = self._base_dir.joinpath(*split_rel(rel))
        if not backup.is_file():
            log.warning("Base LST backup missing for registered path %s", rel)
            self._log(f"Warning: Base LST backup not found for {rel}")
            return False

        target = resolve_case(self._game_root, rel)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(backup, target)
        except OSError as e:
            log.error("Could not restore %s: %s", rel, e)
            self._log(f"Error restoring base LST file {rel}: {e}")
            return False
        self._log(f"Restored base LST file: {rel}")
        return True

    def restore_all(self) -> int:
        """Restore every registered LST file. Returns the number restored."""
        self._log("Restoring all base LST files for clean state...")
        restored = sum(1 for rel in self.paths if self.restore(rel))
        self._log(f"Restored {restored} base LST file(s)")
        return restored

    def release(self, rel_str: str) -> bool:
        """Forget the pristine capture of rel_str and delete its backup.

        Maintenance only; profile flows never call this.  After a release the
        next ensure_base_backup() captures whatever the live file holds then.
        """
        key = normalize_rel(rel_str).lower()
        rel = self._entries.pop(key, None)
        if rel is None:
            return False
        backup = self._base_dir.joinpath(*split_rel(rel))
        backup.unlink(missing_ok=True)
        # Remove directories left empty under the backup tree
        parent = backup.parent
        while parent != self._base_dir and parent.is_relative_to(self._base_dir):
            try:
                parent.rmdir()
            except OSError:
                break
            parent = parent.parent
        self._save()
        self._log(f"Released base LST backup: {rel}")
        return True
