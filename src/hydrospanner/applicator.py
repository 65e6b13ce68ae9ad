"""
applicator.py
Apply and revert single file modifications against the live game install.

Two kinds of target are handled differently:

  LST files  : merged, never overwritten.  The pristine file is captured by
               the BaseLstRegistry the first time any mod touches it; after
               that a merge can only be undone by restoring the whole file
               (see ProfileOperator.switch_profile).
  other files: copied over the target.  With create_backup the previous
               content is kept as

                   <backup_root>/<modification id>_<YYYYmmdd_HHMMSS>_<file name>

               and copied back by revert_modification().

apply_modification() and revert_modification() never raise for I/O errors:
failures are reported through log_fn and returned as False.
"""

from __future__ import annotations

import logging
import re
import shutil
from datetime import datetime
from pathlib import Path
from typing import Protocol

from hydrospanner.app_log import LogFn, make_log_fn
from hydrospanner.backup_registry import BaseLstRegistry
from hydrospanner.lst import merge_lst_files
from hydrospanner.models import FileModification, WarehouseFile, is_lst_name
from hydrospanner.path_resolver import is_under_root, resolve_case

log = logging.getLogger(__name__)

_TIMESTAMP_FMT = "%Y%m%d_%H%M%S"
_BACKUP_NAME_PATTERN = re.compile(r"^(?P<mod>.+?)_(?P<ts>\d{8}_\d{6})_(?P<name>.+)$")
DEFAULT_MAX_BACKUP_VERSIONS = 5


class WarehouseLookup(Protocol):
    def get_file(self, file_id: str) -> WarehouseFile | None: ...


def _timestamp_str() -> str:
    return datetime.now().strftime(_TIMESTAMP_FMT)


def _parse_backup_timestamp(name: str) -> datetime | None:
    m = _BACKUP_NAME_PATTERN.match(name)
    if m is None:
        return None
    try:
        return datetime.strptime(m.group("ts"), _TIMESTAMP_FMT)
    except ValueError:
        return None


class ModApplicator:
    """
    Applies FileModifications to one game installation.

    Parameters
    ----------
    game_root : Path
        The live game install directory.
    backup_root : Path
        Directory for per-file backups (and, by default, the base LST registry).
    warehouse : WarehouseLookup
        Anything with get_file(id) -> WarehouseFile | None.
    registry : BaseLstRegistry | None
        Pristine LST registry; one is created under backup_root when omitted.
    log_fn : callable | None
        Progress sink; defaults to the global app log.
    """

    def __init__(
        self,
        game_root: Path,
        backup_root: Path,
        warehouse: WarehouseLookup,
        registry: BaseLstRegistry | None = None,
        log_fn: LogFn | None = None,
    ):
        self._game_root = Path(game_root)
        self._backup_root = Path(backup_root)
        self._warehouse = warehouse
        self._log = make_log_fn(log_fn)
        self._backup_root.mkdir(parents=True, exist_ok=True)
        self._registry = registry or BaseLstRegistry(self._game_root, self._backup_root, log_fn=log_fn)

    @property
    def registry(self) -> BaseLstRegistry:
        return self._registry

    @property
    def game_root(self) -> Path:
        return self._game_root

    @property
    def backup_root(self) -> Path:
        return self._backup_root

    # -- helpers ------------------------------------------------------------

    def is_lst_modification(self, modification: FileModification) -> bool:
        """True when the modification's warehouse file is an LST file.

        When the warehouse record is gone the target path decides, so a
        merged list file is never treated as an overwrite and deleted.
        """
        wf = self._warehouse.get_file(modification.warehouse_file_id)
        if wf is None:
            return is_lst_name(modification.relative_game_path)
        return wf.is_lst

    def _target_path(self, modification: FileModification) -> Path | None:
        target = resolve_case(self._game_root, modification.relative_game_path)
        if not is_under_root(target, self._game_root):
            self._log(f"SKIP: path traversal blocked: {modification.relative_game_path}")
            return None
        return target

    def create_backup(self, file_path: Path, modification_id: str) -> Path:
        """Copy file_path into the backup root under a timestamped name.

        An existing backup with the same name (same second) is never
        overwritten; a counter is added to the file name instead.
        """
        stamp = f"{modification_id}_{_timestamp_str()}"
        backup = self._backup_root / f"{stamp}_{file_path.name}"
        n = 1
        while backup.exists():
            backup = self._backup_root / f"{stamp}_{n}_{file_path.name}"
            n += 1
        shutil.copyfile(file_path, backup)
        self._log(f"Backup: {file_path.name} -> {backup.name}")
        return backup

    # -- apply / revert -----------------------------------------------------

    def apply_modification(self, modification: FileModification, create_backup: bool = True) -> bool:
        """Overlay one modification onto the game install. Returns success."""
        wf = self._warehouse.get_file(modification.warehouse_file_id)
        if wf is None:
            log.warning("Warehouse file %s not found", modification.warehouse_file_id)
            self._log(f"Error applying modification: warehouse file "
                      f"{modification.warehouse_file_id} not found")
            return False

        target = self._target_path(modification)
        if target is None:
            return False
        source = Path(wf.storage_path)

        try:
            if not source.is_file():
                raise FileNotFoundError(f"Warehouse file missing on disk: {source}")
            target.parent.mkdir(parents=True, exist_ok=True)

            if wf.is_lst:
                self._log(f"Processing LST file: {modification.relative_game_path}")
                self._registry.ensure_base_backup(modification.relative_game_path)
                if target.is_file():
                    added = merge_lst_files(target, source)
                    self._log(f"Merged {added} mission(s) from {wf.original_file_name} "
                              f"into {target.name}")
                else:
                    self._log(f"Copying new LST file: {wf.original_file_name}")
                    shutil.copyfile(source, target)
            else:
                if create_backup and target.is_file():
                    modification.backup_path = str(self.create_backup(target, modification.id))
                shutil.copyfile(source, target)
        except OSError as e:
            log.error("Applying %s failed: %s", modification.relative_game_path, e)
            self._log(f"Error applying modification {modification.relative_game_path}: {e}")
            return False

        modification.is_applied = True
        self._log(f"Applied: {modification.relative_game_path}")
        return True

    def revert_modification(self, modification: FileModification) -> bool:
        """Undo one non-LST modification. LST modifications are refused."""
        if self.is_lst_modification(modification):
            self._log("Warning: LST files should be restored as a set, not individually")
            return False

        target = self._target_path(modification)
        if target is None:
            return False

        try:
            backup = Path(modification.backup_path) if modification.backup_path else None
            if backup is not None and backup.is_file():
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(backup, target)
                self._log(f"Restored {modification.relative_game_path} from {backup.name}")
            elif target.is_file():
                # Nothing was there before the mod
                target.unlink()
                self._log(f"Removed {modification.relative_game_path}")
            else:
                return False
        except OSError as e:
            log.error("Reverting %s failed: %s", modification.relative_game_path, e)
            self._log(f"Error reverting modification {modification.relative_game_path}: {e}")
            return False

        modification.is_applied = False
        return True

    # -- maintenance --------------------------------------------------------

    def list_backups(self, modification_id: str) -> list[Path]:
        """Per-file backups of a modification, newest first."""
        prefix = f"{modification_id}_"
        found = []
        for p in self._backup_root.iterdir():
            if not (p.is_file() and p.name.startswith(prefix)):
                continue
            m = _BACKUP_NAME_PATTERN.match(p.name)
            if m is None or m.group("mod") != modification_id:
                continue
            found.append(p)

        def sort_key(p: Path):
            ts = _parse_backup_timestamp(p.name) or datetime.min
            return ts, p.stat().st_mtime

        found.sort(key=sort_key, reverse=True)
        return found

    def cleanup_old_backups(self, modification_id: str,
                            max_versions: int = DEFAULT_MAX_BACKUP_VERSIONS) -> int:
        """Delete all but the newest max_versions backups. Returns the number deleted."""
        removed = 0
        for old in self.list_backups(modification_id)[max(max_versions, 0):]:
            try:
                old.unlink()
                removed += 1
            except OSError as e:
                log.warning("Could not delete backup %s: %s", old, e)
        if removed:
            self._log(f"Backup: removed {removed} old version(s) for {modification_id}")
        return removed

    def verify_file(self, modification: FileModification) -> bool:
        """True when the live target is byte-identical to the warehouse file."""
        wf = self._warehouse.get_file(modification.warehouse_file_id)
        if wf is None:
            return False
        target = resolve_case(self._game_root, modification.relative_game_path)
        try:
            return target.read_bytes() == Path(wf.storage_path).read_bytes()
        except OSError:
            return False
