"""
warehouse.py
Local store of mod files, looked up by ID.

Layout of the warehouse directory:
  catalog.json     list of WarehouseFile records
  packages.json    list of ModPackage records
  <id><ext>        stored copy of every added file

The engine only ever calls get_file(); everything else here serves the
front ends that fill the warehouse.
"""

from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path

from hydrospanner.app_log import LogFn, make_log_fn
from hydrospanner.categories import category_from_path, determine_target, game_root_twin
from hydrospanner.models import ModCategory, ModPackage, WarehouseFile

log = logging.getLogger(__name__)

CATALOG_NAME = "catalog.json"
PACKAGES_NAME = "packages.json"


class WarehouseError(Exception):
    """Raised for unknown file / package IDs and other catalog misuse."""


def _read_json_list(path: Path, what: str) -> list[dict]:
    if not path.is_file():
        return []
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        log.error("Error loading %s %s: %s", what, path, e)
        return []
    if not isinstance(data, list):
        log.error("Error loading %s %s: expected a list", what, path)
        return []
    return [d for d in data if isinstance(d, dict)]


def _write_json_list(path: Path, items: list) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps([i.to_dict() for i in items], indent=2)
    tmp = path.with_suffix(".tmp")
    tmp.write_text(payload, encoding="utf-8")
    tmp.replace(path)


class Warehouse:
    """
    Catalog of mod files stored under warehouse_dir.

    Parameters
    ----------
    warehouse_dir : Path
        Directory holding catalog.json, packages.json and the stored files.
    log_fn : callable | None
        Progress sink; defaults to the global app log.
    """

    def __init__(self, warehouse_dir: Path, log_fn: LogFn | None = None):
        self._dir = Path(warehouse_dir)
        self._catalog_path = self._dir / CATALOG_NAME
        self._packages_path = self._dir / PACKAGES_NAME
        self._log = make_log_fn(log_fn)
        self._files: list[WarehouseFile] = []
        self._packages: list[ModPackage] = []
        self._dir.mkdir(parents=True, exist_ok=True)

    @property
    def directory(self) -> Path:
        return self._dir

    # -- persistence --------------------------------------------------------

    def load(self) -> None:
        """Load catalog.json and packages.json. Missing or bad files give empty lists."""
        self._files = [WarehouseFile.from_dict(d)
                       for d in _read_json_list(self._catalog_path, "warehouse catalog")]
        self._packages = [ModPackage.from_dict(d)
                          for d in _read_json_list(self._packages_path, "mod packages")]

    def _save_catalog(self) -> None:
        _write_json_list(self._catalog_path, self._files)

    def _save_packages(self) -> None:
        _write_json_list(self._packages_path, self._packages)

    # -- files --------------------------------------------------------------

    def add_file(
        self,
        source: Path,
        name: str,
        description: str,
        category: ModCategory,
        target_relative_path: str,
        author: str | None = None,
        version: str | None = None,
        tags: list[str] | None = None,
    ) -> WarehouseFile:
        """Copy source into the warehouse and register it.

        Raises FileNotFoundError if source does not exist.
        """
        source = Path(source)
        if not source.is_file():
            raise FileNotFoundError(f"Source file not found: {source}")

        wf = WarehouseFile(
            name=name,
            description=description,
            original_file_name=source.name,
            file_extension=source.suffix,
            category=category,
            target_relative_path=target_relative_path.replace("\\", "/"),
            file_size_bytes=source.stat().st_size,
            author=author,
            version=version,
            tags=list(tags or []),
        )
        storage = self._dir / f"{wf.id}{wf.file_extension}"
        shutil.copyfile(source, storage)
        wf.storage_path = str(storage)

        self._files.append(wf)
        self._save_catalog()
        self._log(f"Added to warehouse: {wf.original_file_name} -> {wf.target_relative_path}")
        return wf

    def remove_file(self, file_id: str) -> None:
        wf = self.get_file(file_id)
        if wf is None:
            raise WarehouseError(f"File {file_id} not found in warehouse")
        Path(wf.storage_path).unlink(missing_ok=True)
        self._files.remove(wf)
        self._save_catalog()
        self._log(f"Removed from warehouse: {wf.original_file_name}")

    def update_file(self, updated: WarehouseFile) -> None:
        """Replace the catalog record with the same ID."""
        for idx, wf in enumerate(self._files):
            if wf.id == updated.id:
                self._files[idx] = updated
                self._save_catalog()
                return
        raise WarehouseError(f"File {updated.id} not found in warehouse")

    def get_file(self, file_id: str) -> WarehouseFile | None:
        for wf in self._files:
            if wf.id == file_id:
                return wf
        return None

    def get_all_files(self) -> list[WarehouseFile]:
        """Snapshot of the catalog."""
        return list(self._files)

    def get_files_by_category(self, category: ModCategory) -> list[WarehouseFile]:
        return [wf for wf in self._files if wf.category is category]

    def search_by_tag(self, tag: str) -> list[WarehouseFile]:
        wanted = tag.lower()
        return [wf for wf in self._files if any(t.lower() == wanted for t in wf.tags)]

    def search(self, term: str) -> list[WarehouseFile]:
        """Case-insensitive substring search over name, description and file name."""
        term = term.lower()
        return [
            wf for wf in self._files
            if term in wf.name.lower()
            or term in wf.description.lower()
            or term in wf.original_file_name.lower()
        ]

    def export_file(self, file_id: str, destination: Path) -> None:
        wf = self.get_file(file_id)
        if wf is None:
            raise WarehouseError(f"File {file_id} not found in warehouse")
        storage = Path(wf.storage_path)
        if not storage.is_file():
            raise FileNotFoundError(f"Warehouse file not found: {storage}")
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(storage, destination)

    # -- packages -----------------------------------------------------------

    def add_package_from_folder(
        self,
        folder: Path,
        name: str,
        description: str,
        author: str | None = None,
        version: str | None = None,
        tags: list[str] | None = None,
        custom_locations: dict[str, list[str]] | None = None,
        copy_to_game_root: bool = False,
    ) -> ModPackage:
        """Add every file under an extracted mod folder as one package.

        folder            : root of the extracted archive
        custom_locations  : file name -> explicit target paths, for files whose
                            archive layout holds no known game folder
        copy_to_game_root : also target the game-root twin of every
                            BalanceOfPower/... path (for installs that read
                            missions from both places)
        """
        folder = Path(folder)
        if not folder.is_dir():
            raise FileNotFoundError(f"Package folder not found: {folder}")

        package = ModPackage(
            name=name, description=description, author=author,
            version=version, tags=list(tags or []),
        )
        custom = custom_locations or {}

        for src in sorted(p for p in folder.rglob("*") if p.is_file()):
            archive_path = src.relative_to(folder).as_posix()
            if src.name in custom:
                targets = list(custom[src.name])
            else:
                _, target = determine_target(archive_path, src.name)
                targets = [target]
            if copy_to_game_root:
                targets += [t for t in (game_root_twin(x) for x in list(targets)) if t]

            for target in targets:
                wf = self.add_file(
                    src, src.stem, f"Part of {name}",
                    category_from_path(target), target,
                    author=author, version=version, tags=tags,
                )
                wf.mod_package_id = package.id
                package.file_ids.append(wf.id)

        self._packages.append(package)
        self._save_catalog()
        self._save_packages()
        self._log(f"Added package {name}: {len(package.file_ids)} file(s)")
        return package

    def get_all_packages(self) -> list[ModPackage]:
        return list(self._packages)

    def get_package(self, package_id: str) -> ModPackage | None:
        for package in self._packages:
            if package.id == package_id:
                return package
        return None

    def get_package_files(self, package_id: str) -> list[WarehouseFile]:
        package = self.get_package(package_id)
        if package is None:
            return []
        ids = set(package.file_ids)
        return [wf for wf in self._files if wf.id in ids]

    def remove_package(self, package_id: str, remove_files: bool = True) -> None:
        package = self.get_package(package_id)
        if package is None:
            raise WarehouseError(f"Package {package_id} not found")
        if remove_files:
            for file_id in list(package.file_ids):
                if self.get_file(file_id) is not None:
                    self.remove_file(file_id)
        self._packages.remove(package)
        self._save_packages()
        self._log(f"Removed package {package.name}")
