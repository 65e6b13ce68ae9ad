"""
remote.py
Browse and download mod files from the shared GitHub mod repository.

The repository publishes a catalog.json at its root:

    {
      "Version": "1.0",
      "RepositoryUrl": "...",
      "Files":    [ {WarehouseFile fields..., "DownloadUrl": "...", "Sha": "..."} ],
      "Packages": [ {ModPackage fields..., "DownloadUrl": "...", "Sha": "..."} ]
    }

Downloaded files go straight into the local Warehouse.  Publishing to the
repository is not handled here.

Usage
-----
    remote = RemoteWarehouse(warehouse)
    catalog = remote.load_catalog()
    wf = remote.download_file(catalog.files[0])
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

import requests

from hydrospanner.app_log import LogFn, make_log_fn
from hydrospanner.models import ModCategory, ModPackage, WarehouseFile
from hydrospanner.warehouse import Warehouse

log = logging.getLogger(__name__)

DEFAULT_OWNER = "RahlForge"
DEFAULT_REPO = "XvTHydrospanner-Mods"
DEFAULT_BRANCH = "main"
USER_AGENT = "XvTHydrospanner-ModManager"

# Streaming chunk size for downloads (256 KB)
_CHUNK_SIZE = 256 * 1024


class RemoteWarehouseError(Exception):
    """Raised when the remote catalog or a remote file cannot be fetched."""
    def __init__(self, message: str, url: str = ""):
        super().__init__(message)
        self.url = url


@dataclass
class RemoteWarehouseFile:
    file: WarehouseFile
    download_url: str = ""
    sha: str | None = None
    is_downloaded: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "RemoteWarehouseFile":
        return cls(
            file=WarehouseFile.from_dict(data),
            download_url=str(data.get("DownloadUrl") or ""),
            sha=data.get("Sha"),
        )


@dataclass
class RemoteModPackage:
    package: ModPackage
    download_url: str = ""
    sha: str | None = None
    is_downloaded: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "RemoteModPackage":
        return cls(
            package=ModPackage.from_dict(data),
            download_url=str(data.get("DownloadUrl") or ""),
            sha=data.get("Sha"),
        )


@dataclass
class RemoteCatalog:
    version: str = "1.0"
    repository_url: str = ""
    files: list[RemoteWarehouseFile] = field(default_factory=list)
    packages: list[RemoteModPackage] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "RemoteCatalog":
        return cls(
            version=str(data.get("Version") or "1.0"),
            repository_url=str(data.get("RepositoryUrl") or ""),
            files=[RemoteWarehouseFile.from_dict(d)
                   for d in data.get("Files") or [] if isinstance(d, dict)],
            packages=[RemoteModPackage.from_dict(d)
                      for d in data.get("Packages") or [] if isinstance(d, dict)],
        )


class RemoteWarehouse:
    """
    Client for the remote mod repository.

    Parameters
    ----------
    warehouse : Warehouse
        Local warehouse that receives downloads.
    owner, repo, branch : str | None
        GitHub repository coordinates; defaults to the shared community repo.
    session : requests.Session | None
        Injected for tests; a new session is created otherwise.
    timeout : float
        Request timeout in seconds.
    """

    def __init__(
        self,
        warehouse: Warehouse,
        owner: str | None = None,
        repo: str | None = None,
        branch: str | None = None,
        session: requests.Session | None = None,
        timeout: float = 30.0,
        log_fn: LogFn | None = None,
    ):
        self._warehouse = warehouse
        self.owner = owner or DEFAULT_OWNER
        self.repo = repo or DEFAULT_REPO
        self.branch = branch or DEFAULT_BRANCH
        self._timeout = timeout
        self._log = make_log_fn(log_fn)
        self._catalog: RemoteCatalog | None = None
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": USER_AGENT})

    @property
    def catalog_url(self) -> str:
        return (f"https://raw.githubusercontent.com/"
                f"{self.owner}/{self.repo}/{self.branch}/catalog.json")

    @property
    def catalog(self) -> RemoteCatalog | None:
        return self._catalog

    # -- catalog ------------------------------------------------------------

    def load_catalog(self) -> RemoteCatalog:
        """Fetch catalog.json and mark entries already in the local warehouse."""
        url = self.catalog_url
        self._log("Fetching remote catalog...")
        try:
            resp = self._session.get(url, timeout=self._timeout)
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as e:
            raise RemoteWarehouseError(f"Failed to load remote catalog: {e}", url) from e
        except ValueError as e:
            raise RemoteWarehouseError(f"Remote catalog is not valid JSON: {e}", url) from e
        if not isinstance(data, dict):
            raise RemoteWarehouseError("Remote catalog is not a JSON object", url)

        self._catalog = RemoteCatalog.from_dict(data)
        self.refresh_download_status()
        self._log(f"Loaded {len(self._catalog.files)} files and "
                  f"{len(self._catalog.packages)} packages")
        return self._catalog

    def refresh_download_status(self) -> None:
        """Recompute is_downloaded (same name and version present locally)."""
        if self._catalog is None:
            return
        local_files = {(f.name, f.version) for f in self._warehouse.get_all_files()}
        local_packages = {(p.name, p.version) for p in self._warehouse.get_all_packages()}
        for rf in self._catalog.files:
            rf.is_downloaded = (rf.file.name, rf.file.version) in local_files
        for rp in self._catalog.packages:
            rp.is_downloaded = (rp.package.name, rp.package.version) in local_packages

    def search_files(self, term: str) -> list[RemoteWarehouseFile]:
        if self._catalog is None:
            return []
        term = term.lower()
        return [
            rf for rf in self._catalog.files
            if term in rf.file.name.lower()
            or term in rf.file.description.lower()
            or term in (rf.file.author or "").lower()
        ]

    def files_by_category(self, category: ModCategory) -> list[RemoteWarehouseFile]:
        if self._catalog is None:
            return []
        return [rf for rf in self._catalog.files if rf.file.category is category]

    def available_files(self) -> list[RemoteWarehouseFile]:
        """Remote files not yet in the local warehouse."""
        if self._catalog is None:
            return []
        return [rf for rf in self._catalog.files if not rf.is_downloaded]

    # -- downloads ----------------------------------------------------------

    def download_file(self, remote_file: RemoteWarehouseFile) -> WarehouseFile:
        """Download one remote file into the local warehouse."""
        url = remote_file.download_url
        if not url:
            raise RemoteWarehouseError("Remote file has no download URL")

        meta = remote_file.file
        file_name = Path((meta.original_file_name or url).replace("\\", "/")).name
        self._log(f"Downloading {meta.name or file_name}...")

        tmp_dir = Path(tempfile.mkdtemp(prefix="hydrospanner_"))
        tmp_path = tmp_dir / file_name
        try:
            try:
                with self._session.get(url, stream=True, timeout=self._timeout) as resp:
                    resp.raise_for_status()
                    with tmp_path.open("wb") as f:
                        for chunk in resp.iter_content(chunk_size=_CHUNK_SIZE):
                            if chunk:
                                f.write(chunk)
            except requests.RequestException as e:
                raise RemoteWarehouseError(f"Failed to download file: {e}", url) from e

            local = self._warehouse.add_file(
                tmp_path,
                meta.name or tmp_path.stem,
                meta.description,
                meta.category,
                meta.target_relative_path,
                author=meta.author,
                version=meta.version,
                tags=meta.tags,
            )
        finally:
            tmp_path.unlink(missing_ok=True)
            try:
                os.rmdir(tmp_dir)
            except OSError:
                pass

        remote_file.is_downloaded = True
        self._log(f"Downloaded {local.name}")
        return local
