"""Shared fixtures: a fake game install, a warehouse and an engine wired to them."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from hydrospanner.app_log import set_app_log
from hydrospanner.applicator import ModApplicator
from hydrospanner.backup_registry import BaseLstRegistry
from hydrospanner.models import FileModification, ModCategory, WarehouseFile
from hydrospanner.profile_switch import ProfileOperator
from hydrospanner.warehouse import Warehouse

MELEE_LST = "BalanceOfPower/MELEE/MELEE.LST"


def lst_text(*sections: tuple[str, list[tuple[str, str, str]]], newline: str = "\r\n") -> str:
    """Build LST file text from (header, [(id, file, name), ...]) tuples."""
    lines: list[str] = []
    for header, missions in sections:
        lines.append(header)
        lines.append("//")
        for mission in missions:
            lines.extend(mission)
        lines.append("//")
    return newline.join(lines) + newline


@pytest.fixture(autouse=True)
def _quiet_app_log():
    """Detach any sink a test (or the CLI) registered."""
    yield
    set_app_log(None)


@pytest.fixture
def messages() -> list[str]:
    return []


@pytest.fixture
def log_fn(messages: list[str]) -> Callable[[str], None]:
    return messages.append


@pytest.fixture
def game_root(tmp_path: Path) -> Path:
    root = tmp_path / "game"
    (root / "BalanceOfPower" / "MELEE").mkdir(parents=True)
    (root / "BalanceOfPower" / "BATTLE").mkdir(parents=True)
    (root / "BalanceOfPower" / "MELEE" / "MELEE.LST").write_bytes(
        lst_text(("Base Melee", [("1", "m1.tie", "Base One")])).encode("latin-1"))
    (root / "BalanceOfPower" / "BATTLE" / "b1.tie").write_bytes(b"original battle one")
    return root


@pytest.fixture
def backup_root(tmp_path: Path) -> Path:
    return tmp_path / "backups"


@pytest.fixture
def warehouse(tmp_path: Path, log_fn) -> Warehouse:
    wh = Warehouse(tmp_path / "warehouse", log_fn=log_fn)
    wh.load()
    return wh


@pytest.fixture
def registry(game_root: Path, backup_root: Path, log_fn) -> BaseLstRegistry:
    return BaseLstRegistry(game_root, backup_root, log_fn=log_fn)


@pytest.fixture
def applicator(game_root, backup_root, warehouse, registry, log_fn) -> ModApplicator:
    return ModApplicator(game_root, backup_root, warehouse, registry=registry, log_fn=log_fn)


@pytest.fixture
def operator(applicator, registry, log_fn) -> ProfileOperator:
    return ProfileOperator(applicator, registry, log_fn=log_fn)


@pytest.fixture
def add_mod(tmp_path: Path, warehouse: Warehouse):
    """Store content in the warehouse and return a FileModification targeting target."""
    src_dir = tmp_path / "sources"
    src_dir.mkdir()
    counter = {"n": 0}

    def _add(file_name: str, content: bytes | str, target: str) -> FileModification:
        counter["n"] += 1
        folder = src_dir / str(counter["n"])
        folder.mkdir()
        src = folder / file_name
        if isinstance(content, str):
            content = content.encode("latin-1")
        src.write_bytes(content)
        wf: WarehouseFile = warehouse.add_file(
            src, Path(file_name).stem, "", ModCategory.OTHER, target)
        return FileModification(relative_game_path=target, warehouse_file_id=wf.id,
                                category=wf.category)

    return _add
