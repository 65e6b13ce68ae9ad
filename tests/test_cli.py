"""Tests for the command line front end."""

from __future__ import annotations

from pathlib import Path

import pytest

from hydrospanner.__main__ import main
from hydrospanner.config import AppConfig, load_config, save_config
from hydrospanner.lst import read_lst
from hydrospanner.models import ModCategory
from hydrospanner.profiles import ProfileStore
from hydrospanner.warehouse import Warehouse

from conftest import MELEE_LST, lst_text


@pytest.fixture
def config_path(tmp_path: Path, game_root: Path) -> Path:
    path = tmp_path / "config.json"
    data = tmp_path / "data"
    save_config(AppConfig(
        game_install_path=str(game_root),
        warehouse_path=str(data / "Warehouse"),
        profiles_path=str(data / "Profiles"),
        backup_path=str(data / "Backups"),
    ), path)
    return path


@pytest.fixture
def melee_profile(tmp_path: Path, config_path: Path):
    """A profile named "Melee" holding one LST merge."""
    config = load_config(config_path)
    warehouse = Warehouse(Path(config.warehouse_path))
    warehouse.load()
    src = tmp_path / "MELEE.LST"
    src.write_bytes(lst_text(("Custom", [("1", "c1.tie", "C")])).encode("latin-1"))
    wf = warehouse.add_file(src, "Custom melee", "", ModCategory.MELEE, MELEE_LST)

    store = ProfileStore(Path(config.profiles_path))
    store.load_all()
    profile = store.create("Melee")
    store.add_modification(profile, wf)
    return profile


class TestMergeLst:
    """Test the standalone merge command."""

    def test_merge_to_output(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Test merging two files into a third."""
        base = tmp_path / "A.LST"
        base.write_bytes(lst_text(("A", [("1", "a.tie", "A")])).encode("latin-1"))
        incoming = tmp_path / "B.LST"
        incoming.write_bytes(lst_text(("B", [("1", "b.tie", "B")])).encode("latin-1"))
        out = tmp_path / "OUT.LST"

        assert main(["merge-lst", str(base), str(incoming), "-o", str(out)]) == 0
        assert [s.header for s in read_lst(out).sections] == ["A", "B"]
        assert read_lst(base).mission_count() == 1
        assert "Merged 1 mission(s)" in capsys.readouterr().out

    def test_missing_input(self, tmp_path: Path) -> None:
        """Test a missing input file exits with status 1."""
        assert main(["merge-lst", str(tmp_path / "x.LST"), str(tmp_path / "y.LST")]) == 1


class TestProfileCommands:
    """Test commands that work on the configured installation."""

    def test_status(self, config_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Test status lists the base profile."""
        assert main(["--config", str(config_path), "status"]) == 0
        out = capsys.readouterr().out
        assert "Base Game Install [read-only]" in out
        assert "Captured base LST files: 0" in out

    def test_switch_and_revert(self, config_path: Path, game_root: Path, melee_profile) -> None:
        """Test switch applies the profile and revert restores the base install."""
        original = (game_root / MELEE_LST).read_bytes()

        assert main(["--config", str(config_path), "switch", "melee"]) == 0
        assert load_config(config_path).active_profile_id == melee_profile.id
        assert [s.header for s in read_lst(game_root / MELEE_LST).sections] == ["Base Melee", "Custom"]

        assert main(["--config", str(config_path), "revert"]) == 0
        assert (game_root / MELEE_LST).read_bytes() == original

        assert main(["--config", str(config_path), "apply"]) == 0
        assert read_lst(game_root / MELEE_LST).mission_count() == 2
        assert main(["--config", str(config_path), "restore-lst"]) == 0
        assert (game_root / MELEE_LST).read_bytes() == original

    def test_apply_after_switch_keeps_original_backup(
            self, tmp_path: Path, config_path: Path, game_root: Path) -> None:
        """Test apply on an applied profile does not lose the original file."""
        battle = game_root / "BalanceOfPower" / "BATTLE" / "b1.tie"
        original = battle.read_bytes()
        config = load_config(config_path)
        warehouse = Warehouse(Path(config.warehouse_path))
        warehouse.load()
        src = tmp_path / "b1.tie"
        src.write_bytes(b"modded battle one")
        wf = warehouse.add_file(src, "Battle one", "", ModCategory.BATTLE,
                                "BalanceOfPower/BATTLE/b1.tie")
        store = ProfileStore(Path(config.profiles_path))
        store.load_all()
        store.add_modification(store.create("Battle"), wf)

        assert main(["--config", str(config_path), "switch", "Battle"]) == 0
        assert battle.read_bytes() == b"modded battle one"
        assert main(["--config", str(config_path), "apply"]) == 0
        assert battle.read_bytes() == b"modded battle one"
        assert main(["--config", str(config_path), "revert"]) == 0
        assert battle.read_bytes() == original

    def test_switch_unknown_profile(self, config_path: Path) -> None:
        """Test an unknown profile name exits with status 1."""
        assert main(["--config", str(config_path), "switch", "nope"]) == 1

    def test_apply_without_active(self, config_path: Path) -> None:
        """Test apply needs an active profile."""
        assert main(["--config", str(config_path), "apply"]) == 1

    def test_invalid_config(self, tmp_path: Path) -> None:
        """Test a config pointing at a missing install exits with status 1."""
        path = tmp_path / "bad.json"
        save_config(AppConfig(game_install_path=str(tmp_path / "missing"),
                              warehouse_path="w", profiles_path="p", backup_path="b"), path)
        with pytest.raises(SystemExit) as info:
            main(["--config", str(path), "status"])
        assert info.value.code == 1
