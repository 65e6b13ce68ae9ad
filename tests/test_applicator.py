"""Tests for applying and reverting single modifications."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

import hydrospanner.applicator as applicator_module
from hydrospanner.applicator import ModApplicator
from hydrospanner.lst import read_lst
from hydrospanner.models import FileModification

from conftest import MELEE_LST, lst_text

BATTLE_TIE = "BalanceOfPower/BATTLE/b1.tie"


class TestRegularFiles:
    """Test overwrite-style modifications."""

    def test_apply_then_revert_restores_bytes(self, applicator: ModApplicator, add_mod, game_root: Path) -> None:
        """Test apply copies the mod and revert restores the original exactly."""
        live = game_root / BATTLE_TIE
        original = live.read_bytes()
        mod = add_mod("b1.tie", b"modded battle", BATTLE_TIE)

        assert applicator.apply_modification(mod) is True
        assert mod.is_applied
        assert live.read_bytes() == b"modded battle"
        assert mod.backup_path and Path(mod.backup_path).is_file()
        assert Path(mod.backup_path).name.startswith(f"{mod.id}_")

        assert applicator.revert_modification(mod) is True
        assert not mod.is_applied
        assert live.read_bytes() == original

    def test_new_file_removed_on_revert(self, applicator: ModApplicator, add_mod, game_root: Path) -> None:
        """Test a file that did not exist before is deleted on revert."""
        mod = add_mod("new.tie", b"new mission", "BalanceOfPower/BATTLE/new.tie")
        assert applicator.apply_modification(mod) is True
        assert mod.backup_path is None
        assert (game_root / "BalanceOfPower" / "BATTLE" / "new.tie").is_file()

        assert applicator.revert_modification(mod) is True
        assert not (game_root / "BalanceOfPower" / "BATTLE" / "new.tie").exists()

    def test_no_backup_when_disabled(self, applicator: ModApplicator, add_mod, backup_root: Path) -> None:
        """Test create_backup=False skips the per-file backup."""
        mod = add_mod("b1.tie", b"x", BATTLE_TIE)
        assert applicator.apply_modification(mod, create_backup=False) is True
        assert mod.backup_path is None

    def test_parent_directories_created(self, applicator: ModApplicator, add_mod, game_root: Path) -> None:
        """Test missing target directories are created."""
        mod = add_mod("x.wav", b"snd", "wave/sub/x.wav")
        assert applicator.apply_modification(mod) is True
        assert (game_root / "wave" / "sub" / "x.wav").read_bytes() == b"snd"

    def test_case_insensitive_target(self, applicator: ModApplicator, add_mod, game_root: Path) -> None:
        """Test a differently cased target overwrites the existing file."""
        mod = add_mod("b1.tie", b"modded", "balanceofpower/battle/B1.TIE")
        assert applicator.apply_modification(mod) is True
        assert (game_root / BATTLE_TIE).read_bytes() == b"modded"
        assert sorted(p.name for p in (game_root / "BalanceOfPower" / "BATTLE").iterdir()) == ["b1.tie"]

    def test_revert_without_anything_fails(self, applicator: ModApplicator, add_mod) -> None:
        """Test reverting when neither backup nor target exists reports failure."""
        mod = add_mod("gone.tie", b"x", "Combat/gone.tie")
        assert applicator.revert_modification(mod) is False


class TestFailures:
    """Test that per-file failures are reported, not raised."""

    def test_unknown_warehouse_id(self, applicator: ModApplicator, messages: list[str]) -> None:
        """Test a dangling warehouse ID gives False and a log line."""
        mod = FileModification(relative_game_path="x.tie", warehouse_file_id="nope")
        assert applicator.apply_modification(mod) is False
        assert not mod.is_applied
        assert any("not found" in m for m in messages)

    def test_missing_storage_file(self, applicator: ModApplicator, add_mod, warehouse) -> None:
        """Test a warehouse entry whose stored copy vanished gives False."""
        mod = add_mod("b1.tie", b"x", BATTLE_TIE)
        os.remove(warehouse.get_file(mod.warehouse_file_id).storage_path)
        assert applicator.apply_modification(mod) is False
        assert not mod.is_applied

    def test_path_traversal_blocked(self, applicator: ModApplicator, add_mod, game_root: Path) -> None:
        """Test a target outside the game root is refused."""
        mod = add_mod("evil.txt", b"x", "../evil.txt")
        assert applicator.apply_modification(mod) is False
        assert not (game_root.parent / "evil.txt").exists()


class TestLstFiles:
    """Test merge-style modifications."""

    def test_merge_into_existing(self, applicator: ModApplicator, add_mod, game_root: Path) -> None:
        """Test an LST mod is merged and the pristine file captured."""
        original = (game_root / MELEE_LST).read_bytes()
        mod = add_mod("MELEE.LST", lst_text(("Custom", [("1", "c1.tie", "Custom One")])), MELEE_LST)

        assert applicator.apply_modification(mod) is True
        doc = read_lst(game_root / MELEE_LST)
        assert [s.header for s in doc.sections] == ["Base Melee", "Custom"]
        assert applicator.registry.backup_path_for(MELEE_LST).read_bytes() == original
        assert mod.backup_path is None

    def test_second_apply_adds_nothing(self, applicator: ModApplicator, add_mod, game_root: Path) -> None:
        """Test applying the same LST mod twice leaves the file unchanged."""
        mod = add_mod("MELEE.LST", lst_text(("Base Melee", [("2", "m2.tie", "Two")])), MELEE_LST)
        applicator.apply_modification(mod)
        once = (game_root / MELEE_LST).read_bytes()
        assert applicator.apply_modification(mod) is True
        assert (game_root / MELEE_LST).read_bytes() == once
        assert read_lst(game_root / MELEE_LST).mission_count() == 2

    def test_copy_when_target_missing(self, applicator: ModApplicator, add_mod, game_root: Path) -> None:
        """Test an LST without a live counterpart is copied and not registered."""
        text = lst_text(("Tourney", [("1", "t.tie", "T")]))
        mod = add_mod("TOURN.LST", text, "BalanceOfPower/TOURN/TOURN.LST")
        assert applicator.apply_modification(mod) is True
        assert (game_root / "BalanceOfPower" / "TOURN" / "TOURN.LST").read_bytes() == text.encode("latin-1")
        assert not applicator.registry.is_registered("BalanceOfPower/TOURN/TOURN.LST")

    def test_revert_refused(self, applicator: ModApplicator, add_mod, game_root: Path, messages: list[str]) -> None:
        """Test LST modifications cannot be reverted one by one."""
        mod = add_mod("MELEE.LST", lst_text(("X", [("1", "x.tie", "X")])), MELEE_LST)
        applicator.apply_modification(mod)
        merged = (game_root / MELEE_LST).read_bytes()
        assert applicator.revert_modification(mod) is False
        assert mod.is_applied
        assert (game_root / MELEE_LST).read_bytes() == merged
        assert any("as a set" in m for m in messages)

    def test_revert_refused_without_warehouse_record(
            self, applicator: ModApplicator, add_mod, warehouse, game_root: Path) -> None:
        """Test an LST mod whose warehouse entry is gone is still refused, not deleted."""
        mod = add_mod("MELEE.LST", lst_text(("X", [("1", "x.tie", "X")])), MELEE_LST)
        applicator.apply_modification(mod)
        warehouse.remove_file(mod.warehouse_file_id)

        assert applicator.is_lst_modification(mod)
        assert applicator.revert_modification(mod) is False
        assert (game_root / MELEE_LST).is_file()

    def test_is_lst_modification(self, applicator: ModApplicator, add_mod) -> None:
        """Test LST detection goes by the warehouse file's extension."""
        assert applicator.is_lst_modification(add_mod("a.lst", "H\n//\n", MELEE_LST))
        assert not applicator.is_lst_modification(add_mod("a.tie", b"x", BATTLE_TIE))
        assert not applicator.is_lst_modification(FileModification(warehouse_file_id="missing"))


class TestMaintenance:
    """Test backup housekeeping and verification."""

    def test_cleanup_old_backups(self, applicator: ModApplicator, backup_root: Path) -> None:
        """Test only the newest versions are kept."""
        names = [f"mod1_2024010{d}_120000_b1.tie" for d in range(1, 8)]
        for name in names:
            (backup_root / name).write_bytes(b"x")
        (backup_root / "mod10_20240101_120000_b1.tie").write_bytes(b"other mod")

        assert applicator.cleanup_old_backups("mod1", 5) == 2
        kept = sorted(p.name for p in applicator.list_backups("mod1"))
        assert kept == sorted(names[2:])
        assert (backup_root / "mod10_20240101_120000_b1.tie").exists()

    def test_backups_in_same_second_kept(
            self, applicator: ModApplicator, game_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test two backups of one modification within a second both survive."""
        monkeypatch.setattr(applicator_module, "_timestamp_str", lambda: "20240101_120000")
        live = game_root / BATTLE_TIE
        first = applicator.create_backup(live, "mod1")
        live.write_bytes(b"second content")
        second = applicator.create_backup(live, "mod1")

        assert first != second
        assert first.read_bytes() == b"original battle one"
        assert second.read_bytes() == b"second content"
        assert len(applicator.list_backups("mod1")) == 2

    def test_list_backups_newest_first(self, applicator: ModApplicator, backup_root: Path) -> None:
        """Test backups are ordered by the timestamp in their name."""
        (backup_root / "m_20230101_000000_f.tie").write_bytes(b"a")
        (backup_root / "m_20250101_000000_f.tie").write_bytes(b"b")
        assert [p.name for p in applicator.list_backups("m")] == [
            "m_20250101_000000_f.tie", "m_20230101_000000_f.tie"]

    def test_verify_file(self, applicator: ModApplicator, add_mod, game_root: Path) -> None:
        """Test verification compares live and warehouse bytes."""
        mod = add_mod("b1.tie", b"modded", BATTLE_TIE)
        assert applicator.verify_file(mod) is False
        applicator.apply_modification(mod)
        assert applicator.verify_file(mod) is True
        (game_root / BATTLE_TIE).write_bytes(b"tampered")
        assert applicator.verify_file(mod) is False
