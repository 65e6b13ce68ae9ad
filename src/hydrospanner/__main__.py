"""
Command line front end.

  python -m hydrospanner status                      # config, active profile, captured LST files
  python -m hydrospanner apply                       # apply the active profile
  python -m hydrospanner revert                      # revert the active profile and restore LST files
  python -m hydrospanner switch "My Profile"         # switch profiles (name or id)
  python -m hydrospanner restore-lst                 # restore every captured LST file
  python -m hydrospanner merge-lst BASE.LST MOD.LST [-o OUT.LST]
  python -m hydrospanner cleanup-backups [--keep N]  # prune per-file backups

Global options: --config PATH (default: ~/.config/XvTHydrospanner/config.json), -v.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

from hydrospanner.app_log import set_app_log
from hydrospanner.applicator import ModApplicator
from hydrospanner.backup_registry import BaseLstRegistry
from hydrospanner.config import AppConfig, load_config, save_config, validate_config
from hydrospanner.config_paths import get_config_path
from hydrospanner.lst import merge_lst, read_lst, write_lst
from hydrospanner.models import ModProfile
from hydrospanner.profile_switch import ProfileOperator
from hydrospanner.profiles import ProfileStore
from hydrospanner.warehouse import Warehouse


@dataclass
class _Context:
    config: AppConfig
    config_path: Path
    warehouse: Warehouse
    profiles: ProfileStore
    registry: BaseLstRegistry
    applicator: ModApplicator
    operator: ProfileOperator


def _fail(message: str) -> int:
    print(f"Error: {message}", file=sys.stderr)
    return 1


def _build_context(config_path: Path) -> _Context:
    config = load_config(config_path)
    ok, errors = validate_config(config)
    if not ok:
        raise SystemExit(_fail("; ".join(errors)))

    game_root = Path(config.game_install_path)
    backup_root = Path(config.backup_path)
    warehouse = Warehouse(Path(config.warehouse_path))
    warehouse.load()
    profiles = ProfileStore(Path(config.profiles_path))
    profiles.load_all()
    profiles.ensure_base_profile()
    registry = BaseLstRegistry(game_root, backup_root)
    applicator = ModApplicator(game_root, backup_root, warehouse, registry=registry)
    operator = ProfileOperator(applicator, registry)
    return _Context(config, config_path, warehouse, profiles, registry, applicator, operator)


def _find_profile(ctx: _Context, key: str) -> ModProfile | None:
    return ctx.profiles.get(key) or ctx.profiles.find_by_name(key)


def _report(action: str, succeeded: int, failed: int) -> int:
    print(f"{action}: {succeeded} succeeded, {failed} failed")
    return 1 if failed else 0


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def _cmd_status(ctx: _Context, args: argparse.Namespace) -> int:
    active = ctx.profiles.get_active()
    print(f"Game install:   {ctx.config.game_install_path}")
    print(f"Active profile: {active.name if active else '(none)'}")
    print("Profiles:")
    for profile in ctx.profiles.get_all():
        applied = sum(1 for m in profile.file_modifications if m.is_applied)
        flags = " [read-only]" if profile.is_read_only else ""
        marker = "*" if profile.is_active else " "
        print(f"  {marker} {profile.name}{flags}: "
              f"{applied}/{len(profile.file_modifications)} applied")
    paths = ctx.registry.paths
    print(f"Captured base LST files: {len(paths)}")
    for rel in paths:
        print(f"    {rel}")
    return 0


def _cmd_apply(ctx: _Context, args: argparse.Namespace) -> int:
    active = ctx.profiles.get_active()
    if active is None:
        return _fail("no active profile; use 'switch' first")
    if active.is_read_only:
        return _fail(f"profile {active.name} is read-only")
    # already applied modifications stay as they are; 'switch' rebuilds from scratch
    succeeded, failed = ctx.operator.apply_profile(
        active, ctx.config.auto_backup, skip_applied=True)
    ctx.profiles.save(active)
    return _report("Apply", succeeded, failed)


def _cmd_revert(ctx: _Context, args: argparse.Namespace) -> int:
    active = ctx.profiles.get_active()
    succeeded, failed = ctx.operator.revert_to_base(active)
    if active is not None:
        ctx.profiles.save(active)
    return _report("Revert", succeeded, failed)


def _cmd_switch(ctx: _Context, args: argparse.Namespace) -> int:
    new_profile = _find_profile(ctx, args.profile)
    if new_profile is None:
        return _fail(f"profile not found: {args.profile}")
    old_profile = ctx.profiles.get_active()

    succeeded, failed = ctx.operator.switch_profile(
        old_profile, new_profile, ctx.config.auto_backup)

    if old_profile is not None and old_profile.id != new_profile.id:
        ctx.profiles.save(old_profile)
    ctx.profiles.save(new_profile)
    ctx.profiles.set_active(new_profile.id)
    ctx.config.active_profile_id = new_profile.id
    save_config(ctx.config, ctx.config_path)
    return _report(f"Switch to {new_profile.name}", succeeded, failed)


def _cmd_restore_lst(ctx: _Context, args: argparse.Namespace) -> int:
    restored = ctx.registry.restore_all()
    missing = len(ctx.registry.paths) - restored
    print(f"Restored {restored} base LST file(s)")
    return 1 if missing else 0


def _cmd_cleanup_backups(ctx: _Context, args: argparse.Namespace) -> int:
    keep = args.keep if args.keep is not None else ctx.config.max_backup_versions
    removed = 0
    for profile in ctx.profiles.get_all():
        for mod in profile.file_modifications:
            removed += ctx.applicator.cleanup_old_backups(mod.id, keep)
    print(f"Removed {removed} old backup(s)")
    return 0


def _cmd_merge_lst(args: argparse.Namespace) -> int:
    base_path = args.base.resolve()
    incoming_path = args.incoming.resolve()
    for p in (base_path, incoming_path):
        if not p.is_file():
            return _fail(f"not a file: {p}")
    merged, added = merge_lst(read_lst(base_path), read_lst(incoming_path))
    out = args.output.resolve() if args.output else base_path
    write_lst(out, merged)
    print(f"Merged {added} mission(s) into {out}")
    return 0


_COMMANDS = {
    "status": _cmd_status,
    "apply": _cmd_apply,
    "revert": _cmd_revert,
    "switch": _cmd_switch,
    "restore-lst": _cmd_restore_lst,
    "cleanup-backups": _cmd_cleanup_backups,
}


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="hydrospanner",
        description="Apply, revert and switch X-Wing vs. TIE Fighter mod profiles.",
    )
    ap.add_argument("--config", type=Path, default=None,
                    help="Path to config.json (default: user config directory)")
    ap.add_argument("-v", "--verbose", action="store_true", help="Print progress messages")
    sub = ap.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="Show configuration, profiles and captured LST files")
    sub.add_parser("apply", help="Apply the active profile")
    sub.add_parser("revert", help="Revert the active profile and restore base LST files")
    sw = sub.add_parser("switch", help="Switch to another profile")
    sw.add_argument("profile", help="Profile name or id")
    sub.add_parser("restore-lst", help="Restore every captured base LST file")
    cb = sub.add_parser("cleanup-backups", help="Keep only the newest per-file backups")
    cb.add_argument("--keep", type=int, default=None,
                    help="Versions to keep per modification (default: from config)")
    ml = sub.add_parser("merge-lst", help="Merge one LST file into another")
    ml.add_argument("base", type=Path, help="LST file to merge into")
    ml.add_argument("incoming", type=Path, help="LST file whose missions are added")
    ml.add_argument("-o", "--output", type=Path, default=None,
                    help="Write the result here instead of overwriting BASE")
    return ap


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if args.verbose:
        set_app_log(print)

    if args.command == "merge-lst":
        return _cmd_merge_lst(args)

    config_path = args.config.resolve() if args.config else get_config_path()
    ctx = _build_context(config_path)
    return _COMMANDS[args.command](ctx, args)


if __name__ == "__main__":
    sys.exit(main())
