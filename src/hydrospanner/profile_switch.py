"""
profile_switch.py
Apply, revert and switch whole mod profiles.

Switch workflow (the only safe order; merging is additive, so LST content
from the old profile can only be removed by restore-then-remerge):
  1. revert_profile(old)     puts back the old profile's regular files
  2. registry.restore_all()  returns every LST file to its pristine state
  3. apply_profile(new)      regular files first, then fresh LST merges

Profile-level calls return (succeeded, failed) tallies and never raise for
per-file failures.  Nothing is rolled back on partial failure.  The caller
persists the mutated profiles afterwards.
"""

from __future__ import annotations

from hydrospanner.app_log import LogFn, make_log_fn
from hydrospanner.applicator import ModApplicator
from hydrospanner.backup_registry import BaseLstRegistry
from hydrospanner.models import FileModification, ModProfile


class ProfileOperator:
    def __init__(
        self,
        applicator: ModApplicator,
        registry: BaseLstRegistry | None = None,
        log_fn: LogFn | None = None,
    ):
        self._applicator = applicator
        self._registry = registry or applicator.registry
        self._log = make_log_fn(log_fn)

    def _partition(self, mods: list[FileModification]) -> tuple[list[FileModification], list[FileModification]]:
        """Split into (regular, lst), keeping profile order within each."""
        regular, lst = [], []
        for mod in mods:
            (lst if self._applicator.is_lst_modification(mod) else regular).append(mod)
        return regular, lst

    def apply_profile(
        self,
        profile: ModProfile,
        create_backup: bool = True,
        skip_applied: bool = False,
    ) -> tuple[int, int]:
        """Apply every modification: regular files first, then LST merges.

        skip_applied leaves modifications already marked applied alone.
        Re-applying one would back up the mod's own bytes over the record of
        the original file.
        """
        if profile.is_read_only:
            self._log(f"Warning: profile {profile.name} is read-only; nothing applied")
            return 0, 0

        self._log(f"Applying profile: {profile.name}")
        mods = profile.file_modifications
        if skip_applied:
            mods = [m for m in mods if not m.is_applied]
            if len(mods) < len(profile.file_modifications):
                self._log(f"Skipping {len(profile.file_modifications) - len(mods)} "
                          f"already applied modification(s)")
        regular, lst = self._partition(mods)
        succeeded = failed = 0

        self._log(f"Applying {len(regular)} regular file(s)...")
        for mod in regular:
            if self._applicator.apply_modification(mod, create_backup):
                succeeded += 1
            else:
                failed += 1

        # LST merges last so lists never reference mission files not yet copied
        self._log(f"Applying {len(lst)} LST file(s)...")
        for mod in lst:
            if self._applicator.apply_modification(mod, create_backup):
                succeeded += 1
            else:
                failed += 1

        self._log(f"Profile applied: {succeeded} succeeded, {failed} failed")
        return succeeded, failed

    def revert_profile(self, profile: ModProfile) -> tuple[int, int]:
        """Revert the applied regular files of profile.

        Applied LST modifications are only marked unapplied; their content
        goes away with the next restore_all().  Regular files are reverted in
        reverse application order so that stacked overwrites of one path
        unwind back to the original file.
        """
        self._log(f"Reverting profile: {profile.name}")
        applied = [m for m in profile.file_modifications if m.is_applied]
        regular, lst = self._partition(applied)
        succeeded = failed = 0

        for mod in lst:
            mod.is_applied = False

        for mod in reversed(regular):
            if self._applicator.revert_modification(mod):
                succeeded += 1
            else:
                failed += 1

        self._log(f"Profile reverted: {succeeded} succeeded, {failed} failed")
        return succeeded, failed

    def revert_to_base(self, profile: ModProfile | None) -> tuple[int, int]:
        """Full revert: profile's regular files, then every LST file."""
        result = self.revert_profile(profile) if profile is not None else (0, 0)
        self._registry.restore_all()
        return result

    def switch_profile(
        self,
        old_profile: ModProfile | None,
        new_profile: ModProfile,
        create_backup: bool = True,
    ) -> tuple[int, int]:
        """Move the install from old_profile to new_profile.

        Switching to a read-only profile (the base install) stops after the
        LST restore and returns (0, 0).
        """
        self._log(f"Switching to profile: {new_profile.name}")

        if old_profile is not None:
            self._log("Step 1: Reverting previous profile's regular files...")
            self.revert_profile(old_profile)

        self._log("Step 2: Restoring base LST files to clean state...")
        self._registry.restore_all()

        if new_profile.is_read_only:
            self._log("Profile switch complete (base install, nothing to apply)")
            return 0, 0

        self._log("Step 3: Applying new profile...")
        result = self.apply_profile(new_profile, create_backup)
        self._log("Profile switch complete!")
        return result
