"""
path_resolver.py
Case-insensitive resolution of game-relative paths.

Mod archives and older installs disagree on directory casing
("BalanceOfPower/MELEE" vs "BalanceOfPower/Melee").  On a case-sensitive
file system the nominal path from a modification may not exist even though
the directory does, so every component is matched against the real
directory entries instead.
"""

from __future__ import annotations

from pathlib import Path

NocaseCache = dict[Path, dict[str, Path]]


def split_rel(rel_str: str) -> list[str]:
    """Split a relative path on either separator, dropping empty and '.' parts."""
    return [p for p in rel_str.replace("\\", "/").split("/") if p and p != "."]


def normalize_rel(rel_str: str) -> str:
    """Return rel_str with forward slashes and no empty components."""
    return "/".join(split_rel(rel_str))


def _listing(directory: Path, cache: NocaseCache) -> dict[str, Path] | None:
    listing = cache.get(directory)
    if listing is None:
        try:
            listing = {e.name.lower(): e for e in directory.iterdir()}
        except OSError:
            return None
        cache[directory] = listing
    return listing


def resolve_case(root: Path, rel_str: str, cache: NocaseCache | None = None) -> Path:
    """Resolve rel_str under root, substituting on-disk casing where it differs.

    If the nominal path exists it is returned unchanged.  Otherwise each
    component is looked up case-insensitively in its parent directory; when
    the parent does not exist or has no match, the nominal component is
    kept so that files which don't exist yet still get a sensible path.

    cache maps directory Paths to {lowercase_name: entry}.  Pass the same
    dict across calls to avoid re-scanning directories; drop it after the
    tree changes.
    """
    nominal = root.joinpath(*split_rel(rel_str))
    if nominal.exists():
        return nominal

    if cache is None:
        cache = {}
    current = root
    parent_exists = root.is_dir()
    for part in split_rel(rel_str):
        matched = None
        if parent_exists:
            listing = _listing(current, cache)
            if listing is not None:
                matched = listing.get(part.lower())
        if matched is None:
            current = current / part
            parent_exists = False
        else:
            current = matched
            parent_exists = matched.is_dir()
    return current


def is_under_root(path: Path, root: Path) -> bool:
    """Return True if path resolves to a location under root (no path traversal)."""
    try:
        path.resolve().relative_to(root.resolve())
        return True
    except ValueError:
        return False
