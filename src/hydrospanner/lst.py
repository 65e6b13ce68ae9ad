"""
lst.py
Read, merge and write XvT mission list (.LST) files.

Format (blocks, blank lines between blocks are ignored):

  //                  <- optional marker before the first header
  Header text         <- section header, shown as a group in the game's menus
  //                  <- optional marker after the header
  1                   <- mission id
  MISSION1.TIE        <- mission file name
  Mission Name        <- display name
  ...                 <- more id / file / name triples
  //                  <- end of section

Headers are multiplayer-significant: every player needs the same list, so a
merge never duplicates or drops a header.  Missions are identified by file
name (case-insensitive) across the whole document, not per section.

Files are read and written as Latin-1 so every byte survives a round trip.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

MARKER = "//"
_ENCODING = "latin-1"


@dataclass
class Mission:
    id: str
    filename: str
    name: str

    @property
    def key(self) -> str:
        return self.filename.lower()


@dataclass
class Section:
    header: str
    missions: list[Mission] = field(default_factory=list)

    @property
    def key(self) -> str:
        return self.header.lower()


@dataclass
class LstDocument:
    sections: list[Section] = field(default_factory=list)

    def find_section(self, header: str) -> Section | None:
        """Return the section whose header matches case-insensitively."""
        wanted = header.lower()
        for section in self.sections:
            if section.key == wanted:
                return section
        return None

    def filenames(self) -> set[str]:
        """Lowercased mission file names present anywhere in the document."""
        return {m.key for s in self.sections for m in s.missions}

    def mission_count(self) -> int:
        return sum(len(s.missions) for s in self.sections)


# ---------------------------------------------------------------------------
# Parse / render
# ---------------------------------------------------------------------------

def parse_lst(lines: Iterable[str]) -> LstDocument:
    """Parse LST lines into sections.

    Trailing partial mission groups (one or two leftover lines) are dropped,
    and sections that end up with no missions are left out.
    """
    stripped = [line.strip() for line in lines]
    total = len(stripped)
    sections: list[Section] = []
    i = 0

    while i < total:
        # Find the header, skipping blank lines and stray markers
        while i < total and (not stripped[i] or stripped[i] == MARKER):
            i += 1
        if i >= total:
            break
        header = stripped[i]
        i += 1

        while i < total and not stripped[i]:
            i += 1
        if i < total and stripped[i] == MARKER:
            i += 1

        body: list[str] = []
        while i < total and stripped[i] != MARKER:
            if stripped[i]:
                body.append(stripped[i])
            i += 1
        i += 1  # closing marker (or past the end)

        usable = len(body) - len(body) % 3
        missions = [
            Mission(id=body[n], filename=body[n + 1], name=body[n + 2])
            for n in range(0, usable, 3)
        ]
        if missions:
            sections.append(Section(header=header, missions=missions))

    return LstDocument(sections=sections)


def render_lst(document: LstDocument) -> list[str]:
    """Render a document back to lines (no line terminators)."""
    lines: list[str] = []
    for section in document.sections:
        lines.append(section.header)
        lines.append(MARKER)
        for mission in section.missions:
            lines.extend((mission.id, mission.filename, mission.name))
        lines.append(MARKER)
    return lines


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------

def merge_lst(base: LstDocument, incoming: LstDocument) -> tuple[LstDocument, int]:
    """Merge incoming's missions into a copy of base.

    Missions whose file name already appears anywhere in the result are
    skipped.  Missions under a known header are appended to that section in
    their original order; unknown headers become new trailing sections.

    Returns (merged_document, missions_added).  base is left untouched.
    """
    merged = copy.deepcopy(base)
    seen = merged.filenames()
    added = 0

    for incoming_section in incoming.sections:
        fresh: list[Mission] = []
        for mission in incoming_section.missions:
            if mission.key in seen:
                continue
            seen.add(mission.key)
            fresh.append(copy.copy(mission))
        if not fresh:
            continue

        target = merged.find_section(incoming_section.header)
        if target is None:
            merged.sections.append(Section(header=incoming_section.header, missions=fresh))
        else:
            target.missions.extend(fresh)
        added += len(fresh)

    return merged, added


# ---------------------------------------------------------------------------
# File helpers
# ---------------------------------------------------------------------------

def _detect_newline(raw: str) -> str:
    return "\r\n" if "\r\n" in raw else "\n"


def _read_raw(path: Path) -> str:
    # newline="" keeps \r\n intact so the line ending style can be detected
    with path.open(encoding=_ENCODING, newline="") as f:
        return f.read()


def read_lst(path: Path) -> LstDocument:
    """Parse the LST file at path."""
    return parse_lst(_read_raw(path).splitlines())


def write_lst(path: Path, document: LstDocument, newline: str = "\r\n") -> None:
    """Write document to path, creating parent directories if needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = render_lst(document)
    text = newline.join(lines) + (newline if lines else "")
    with path.open("w", encoding=_ENCODING, newline="") as f:
        f.write(text)


def merge_lst_files(target: Path, incoming: Path) -> int:
    """Merge the LST at incoming into the LST at target, in place.

    The target keeps its line ending style.  Returns the number of missions
    added; the target is rewritten even when nothing was added so the file
    is always in canonical form after a merge.
    """
    raw = _read_raw(target)
    base = parse_lst(raw.splitlines())
    merged, added = merge_lst(base, read_lst(incoming))
    write_lst(target, merged, newline=_detect_newline(raw))
    return added
