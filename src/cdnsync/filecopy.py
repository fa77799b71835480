"""Selective copy of an installed package into a version directory."""

from __future__ import annotations

import shutil
from pathlib import Path

from cdnsync.models import FileSelection


def _glob_files(root: Path, patterns: list[str]) -> set[Path]:
    found: set[Path] = set()
    for pattern in patterns:
        for candidate in root.glob(pattern):
            if candidate.is_file():
                found.add(candidate.relative_to(root))
    return found


def select_files(source: Path, selection: FileSelection) -> list[Path]:
    """Return the files under *source* matched by *selection*.

    Paths are relative to the selection's base path.
    """
    root = source / selection.base_path if selection.base_path else source
    if not root.is_dir():
        return []
    matched = _glob_files(root, selection.include) - _glob_files(root, selection.exclude)
    return sorted(matched)


def copy_selected(source: Path, destination: Path, selection: FileSelection) -> list[Path]:
    """Copy the files *selection* picks from *source* into *destination*.

    Relative layout under the base path is preserved. *destination* is only
    created when there is something to copy. Returns the copied paths,
    relative to *destination*.
    """
    root = source / selection.base_path if selection.base_path else source
    files = select_files(source, selection)
    for rel in files:
        target = destination / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(root / rel, target)
    return files
