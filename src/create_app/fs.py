"""Filesystem helpers for copying and removing template trees."""

import os
import shutil
from pathlib import Path

# Never copied out of a template, at any depth
IGNORED_ENTRIES = frozenset({"node_modules", ".git", ".next", "dev.sqlite3"})


def copy_tree(source: Path, destination: Path) -> None:
    """Recursively copy ``source`` into ``destination``, skipping ignored entries.

    Intermediate directories are created as needed. Errors from the filesystem
    propagate untouched; cleaning up a half-copied destination is up to the caller.
    """
    source = Path(source)
    destination = Path(destination)
    destination.mkdir(parents=True, exist_ok=True)

    for entry in sorted(source.iterdir(), key=lambda p: p.name):
        if entry.name in IGNORED_ENTRIES:
            continue
        target = destination / entry.name
        if entry.is_symlink():
            os.symlink(os.readlink(entry), target)
        elif entry.is_dir():
            copy_tree(entry, target)
        else:
            shutil.copy2(entry, target)


def remove_tree(path: Path) -> None:
    """Delete ``path`` and everything below it. Missing paths are ignored."""
    path = Path(path)
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.exists():
        shutil.rmtree(path)
