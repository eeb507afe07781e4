"""
Utilities for walking, cleaning and discovering directories of a module tree.
"""

import os
from collections.abc import Callable, Iterator
from pathlib import Path

from modbuild.exceptions import FileSystemError


def create_dir(directory_path: Path) -> None:
    """Creates a directory if it does not already exist."""
    try:
        directory_path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FileSystemError(
            f"create directories failed for: {directory_path}", e
        ) from e


def is_source_file(extension: str) -> Callable[[Path], bool]:
    """Returns a predicate matching paths whose file name ends with `extension`."""
    return lambda path: path.name.endswith(extension)


def _walk(path: Path) -> Iterator[Path]:
    yield path
    if path.is_dir() and not path.is_symlink():
        for child in sorted(path.iterdir()):
            yield from _walk(child)


def walk(root: Path) -> Iterator[Path]:
    """
    Yields `root` followed by every path below it, depth first.

    Entries of each directory are visited in lexicographic order so that the
    sequence is stable across platforms and runs.
    """
    if not root.exists():
        raise FileSystemError(
            f"walk failed for: {root}", FileNotFoundError(str(root))
        )
    try:
        yield from _walk(root)
    except OSError as e:
        raise FileSystemError(f"walk failed for: {root}", e) from e


def clean(root: Path) -> None:
    """Delete all files and directories from the root directory, root included."""
    if not os.path.lexists(root):
        return
    try:
        # Reverse lexicographic order puts children before their parents.
        for path in sorted(walk(root), key=str, reverse=True):
            if path.is_dir() and not path.is_symlink():
                path.rmdir()
            elif os.path.lexists(path):
                path.unlink()
    except OSError as e:
        raise FileSystemError(f"clean failed for: {root}", e) from e


def find_directories(root: Path) -> list[Path]:
    """Returns the immediate sub-directories of `root`, sorted by name."""
    if not root.exists():
        return []
    try:
        return sorted(path for path in root.iterdir() if path.is_dir())
    except OSError as e:
        raise FileSystemError(f"find directories failed for: {root}", e) from e


def find_directory_names(root: Path) -> list[str]:
    """Returns the names of the immediate sub-directories of `root`."""
    return [str(path.relative_to(root)) for path in find_directories(root)]
