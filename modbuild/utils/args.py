"""
Command line option builder for compiler and test runner invocations.
"""

import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

from .path import walk


class ArgumentList:
    """An ordered, append-only list of command line tokens."""

    def __init__(self) -> None:
        self.list: list[str] = []

    def add(self, *values: Any) -> "ArgumentList":
        """
        Appends one token.

        A single value is added as its string form. Several values are treated
        as a path list and joined with the platform path separator into one
        token, as expected by module-path style options.
        """
        if not values:
            raise TypeError("add() requires at least one value")
        self.list.append(os.pathsep.join(str(value) for value in values))
        return self

    def add_all(self, root: Path, predicate: Callable[[Path], bool]) -> "ArgumentList":
        """Appends every path below `root` accepted by `predicate`, one token each."""
        self.list.extend(str(path) for path in walk(root) if predicate(path))
        return self

    def __iter__(self):
        return iter(self.list)

    def __len__(self) -> int:
        return len(self.list)

    def __repr__(self) -> str:
        return f"ArgumentList({self.list!r})"
