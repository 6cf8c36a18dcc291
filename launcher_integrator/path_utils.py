"""Path normalization utilities.

This module centralizes the project's path rules:

- Use absolute paths when talking to the filesystem or writing launcher entries.
- Expand a leading ``~`` the way the configuration file expects it.

Keep this module free of Qt dependencies.
"""

from __future__ import annotations

import os
from pathlib import Path


def abs_path(path: str | Path) -> Path:
    """Return an absolute path without requiring that it exists."""
    p = Path(path).expanduser()
    try:
        # strict=False avoids exceptions for non-existent paths.
        return p.resolve(strict=False)
    except (OSError, RuntimeError):
        return p.absolute()


def abs_path_str(path: str | Path) -> str:
    return str(abs_path(path))


def expand_tilde(path: str) -> str:
    """Replace a leading ``~`` with the home directory.

    Only the first character is looked at; ``~user`` forms are not supported.
    """
    if path.startswith("~"):
        return str(Path.home()) + path[1:]
    return path


def same_file(a: str | Path, b: str | Path) -> bool:
    """True if both paths denote the same file.

    Falls back to comparing absolute paths when either side does not exist.
    """
    try:
        return os.path.samefile(a, b)
    except OSError:
        return abs_path(a) == abs_path(b)


def is_in_directory(path: str | Path, directory: str | Path) -> bool:
    return abs_path(path).parent == abs_path(directory)
