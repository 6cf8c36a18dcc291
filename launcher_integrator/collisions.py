"""Display-name collision resolution for launcher entries.

Collisions are resolved like file managers do it: a number in brackets is
appended to the new entry's ``Name``. The number is one above the highest
bracketed number found among the colliding entries, so it keeps increasing.

Only the unlocalized ``Name`` is compared; translated names are not merged.
"""

from __future__ import annotations

import os
import re
from collections.abc import Iterable
from pathlib import Path

from .desktop_file import DESKTOP_ENTRY_GROUP, DESKTOP_FILE_SUFFIX, DesktopFile
from .errors import FormatError
from .logger import get_logger
from .path_utils import same_file

_logger = get_logger("collisions")

_COUNTER_RE = re.compile(r"\((\d+)\)$")


def _iter_launcher_files(directory: Path) -> Iterable[Path]:
    if not directory.is_dir():
        return
    for root, _dirs, files in os.walk(directory):
        for name in sorted(files):
            if not name.endswith(DESKTOP_FILE_SUFFIX):
                continue
            path = Path(root) / name
            if path.is_file():
                yield path


def find_collisions(candidate_name: str, directories: Iterable[str | Path]) -> dict[Path, str]:
    """Launcher files whose ``Name`` starts with ``candidate_name`` (both trimmed)."""
    wanted = candidate_name.strip()
    collisions: dict[Path, str] = {}

    for directory in directories:
        for path in _iter_launcher_files(Path(directory)):
            try:
                doc = DesktopFile.load(path)
            except (OSError, FormatError) as e:
                # not a valid launcher document, not our business
                _logger.debug("skipping %s: %s", path, e)
                continue

            name = doc.get(DESKTOP_ENTRY_GROUP, "Name")
            if name is None:
                continue
            if name.strip().startswith(wanted):
                collisions[path] = name

    return collisions


def next_counter(names: Iterable[str]) -> int:
    counter = 1
    for name in names:
        m = _COUNTER_RE.search(name.strip())
        if m is None:
            continue
        num = int(m.group(1))
        if num >= counter:
            counter = num + 1
    return counter


def resolve_name(candidate_name: str, directories: Iterable[str | Path], own_path: str | Path | None = None) -> str:
    collisions = find_collisions(candidate_name, directories)

    if own_path is not None:
        own = Path(own_path)
        for path in list(collisions):
            if same_file(path, own):
                del collisions[path]

    if not collisions:
        return candidate_name

    counter = next_counter(collisions.values())
    new_name = f"{candidate_name} ({counter})"
    _logger.debug("name collision for %r with %d entries, using %r", candidate_name, len(collisions), new_name)
    return new_name