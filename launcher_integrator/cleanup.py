"""Removal of launcher entries whose image no longer exists.

Only documents following the naming convention of base registration are
looked at. An entry is kept whenever the path it points to exists, whatever
that path is.
"""

from __future__ import annotations

import shlex
from pathlib import Path

from .desktop_file import DESKTOP_ENTRY_GROUP, DesktopFile
from .errors import FormatError
from .locations import Locations
from .logger import get_logger
from .registry import GENERATED_ENTRY_GLOB

_logger = get_logger("cleanup")


def implied_image_path(doc: DesktopFile) -> str | None:
    """Path of the image a launcher document runs, or None if it has no Exec.

    ``TryExec`` holds the full image path when present; otherwise the first
    token of ``Exec`` is used.
    """
    exec_value = doc.get(DESKTOP_ENTRY_GROUP, "Exec")
    if exec_value is None:
        return None

    try_exec = doc.get(DESKTOP_ENTRY_GROUP, "TryExec")
    if try_exec:
        return try_exec

    try:
        tokens = shlex.split(exec_value)
    except ValueError:
        # unbalanced quotes
        tokens = exec_value.split()
    return tokens[0] if tokens else ""


def remove_icons(icon_name: str, icons_dir: Path) -> int:
    """Delete icon files whose base name starts with ``icon_name``."""
    if not icon_name or not icons_dir.is_dir():
        return 0
    removed = 0
    for path in icons_dir.rglob("*"):
        if not path.is_file() or not path.stem.startswith(icon_name):
            continue
        try:
            path.unlink()
            removed += 1
            _logger.debug("removed icon: %s", path)
        except OSError as e:
            _logger.warning("failed to remove icon %s: %s", path, e)
    return removed


def collect_stale_entries(locations: Locations, verbose: bool = False) -> int:
    """Remove generated launcher entries whose image is gone.

    Returns:
        Number of launcher documents removed.
    """
    log = _logger.info if verbose else _logger.debug
    apps_dir = locations.applications_dir
    if not apps_dir.is_dir():
        return 0

    removed = 0
    for desktop_path in sorted(apps_dir.glob(GENERATED_ENTRY_GLOB)):
        try:
            doc = DesktopFile.load(desktop_path)
        except (OSError, FormatError) as e:
            _logger.debug("skipping unreadable launcher document %s: %s", desktop_path, e)
            continue

        image_path = implied_image_path(doc)
        if image_path is None:
            # no Exec, broken entry
            continue
        if image_path and Path(image_path).exists():
            continue

        log("image no longer exists, cleaning up resources: %s", image_path)
        log("removing launcher document: %s", desktop_path)
        try:
            desktop_path.unlink()
        except OSError as e:
            _logger.warning("failed to remove %s: %s", desktop_path, e)
            continue
        removed += 1

        icon_name = doc.get(DESKTOP_ENTRY_GROUP, "Icon")
        if icon_name:
            count = remove_icons(icon_name, locations.icons_dir)
            log("removed %d icon(s) for %s", count, icon_name)

    if removed:
        log("removed %d stale launcher entries", removed)
    return removed
