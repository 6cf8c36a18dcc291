"""Common file operation utilities.

This module provides the low-level, *headless* file operations used by:
- integration.py: relocating images into the integration folder
- synthesizer.py: marking launcher documents executable
- cleanup.py: refreshing desktop caches after a sweep

Confirmation prompts live in prompts.py; nothing here asks the user.
"""

from __future__ import annotations

import os
import shutil
import stat
import subprocess
import tempfile
from pathlib import Path

from send2trash import send2trash

from .locations import Locations
from .logger import get_logger
from .path_utils import abs_path_str

_logger = get_logger("file_operations")

_EXEC_BITS = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


def send_to_trash(path: str | Path) -> None:
    """Send a single file to the trash.

    Raises:
        OSError: If the operation fails
    """
    abs_p = abs_path_str(path)
    _logger.debug("sending to trash: %s", abs_p)
    try:
        send2trash(abs_p)
        _logger.debug("trash success: %s", abs_p)
    except OSError as e:
        _logger.error("trash failed: %s -> %s", abs_p, e)
        raise


def rename_file(src: str | Path, dest: str | Path) -> None:
    """Atomically rename ``src`` to ``dest``.

    Fails across filesystems; callers decide whether to copy instead.

    Raises:
        OSError: If the rename fails
    """
    _logger.debug("renaming: %s -> %s", src, dest)
    try:
        os.rename(src, dest)
    except OSError as e:
        _logger.warning("rename failed: %s -> %s, error: %s", src, dest, e)
        raise


def copy_file(src: str | Path, dest: str | Path) -> None:
    """Copy ``src`` to ``dest`` keeping metadata.

    The data goes to a temporary file next to ``dest`` which is renamed into
    place once complete; a failed copy leaves ``dest`` untouched.

    Raises:
        OSError: If the copy fails
    """
    dest = Path(dest)
    _logger.debug("copying file: %s -> %s", src, dest)
    tmp: str | None = None
    try:
        fd, tmp = tempfile.mkstemp(prefix=f".{dest.name}.", suffix=".part", dir=dest.parent)
        os.close(fd)
        shutil.copy2(str(src), tmp)
        os.replace(tmp, dest)
        _logger.debug("copy success: %s -> %s", src, dest)
    except OSError as e:
        _logger.error("copy failed: %s -> %s, error: %s", src, dest, e)
        if tmp is not None and os.path.lexists(tmp):
            try:
                os.unlink(tmp)
            except OSError as cleanup_error:
                _logger.warning("failed to remove partial copy %s: %s", tmp, cleanup_error)
        raise


def is_effectively_executable(st: os.stat_result) -> bool:
    """Executable for the current user through owner, group or other bits."""
    if st.st_uid == os.getuid() and st.st_mode & stat.S_IXUSR:
        return True
    if st.st_gid == os.getgid() and st.st_mode & stat.S_IXGRP:
        return True
    return bool(st.st_mode & stat.S_IXOTH)


def make_executable(path: str | Path) -> bool:
    """Add execute bits unless the file is executable already.

    Files on read-only mounts are often executable already; they are left alone.
    """
    try:
        st = os.stat(path)
    except OSError as e:
        _logger.warning("failed to call stat() on %s: %s", path, e)
        return False

    if is_effectively_executable(st):
        return True

    try:
        os.chmod(path, stat.S_IMODE(st.st_mode) | _EXEC_BITS)
    except OSError as e:
        _logger.warning("chmod failed on %s: %s", path, e)
        return False
    return True


def update_desktop_database_and_icon_caches(locations: Locations) -> None:
    """Ask the desktop to reload launcher entries and icons.

    Tools that are not installed are skipped; exit codes are not evaluated.
    """
    hicolor = str(locations.hicolor_dir)
    commands = [
        ["update-desktop-database", str(locations.applications_dir)],
        ["gtk-update-icon-cache-3.0", hicolor, "-t"],
        ["gtk-update-icon-cache", hicolor, "-t"],
        ["xdg-desktop-menu", "forceupdate"],
    ]
    for cmd in commands:
        if shutil.which(cmd[0]) is None:
            continue
        _logger.debug("running %s", " ".join(cmd))
        try:
            subprocess.run(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL, check=False)
        except OSError as e:
            _logger.debug("%s failed: %s", cmd[0], e)
