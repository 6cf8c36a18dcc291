"""Best-effort checks for artifacts older than the installed engine.

Every query failure answers "not stale"; these checks decide whether to
refresh things, they never block anything.
"""

from __future__ import annotations

import os
import subprocess
import time
from collections.abc import Callable
from pathlib import Path

from .logger import get_logger
from .registry import registered_launcher_path

_logger = get_logger("staleness")

MOUNT_SERVICE_NAME = "launcher-integrator-fs.service"
_MONOTONIC_PROPERTY = "ActiveEnterTimestampMonotonic"


def _mtime(path: str | Path) -> float | None:
    try:
        return os.stat(path).st_mtime
    except OSError as e:
        _logger.debug("failed to call stat() on %s: %s", path, e)
        return None


def query_service_activation(service: str = MOUNT_SERVICE_NAME) -> str:
    """Raw ``systemctl`` output for the service's monotonic activation time."""
    result = subprocess.run(
        ["systemctl", "--user", "show", service, f"--property={_MONOTONIC_PROPERTY}"],
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout


def parse_activation_timestamp(output: str) -> float:
    """Wall-clock seconds from ``ActiveEnterTimestampMonotonic=<microseconds>``.

    Raises:
        ValueError: the output holds no usable timestamp
    """
    first_line = output.strip().splitlines()[0] if output.strip() else ""
    _, sep, value = first_line.partition("=")
    if not sep:
        raise ValueError(f"unexpected systemctl output: {output!r}")
    monotonic_seconds = int(value.strip()) / 1e6
    offset = time.time() - time.monotonic()
    return monotonic_seconds + offset


class StalenessDetector:
    def __init__(
        self,
        applications_dir: str | Path,
        engine_path: str | Path | None = None,
        service: str = MOUNT_SERVICE_NAME,
        service_query: Callable[[str], str] = query_service_activation,
    ):
        self.applications_dir = Path(applications_dir)
        # the package itself stands in for the engine binary
        self.engine_path = Path(engine_path) if engine_path is not None else Path(__file__).with_name("__init__.py")
        self.service = service
        self.service_query = service_query

    def is_entry_stale(self, image_path: str | Path) -> bool:
        """True if the image's launcher document predates the engine."""
        desktop_path = registered_launcher_path(image_path, self.applications_dir)
        if desktop_path is None:
            _logger.debug("no registered launcher document for %s", image_path)
            return False

        engine_mtime = _mtime(self.engine_path)
        desktop_mtime = _mtime(desktop_path)
        if engine_mtime is None or desktop_mtime is None:
            return False
        return desktop_mtime < engine_mtime

    def has_background_service_restarted(self) -> bool:
        """True if the mount service was (re)started after the engine was installed."""
        engine_mtime = _mtime(self.engine_path)
        if engine_mtime is None:
            return False

        try:
            started = parse_activation_timestamp(self.service_query(self.service))
        except (OSError, subprocess.SubprocessError, ValueError) as e:
            _logger.debug("cannot query activation time of %s: %s", self.service, e)
            return False
        return started > engine_mtime
