"""Standard directories used by the integration core."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from PySide6.QtCore import QStandardPaths

CONFIG_FILE_NAME = "launcher_integrator.cfg"
SYSTEM_APPLICATIONS_DIR = Path("/usr/share/applications")
DEFAULT_DESTINATION_NAME = "Applications"


def _writable(location) -> Path:
    value = QStandardPaths.writableLocation(location)
    return Path(value) if value else Path.home()


@dataclass(frozen=True)
class Locations:
    """Directories the core reads and writes.

    Built once per process from ``QStandardPaths``; tests construct their own.
    """

    applications_dir: Path  # user-local launcher documents
    icons_dir: Path
    config_file: Path
    default_destination: Path
    system_applications_dir: Path = SYSTEM_APPLICATIONS_DIR

    @property
    def launcher_directories(self) -> list[Path]:
        """System-wide first, then user-local."""
        return [self.system_applications_dir, self.applications_dir]

    @property
    def hicolor_dir(self) -> Path:
        return self.icons_dir / "hicolor"

    @classmethod
    def from_environment(cls) -> Locations:
        data = _writable(QStandardPaths.StandardLocation.GenericDataLocation)
        config = _writable(QStandardPaths.StandardLocation.ConfigLocation)
        return cls(
            applications_dir=data / "applications",
            icons_dir=data / "icons",
            config_file=config / CONFIG_FILE_NAME,
            default_destination=Path.home() / DEFAULT_DESTINATION_NAME,
        )

    @classmethod
    def under(cls, root: Path) -> Locations:
        """All locations below ``root``, mirroring an XDG home layout."""
        return cls(
            applications_dir=root / ".local" / "share" / "applications",
            icons_dir=root / ".local" / "share" / "icons",
            config_file=root / ".config" / CONFIG_FILE_NAME,
            default_destination=root / DEFAULT_DESTINATION_NAME,
            system_applications_dir=root / "usr" / "share" / "applications",
        )
