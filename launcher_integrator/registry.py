"""Lookup of launcher documents created by base registration.

Base registration (extracting an image's bundled launcher document and icons
into the user directories) is done by a ``Registrar``. Registered documents are
named ``appimagekit_<md5 of the image's file URI>-<name>.desktop``.
"""

from __future__ import annotations

import hashlib
from abc import ABC, abstractmethod
from pathlib import Path

from .desktop_file import DESKTOP_FILE_SUFFIX
from .path_utils import abs_path

GENERATED_ENTRY_PREFIX = "appimagekit_"
GENERATED_ENTRY_GLOB = f"{GENERATED_ENTRY_PREFIX}*{DESKTOP_FILE_SUFFIX}"


def image_key(image_path: str | Path) -> str:
    return hashlib.md5(abs_path(image_path).as_uri().encode("utf-8")).hexdigest()


def registered_launcher_path(image_path: str | Path, applications_dir: str | Path) -> Path | None:
    """Launcher document registered for ``image_path``, if there is one."""
    d = Path(applications_dir)
    if not d.is_dir():
        return None
    matches = sorted(d.glob(f"{GENERATED_ENTRY_PREFIX}{image_key(image_path)}-*{DESKTOP_FILE_SUFFIX}"))
    return matches[0] if matches else None


class Registrar(ABC):
    """Creates the base launcher document and icons for an image."""

    def __init__(self, applications_dir: str | Path):
        self.applications_dir = Path(applications_dir)

    @abstractmethod
    def register(self, image_path: Path) -> Path:
        """Register ``image_path`` and return the path of its launcher document.

        Raises:
            OSError: registration failed
        """
        raise NotImplementedError()

    def registered_path(self, image_path: Path) -> Path | None:
        return registered_launcher_path(image_path, self.applications_dir)
