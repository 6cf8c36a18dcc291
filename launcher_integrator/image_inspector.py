"""Image inspection capability.

The integration core never parses the image format itself. It asks an
``ImageInspector`` for the format type and for digest material. The default
``AppImageInspector`` only looks at the header magic and hashes whole files;
locating embedded sections is left to richer inspectors.
"""

from __future__ import annotations

import enum
import hashlib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from .logger import get_logger

_logger = get_logger("image_inspector")

_ELF_MAGIC = b"\x7fELF"
_MARKER_OFFSET = 8
_ISO9660_OFFSET = 32769
_ISO9660_MAGIC = b"CD001"
_HASH_CHUNK = 1024 * 1024


class ImageFormat(enum.Enum):
    UNKNOWN = 0
    TYPE_1 = 1  # legacy, ISO 9660 payload
    TYPE_2 = 2  # squashfs payload, may embed a digest


@dataclass(frozen=True)
class ImageDescriptor:
    path: Path
    format: ImageFormat
    digest: str | None = None


class ImageInspector(ABC):
    """What the core needs to know about an image file."""

    @abstractmethod
    def image_format(self, path: Path) -> ImageFormat:
        raise NotImplementedError()

    @abstractmethod
    def embedded_digest_range(self, path: Path) -> tuple[int, int] | None:
        """(offset, length) of a precomputed digest inside the file, if any."""
        raise NotImplementedError()

    @abstractmethod
    def content_digest(self, path: Path) -> bytes | None:
        """Digest computed over the file content, or None on failure."""
        raise NotImplementedError()


class AppImageInspector(ImageInspector):
    def image_format(self, path: Path) -> ImageFormat:
        try:
            with open(path, "rb") as f:
                head = f.read(_MARKER_OFFSET + 3)
                if not head.startswith(_ELF_MAGIC):
                    return ImageFormat.UNKNOWN
                marker = head[_MARKER_OFFSET:]
                if marker == b"AI\x02":
                    return ImageFormat.TYPE_2
                if marker == b"AI\x01":
                    return ImageFormat.TYPE_1
                f.seek(_ISO9660_OFFSET)
                if f.read(len(_ISO9660_MAGIC)) == _ISO9660_MAGIC:
                    return ImageFormat.TYPE_1
        except OSError as e:
            _logger.debug("cannot inspect %s: %s", path, e)
        return ImageFormat.UNKNOWN

    def embedded_digest_range(self, path: Path) -> tuple[int, int] | None:
        return None

    def content_digest(self, path: Path) -> bytes | None:
        h = hashlib.md5()
        try:
            with open(path, "rb") as f:
                for chunk in iter(lambda: f.read(_HASH_CHUNK), b""):
                    h.update(chunk)
        except OSError as e:
            _logger.debug("cannot hash %s: %s", path, e)
            return None
        return h.digest()


def is_image(path: str | Path, inspector: ImageInspector) -> bool:
    return inspector.image_format(Path(path)) is not ImageFormat.UNKNOWN
