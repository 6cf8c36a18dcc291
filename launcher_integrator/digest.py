"""Content fingerprints used to name integrated images.

A digest is naming sugar, not a correctness requirement: every failure here
degrades to ``None``.
"""

from __future__ import annotations

from pathlib import Path

from .image_inspector import ImageDescriptor, ImageFormat, ImageInspector
from .logger import get_logger

_logger = get_logger("digest")


def _read_range(path: Path, offset: int, length: int) -> bytes | None:
    try:
        with open(path, "rb") as f:
            f.seek(offset)
            data = f.read(length)
    except (OSError, ValueError) as e:
        _logger.debug("reading embedded digest failed: %s: %s", path, e)
        return None
    if len(data) != length:
        _logger.debug("short read of embedded digest: %s (%d/%d bytes)", path, len(data), length)
        return None
    return data


def digest_of(path: str | Path, inspector: ImageInspector, image_format: ImageFormat | None = None) -> str | None:
    """Hex digest of a modern image, or None.

    The embedded digest is preferred; the content hash is the fallback.
    """
    p = Path(path)
    fmt = image_format if image_format is not None else inspector.image_format(p)
    if fmt is not ImageFormat.TYPE_2:
        return None

    raw: bytes | None = None
    embedded = inspector.embedded_digest_range(p)
    if embedded is not None and embedded[0] > 0 and embedded[1] > 0:
        offset, length = embedded
        raw = _read_range(p, offset, length)
        if raw is None:
            return None
    else:
        raw = inspector.content_digest(p)

    if not raw:
        return None
    return raw.hex()


def inspect_image(path: str | Path, inspector: ImageInspector) -> ImageDescriptor:
    p = Path(path)
    fmt = inspector.image_format(p)
    return ImageDescriptor(path=p, format=fmt, digest=digest_of(p, inspector, fmt))
