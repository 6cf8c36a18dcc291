from __future__ import annotations

from pathlib import Path

from .config import DestinationPolicy
from .digest import inspect_image
from .image_inspector import ImageDescriptor, ImageInspector


def build_integrated_path(descriptor: ImageDescriptor, policy: DestinationPolicy) -> Path:
    """Canonical location of an image inside the integration folder.

    ``Foo.AppImage`` with digest ``d`` becomes ``<root>/Foo_d.AppImage``. A name that
    already contains the digest is kept as is, so resolving an integrated image
    again yields the same path.
    """
    name = descriptor.path.name
    base_name = descriptor.path.stem
    extension = descriptor.path.suffix  # includes the dot, "" if none

    if descriptor.digest and descriptor.digest not in name:
        base_name += "_" + descriptor.digest

    return Path(policy.root_directory) / (base_name + extension)


def integrated_path_for(image_path: str | Path, policy: DestinationPolicy, inspector: ImageInspector) -> Path:
    return build_integrated_path(inspect_image(image_path, inspector), policy)
