"""Localized names for the launcher actions.

Translations ship as ``desktopfiles.<locale>.json`` files holding an object
whose keys name the action (``"Desktop Action remove/Name"``) and whose values
are the translated strings.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from .logger import get_logger

_logger = get_logger("translations")

_FILE_PREFIX = "desktopfiles."
_FILE_SUFFIX = ".json"


@dataclass
class ActionTranslations:
    remove: dict[str, str] = field(default_factory=dict)  # locale -> name
    update: dict[str, str] = field(default_factory=dict)


def load_action_translations(directory: str | Path | None) -> ActionTranslations:
    result = ActionTranslations()
    if directory is None:
        return result
    d = Path(directory)
    if not d.is_dir():
        _logger.debug("no translation directory: %s", d)
        return result

    for path in sorted(d.iterdir()):
        name = path.name
        if not path.is_file() or not (name.startswith(_FILE_PREFIX) and name.endswith(_FILE_SUFFIX)):
            continue
        parts = name.split(".")
        if len(parts) != 3:
            continue
        locale = parts[1]

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            _logger.warning("could not parse desktop file translations %s: %s", name, e)
            continue
        if not isinstance(data, dict):
            _logger.warning("could not parse desktop file translations %s: not an object", name)
            continue

        for key, value in data.items():
            if not isinstance(value, str):
                continue
            if key.startswith("Desktop Action update"):
                result.update[locale] = value
            elif key.startswith("Desktop Action remove"):
                result.remove[locale] = value

    _logger.debug("loaded action translations: %d remove, %d update", len(result.remove), len(result.update))
    return result
