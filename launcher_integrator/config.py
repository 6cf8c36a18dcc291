from __future__ import annotations

import functools
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from PySide6.QtCore import QSettings

from .locations import Locations
from .logger import get_logger
from .path_utils import expand_tilde

_logger = get_logger("config")

CONFIG_GROUP = "LauncherIntegrator"

_TRUE_WORDS = {"1", "true", "yes", "on"}
_FALSE_WORDS = {"0", "false", "no", "off"}


def _to_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_WORDS:
        return True
    if text in _FALSE_WORDS:
        return False
    _logger.warning("not a boolean in config, using default %s: %r", default, value)
    return default


@dataclass(frozen=True)
class DestinationPolicy:
    root_directory: Path
    ask_to_move: bool = True
    enable_daemon: bool = True


class IntegratorConfig:
    """Read-only view of the ``[LauncherIntegrator]`` group of the config file.

    A missing file is not an error: every key falls back to its default.
    """

    DEFAULTS: dict[str, Any] = {
        "ask_to_move": True,
        "destination": None,
        "enable_daemon": True,
    }

    def __init__(self, config_path: str | Path):
        self.config_path = str(config_path)
        self._settings: dict[str, Any] = {}
        self.load()

    def load(self) -> None:
        self._settings = {}
        if not os.path.exists(self.config_path):
            _logger.debug("no config file, using defaults: %s", self.config_path)
            return

        settings = QSettings(self.config_path, QSettings.Format.IniFormat)
        if settings.status() != QSettings.Status.NoError:
            _logger.warning("config load failed, using defaults: %s", self.config_path)
            return

        for key in self.DEFAULTS:
            full_key = f"{CONFIG_GROUP}/{key}"
            if not settings.contains(full_key):
                continue
            value = settings.value(full_key)
            # QSettings splits unquoted values on commas
            if isinstance(value, list):
                value = ",".join(str(v) for v in value)
            self._settings[key] = value
        _logger.debug("config loaded: %s", self.config_path)

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._settings:
            return self._settings[key]
        if default is not None:
            return default
        return self.DEFAULTS.get(key)

    def has(self, key: str) -> bool:
        return key in self._settings

    @property
    def ask_to_move(self) -> bool:
        return _to_bool(self.get("ask_to_move"), self.DEFAULTS["ask_to_move"])

    @property
    def enable_daemon(self) -> bool:
        return _to_bool(self.get("enable_daemon"), self.DEFAULTS["enable_daemon"])

    @property
    def destination(self) -> str | None:
        val = self.get("destination")
        if not isinstance(val, str) or not val.strip():
            return None
        return expand_tilde(val.strip())

    def policy(self, locations: Locations) -> DestinationPolicy:
        root = self.destination
        return DestinationPolicy(
            root_directory=Path(root) if root else locations.default_destination,
            ask_to_move=self.ask_to_move,
            enable_daemon=self.enable_daemon,
        )


def create_config_file(
    config_path: str | Path,
    ask_to_move: bool | None = None,
    destination: str | None = None,
    enable_daemon: bool | None = None,
) -> None:
    """Write a fresh config file.

    ``None`` leaves a key unset; it is written as a commented-out default so users
    can discover it. QSettings drops comments, so the file is written by hand.
    """

    def _bool_line(key: str, value: bool | None) -> str:
        if value is None:
            return f"# {key} = true\n"
        return f"{key} = {'true' if value else 'false'}\n"

    lines = [f"[{CONFIG_GROUP}]\n", _bool_line("ask_to_move", ask_to_move)]
    if destination:
        lines.append(f"destination = {destination}\n")
    else:
        lines.append("# destination = ~/Applications\n")
    lines.append(_bool_line("enable_daemon", enable_daemon))

    path = Path(config_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(lines), encoding="utf-8")
    _logger.debug("config written: %s", path)


@functools.lru_cache(maxsize=None)
def get_locations() -> Locations:
    return Locations.from_environment()


@functools.lru_cache(maxsize=None)
def get_config() -> IntegratorConfig:
    """Process-wide config, loaded on first use."""
    return IntegratorConfig(get_locations().config_file)


def get_policy() -> DestinationPolicy:
    return get_config().policy(get_locations())
