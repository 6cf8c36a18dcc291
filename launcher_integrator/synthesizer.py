"""Launcher entry synthesis.

Takes the launcher document written by base registration and turns it into
the entry users see: a unique display name, ``Remove``/``Update`` actions
pointing at the helper tools, and a version stamp that tells later runs which
engine produced it.
"""

from __future__ import annotations

import sys
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from . import __version__
from .collisions import resolve_name
from .desktop_file import DESKTOP_ENTRY_GROUP, DesktopFile
from .errors import FormatError, OperationFailed
from .file_operations import make_executable
from .logger import get_logger
from .notifications import notify_icon_changed
from .path_utils import abs_path_str
from .prompts import ErrorReporter
from .translations import ActionTranslations

_logger = get_logger("synthesizer")

ACTION_GROUP_PREFIX = "Desktop Action "
REMOVE_ACTION = "Remove"
UPDATE_ACTION = "Update"
REMOVE_ACTION_NAME = "Remove application from system"
UPDATE_ACTION_NAME = "Update application"
VERSION_KEY = "X-LauncherIntegrator-Version"
HELPER_ICON_NAME = "launcher-integrator"


def engine_version(version: str | None = None) -> str:
    v = (version if version is not None else __version__).strip()
    while v.startswith("version "):
        v = v[len("version ") :].lstrip()
    return v


@dataclass(frozen=True)
class HelperTools:
    """Location of the ``remove``/``update`` helper executables."""

    directory: Path
    icon_name: str = HELPER_ICON_NAME

    def exec_line(self, verb: str, image_path: str | Path) -> str:
        return f'{self.directory / verb} "{abs_path_str(image_path)}"'

    @classmethod
    def default(cls) -> HelperTools:
        return cls(directory=Path(sys.prefix) / "lib" / "launcher-integrator")


class UpdateInformation(ABC):
    @abstractmethod
    def has_update_information(self, image_path: Path) -> bool:
        raise NotImplementedError()


class NoUpdateInformation(UpdateInformation):
    def has_update_information(self, image_path: Path) -> bool:
        return False


class LauncherEntrySynthesizer:
    def __init__(
        self,
        reporter: ErrorReporter,
        launcher_directories: Sequence[str | Path],
        helpers: HelperTools | None = None,
        translations: ActionTranslations | None = None,
        update_information: UpdateInformation | None = None,
        version: str | None = None,
        notifier: Callable[[], object] = notify_icon_changed,
    ):
        self.reporter = reporter
        self.launcher_directories = list(launcher_directories)
        self.helpers = helpers or HelperTools.default()
        self.translations = translations or ActionTranslations()
        self.update_information = update_information or NoUpdateInformation()
        self.version = engine_version(version)
        self.notifier = notifier

    def _failure(self, message: str) -> OperationFailed:
        self.reporter.error(message)
        return OperationFailed(message)

    def _declare_action(
        self,
        doc: DesktopFile,
        action: str,
        name: str,
        verb: str,
        image_path: Path,
        localized_names: dict[str, str],
    ) -> None:
        section = doc.ensure_section(ACTION_GROUP_PREFIX + action)
        section.set("Name", name)
        section.set("Icon", self.helpers.icon_name)
        section.set("Exec", self.helpers.exec_line(verb, image_path))
        for locale, value in sorted(localized_names.items()):
            section.set("Name", value, locale=locale)

    def synthesize(self, launcher_path: str | Path, image_path: str | Path, resolve_collisions: bool = False) -> DesktopFile:
        """Rewrite the launcher document of an integrated image.

        Args:
            launcher_path: existing launcher document created by base registration
            image_path: the integrated image the entry launches
            resolve_collisions: give the entry a unique ``Name``

        Returns:
            The document as written to disk.

        Raises:
            OperationFailed: the document could not be read, parsed or written.
                The cause has been reported already.
        """
        launcher_path = Path(launcher_path)
        image_path = Path(image_path)

        try:
            doc = DesktopFile.load(launcher_path)
        except (OSError, FormatError) as e:
            raise self._failure(f"Failed to load desktop file:\n{e}") from e

        main = doc.ensure_section(DESKTOP_ENTRY_GROUP)
        name = main.get("Name")
        if name is None:
            self.reporter.warning(f"Launcher entry has no Name: {launcher_path}")
        elif resolve_collisions:
            # TODO: compare translated names too, only the unlocalized Name is checked
            new_name = resolve_name(name, self.launcher_directories, own_path=launcher_path)
            if new_name != name:
                _logger.info("renaming launcher entry %r -> %r", name, new_name)
                main.set("Name", new_name)

        actions = [REMOVE_ACTION]
        self._declare_action(doc, REMOVE_ACTION, REMOVE_ACTION_NAME, "remove", image_path, self.translations.remove)

        if self.update_information.has_update_information(image_path):
            actions.append(UPDATE_ACTION)
            self._declare_action(doc, UPDATE_ACTION, UPDATE_ACTION_NAME, "update", image_path, self.translations.update)

        # action groups not listed in Actions would be dead entries
        for section_name in doc.sections():
            if section_name.startswith(ACTION_GROUP_PREFIX) and section_name[len(ACTION_GROUP_PREFIX) :] not in actions:
                doc.remove_section(section_name)

        main.set_list("Actions", actions)
        main.set(VERSION_KEY, self.version)

        try:
            doc.save(launcher_path)
        except OSError as e:
            raise self._failure(f"Failed to save desktop file:\n{e}") from e

        # some desktops only trust executable launcher documents
        make_executable(launcher_path)

        try:
            self.notifier()
        except Exception as e:  # best effort
            _logger.debug("icon change notifier failed: %s", e)

        _logger.debug("launcher entry written: %s (actions: %s)", launcher_path, ", ".join(actions))
        return doc
