"""Integration of an image into the desktop.

``Integrator.integrate`` walks a small state machine::

    start -> relocating -> entry synthesis -> done(successful)

and any step may end in ``done(aborted)`` (the user declined) or
``done(failed)``. Nothing is retried, and each question is asked at most once
per attempt. Internally the steps raise ``UserAborted``/``OperationFailed``;
``integrate`` turns them into an ``IntegrationResult``.
"""

from __future__ import annotations

import enum
import os
from pathlib import Path

from .config import DestinationPolicy, get_locations, get_policy
from .destination import integrated_path_for
from .errors import OperationFailed, UserAborted
from .file_operations import copy_file, rename_file, send_to_trash, update_desktop_database_and_icon_caches
from .image_inspector import AppImageInspector, ImageInspector
from .locations import Locations
from .logger import get_logger
from .path_utils import abs_path, is_in_directory, same_file
from .prompts import Confirmation, Decision, ErrorReporter, default_confirmation, default_reporter
from .registry import Registrar
from .synthesizer import HelperTools, LauncherEntrySynthesizer, UpdateInformation
from .translations import load_action_translations

_logger = get_logger("integration")

OVERWRITE_QUESTION = (
    "An image with the same filename has already been integrated.\n\n"
    "Do you wish to overwrite the existing image?\n"
    "Choosing No will run the image once, and leave the system in its current state."
)
COPY_QUESTION = "Failed to move image to target location.\nTry to copy image instead?"


class IntegrationResult(enum.Enum):
    SUCCESSFUL = "successful"
    ABORTED = "aborted"
    FAILED = "failed"


class Integrator:
    def __init__(
        self,
        policy: DestinationPolicy,
        registrar: Registrar,
        synthesizer: LauncherEntrySynthesizer,
        confirmation: Confirmation,
        reporter: ErrorReporter,
        inspector: ImageInspector | None = None,
        locations: Locations | None = None,
    ):
        self.policy = policy
        self.registrar = registrar
        self.synthesizer = synthesizer
        self.confirmation = confirmation
        self.reporter = reporter
        self.inspector = inspector or AppImageInspector()
        # None skips the desktop database refresh
        self.locations = locations

    @classmethod
    def from_environment(
        cls,
        registrar: Registrar,
        translations_dir: str | Path | None = None,
        update_information: UpdateInformation | None = None,
        helpers: HelperTools | None = None,
    ) -> Integrator:
        """Integrator wired to the process-wide config and standard locations."""
        locations = get_locations()
        reporter = default_reporter()
        synthesizer = LauncherEntrySynthesizer(
            reporter=reporter,
            launcher_directories=locations.launcher_directories,
            helpers=helpers,
            translations=load_action_translations(translations_dir),
            update_information=update_information,
        )
        return cls(
            policy=get_policy(),
            registrar=registrar,
            synthesizer=synthesizer,
            confirmation=default_confirmation(),
            reporter=reporter,
            locations=locations,
        )

    # --- queries -----------------------------------------------------------

    def integrated_path(self, image_path: str | Path) -> Path:
        return integrated_path_for(os.path.abspath(image_path), self.policy, self.inspector)

    def is_integrated(self, image_path: str | Path) -> bool:
        return self.registrar.registered_path(abs_path(image_path)) is not None

    def is_in_destination(self, image_path: str | Path) -> bool:
        return is_in_directory(image_path, self.policy.root_directory)

    def wants_confirmation(self, image_path: str | Path) -> bool:
        """Whether the caller should ask before integrating ``image_path``."""
        return self.policy.ask_to_move and not self.is_in_destination(image_path)

    # --- state machine -----------------------------------------------------

    def _fail(self, message: str) -> OperationFailed:
        self.reporter.error(message)
        return OperationFailed(message)

    def _start(self, source: Path) -> Path:
        destination = self.integrated_path(source)
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise self._fail(f"Failed to create integration directory {destination.parent}:\n{e}") from e
        _logger.debug("integrating %s -> %s", source, destination)
        return destination

    def _relocate(self, source: Path, destination: Path) -> None:
        if same_file(source, destination):
            _logger.debug("image already in place: %s", destination)
            return

        if os.path.lexists(destination):
            decision = self.confirmation.ask(
                "Warning", OVERWRITE_QUESTION, (Decision.YES, Decision.NO), default=Decision.NO
            )
            if decision is not Decision.YES:
                raise UserAborted(f"not overwriting {destination}")
            self._remove_existing(destination)

        try:
            rename_file(source, destination)
        except OSError:
            self._copy_instead(source, destination)

    def _remove_existing(self, destination: Path) -> None:
        try:
            send_to_trash(destination)
            return
        except OSError as e:
            # e.g. no trash directory on this mount
            _logger.warning("cannot trash %s, removing it instead: %s", destination, e)
        try:
            os.remove(destination)
        except OSError as e:
            raise self._fail(f"Failed to remove existing image {destination}:\n{e}") from e

    def _copy_instead(self, source: Path, destination: Path) -> None:
        decision = self.confirmation.ask("Error", COPY_QUESTION, (Decision.YES, Decision.CANCEL), default=Decision.YES)
        if decision is not Decision.YES:
            raise OperationFailed(f"copying {source} declined")

        try:
            copy_file(source, destination)
        except OSError as e:
            raise self._fail(f"Failed to copy image to target location:\n{e}") from e

        try:
            os.remove(source)
        except OSError as e:
            _logger.warning("copied image, but could not remove the original %s: %s", source, e)

    def _register_and_synthesize(self, image_path: Path) -> Path:
        try:
            launcher_path = self.registrar.register(image_path)
        except OSError as e:
            raise self._fail(f"Failed to register image in system:\n{e}") from e

        if not launcher_path.is_file():
            raise self._fail(f"Couldn't find integrated image's launcher document: {launcher_path}")

        self.synthesizer.synthesize(launcher_path, image_path, resolve_collisions=True)
        return launcher_path

    def _refresh_caches(self) -> None:
        if self.locations is not None:
            update_desktop_database_and_icon_caches(self.locations)

    def integrate(self, image_path: str | Path) -> IntegrationResult:
        """Move ``image_path`` into the integration folder and write its launcher entry."""
        source = Path(os.path.abspath(image_path))
        try:
            destination = self._start(source)
            self._relocate(source, destination)
            self._register_and_synthesize(destination)
        except UserAborted as e:
            _logger.info("integration aborted: %s", e)
            return IntegrationResult.ABORTED
        except OperationFailed as e:
            _logger.warning("integration failed: %s", e)
            return IntegrationResult.FAILED

        self._refresh_caches()
        _logger.info("integrated %s", destination)
        return IntegrationResult.SUCCESSFUL

    def refresh(self, image_path: str | Path) -> IntegrationResult:
        """Rewrite the launcher entry of an image that is integrated already."""
        image = abs_path(image_path)
        try:
            self._register_and_synthesize(image)
        except OperationFailed as e:
            _logger.warning("refreshing launcher entry failed: %s", e)
            return IntegrationResult.FAILED

        self._refresh_caches()
        return IntegrationResult.SUCCESSFUL
