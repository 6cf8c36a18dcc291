from __future__ import annotations

import errno
import shutil
from pathlib import Path

import pytest

from launcher_integrator import integration
from launcher_integrator.config import DestinationPolicy
from launcher_integrator.desktop_file import DESKTOP_ENTRY_GROUP, DesktopFile
from launcher_integrator.integration import COPY_QUESTION, OVERWRITE_QUESTION, IntegrationResult, Integrator
from launcher_integrator.prompts import Decision
from launcher_integrator.synthesizer import HelperTools, LauncherEntrySynthesizer
from tests.helpers.fakes import FakeInspector, FakeRegistrar, RecordingReporter, ScriptedConfirmation


def _integrator(locations, *answers: Decision, registrar=None, ask_to_move: bool = True):
    reporter = RecordingReporter()
    confirmation = ScriptedConfirmation(*answers)
    synthesizer = LauncherEntrySynthesizer(
        reporter=reporter,
        launcher_directories=locations.launcher_directories,
        helpers=HelperTools(directory=Path("/opt/li/lib")),
        notifier=lambda: None,
    )
    integrator = Integrator(
        policy=DestinationPolicy(root_directory=locations.default_destination, ask_to_move=ask_to_move),
        registrar=registrar or FakeRegistrar(locations.applications_dir),
        synthesizer=synthesizer,
        confirmation=confirmation,
        reporter=reporter,
        inspector=FakeInspector(digest=bytes.fromhex("abcd")),
    )
    return integrator, confirmation, reporter


@pytest.fixture
def source(tmp_path: Path) -> Path:
    p = tmp_path / "Downloads" / "Foo.AppImage"
    p.parent.mkdir()
    p.write_bytes(b"payload")
    return p


def _expected(locations) -> Path:
    return locations.default_destination / "Foo_abcd.AppImage"


def test_integrated_path_appends_digest(locations, source: Path) -> None:
    integrator, _, _ = _integrator(locations)
    assert integrator.integrated_path(source) == _expected(locations)


def test_successful_integration(locations, source: Path) -> None:
    integrator, confirmation, reporter = _integrator(locations)

    assert integrator.integrate(source) is IntegrationResult.SUCCESSFUL

    dest = _expected(locations)
    assert dest.read_bytes() == b"payload"
    assert not source.exists()
    assert confirmation.asked == []
    assert reporter.errors == []
    assert integrator.is_integrated(dest)
    assert not integrator.is_integrated(source)

    launcher = integrator.registrar.registered_path(dest)
    doc = DesktopFile.load(launcher)
    assert doc.main.get_list("Actions") == ["Remove"]
    assert doc.get(DESKTOP_ENTRY_GROUP, "Name") == "Foo"


def test_image_already_in_place_is_not_moved(locations) -> None:
    dest = _expected(locations)
    dest.parent.mkdir(parents=True)
    dest.write_bytes(b"payload")
    integrator, confirmation, _ = _integrator(locations)

    assert integrator.integrate(dest) is IntegrationResult.SUCCESSFUL
    assert dest.read_bytes() == b"payload"
    assert confirmation.asked == []


def test_declining_overwrite_aborts_without_error(locations, source: Path) -> None:
    dest = _expected(locations)
    dest.parent.mkdir(parents=True)
    dest.write_bytes(b"older")
    integrator, confirmation, reporter = _integrator(locations, Decision.NO)

    assert integrator.integrate(source) is IntegrationResult.ABORTED

    assert confirmation.asked == [OVERWRITE_QUESTION]
    assert reporter.errors == []
    assert dest.read_bytes() == b"older"
    assert source.exists()
    assert list(locations.applications_dir.iterdir()) == []


def test_accepting_overwrite_trashes_existing_image(locations, source: Path, monkeypatch) -> None:
    dest = _expected(locations)
    dest.parent.mkdir(parents=True)
    dest.write_bytes(b"older")
    trashed: list[Path] = []

    def _trash(path):
        trashed.append(Path(path))
        Path(path).unlink()

    monkeypatch.setattr(integration, "send_to_trash", _trash)
    integrator, _, _ = _integrator(locations, Decision.YES)

    assert integrator.integrate(source) is IntegrationResult.SUCCESSFUL
    assert trashed == [dest]
    assert dest.read_bytes() == b"payload"


def test_untrashable_image_is_removed_instead(locations, source: Path, monkeypatch) -> None:
    dest = _expected(locations)
    dest.parent.mkdir(parents=True)
    dest.write_bytes(b"older")

    def _trash(path):
        raise PermissionError("cannot create trash directory")

    monkeypatch.setattr(integration, "send_to_trash", _trash)
    integrator, _, reporter = _integrator(locations, Decision.YES)

    assert integrator.integrate(source) is IntegrationResult.SUCCESSFUL
    assert reporter.errors == []
    assert dest.read_bytes() == b"payload"


def test_failure_to_remove_existing_image_is_reported(locations, source: Path, monkeypatch) -> None:
    dest = _expected(locations)
    dest.parent.mkdir(parents=True)
    dest.write_bytes(b"older")

    def _trash(path):
        raise OSError("trash is full")

    def _remove(path):
        raise PermissionError("read-only filesystem")

    monkeypatch.setattr(integration, "send_to_trash", _trash)
    monkeypatch.setattr(integration.os, "remove", _remove)
    integrator, _, reporter = _integrator(locations, Decision.YES)

    assert integrator.integrate(source) is IntegrationResult.FAILED
    assert len(reporter.errors) == 1
    assert dest.read_bytes() == b"older"
    assert source.exists()


def _cross_device_rename(src, dest):
    raise OSError(errno.EXDEV, "Invalid cross-device link")


def test_failed_move_falls_back_to_copy(locations, source: Path, monkeypatch) -> None:
    monkeypatch.setattr(integration, "rename_file", _cross_device_rename)
    integrator, confirmation, reporter = _integrator(locations, Decision.YES)

    assert integrator.integrate(source) is IntegrationResult.SUCCESSFUL

    assert confirmation.asked == [COPY_QUESTION]
    assert _expected(locations).read_bytes() == b"payload"
    assert not source.exists()
    assert reporter.errors == []


def test_declined_copy_fails_without_report(locations, source: Path, monkeypatch) -> None:
    monkeypatch.setattr(integration, "rename_file", _cross_device_rename)
    integrator, _, reporter = _integrator(locations, Decision.CANCEL)

    assert integrator.integrate(source) is IntegrationResult.FAILED
    assert reporter.errors == []
    assert source.exists()
    assert not _expected(locations).exists()


def test_copy_failure_is_reported(locations, source: Path, monkeypatch) -> None:
    def _copy(src, dest):
        raise OSError(errno.ENOSPC, "No space left on device")

    monkeypatch.setattr(integration, "rename_file", _cross_device_rename)
    monkeypatch.setattr(integration, "copy_file", _copy)
    integrator, _, reporter = _integrator(locations, Decision.YES)

    assert integrator.integrate(source) is IntegrationResult.FAILED
    assert len(reporter.errors) == 1
    assert "No space left" in reporter.errors[0]
    assert source.exists()


def test_registration_failure_is_reported(locations, source: Path) -> None:
    registrar = FakeRegistrar(locations.applications_dir, fail=True)
    integrator, _, reporter = _integrator(locations, registrar=registrar)

    assert integrator.integrate(source) is IntegrationResult.FAILED
    assert len(reporter.errors) == 1
    assert "register" in reporter.errors[0]


class _ForgetfulRegistrar(FakeRegistrar):
    def register(self, image_path: Path) -> Path:
        return self.launcher_path_for(image_path)


def test_missing_launcher_document_is_reported(locations, source: Path) -> None:
    integrator, _, reporter = _integrator(locations, registrar=_ForgetfulRegistrar(locations.applications_dir))

    assert integrator.integrate(source) is IntegrationResult.FAILED
    assert len(reporter.errors) == 1


class _BrokenDocumentRegistrar(FakeRegistrar):
    def register(self, image_path: Path) -> Path:
        path = self.launcher_path_for(image_path)
        path.write_text("not a desktop file\n", encoding="utf-8")
        return path


def test_synthesis_failure_fails_integration(locations, source: Path) -> None:
    integrator, _, reporter = _integrator(locations, registrar=_BrokenDocumentRegistrar(locations.applications_dir))

    assert integrator.integrate(source) is IntegrationResult.FAILED
    assert len(reporter.errors) == 1
    assert "Failed to load desktop file" in reporter.errors[0]


def test_refresh_rewrites_entry(locations, source: Path) -> None:
    integrator, _, _ = _integrator(locations)
    assert integrator.integrate(source) is IntegrationResult.SUCCESSFUL
    dest = _expected(locations)
    launcher = integrator.registrar.registered_path(dest)
    launcher.write_text(launcher.read_text(encoding="utf-8").replace("Actions=Remove;", ""), encoding="utf-8")

    assert integrator.refresh(dest) is IntegrationResult.SUCCESSFUL
    assert DesktopFile.load(launcher).main.get_list("Actions") == ["Remove"]


def test_wants_confirmation(locations, source: Path) -> None:
    integrator, _, _ = _integrator(locations)
    assert integrator.wants_confirmation(source)

    inside = locations.default_destination / "Bar.AppImage"
    assert not integrator.wants_confirmation(inside)
    assert integrator.is_in_destination(inside)

    quiet, _, _ = _integrator(locations, ask_to_move=False)
    assert not quiet.wants_confirmation(source)


def test_caches_refresh_only_with_locations(locations, source: Path, monkeypatch) -> None:
    refreshed = []
    monkeypatch.setattr(integration, "update_desktop_database_and_icon_caches", refreshed.append)

    integrator, _, _ = _integrator(locations)
    integrator.locations = locations
    assert integrator.integrate(source) is IntegrationResult.SUCCESSFUL
    assert refreshed == [locations]


def test_from_environment_wires_process_defaults(locations, tmp_path: Path, monkeypatch) -> None:
    policy = DestinationPolicy(root_directory=tmp_path / "Apps", ask_to_move=False)
    monkeypatch.setattr(integration, "get_locations", lambda: locations)
    monkeypatch.setattr(integration, "get_policy", lambda: policy)

    integrator = Integrator.from_environment(FakeRegistrar(locations.applications_dir))

    assert integrator.policy is policy
    assert integrator.locations is locations
    assert integrator.synthesizer.launcher_directories == locations.launcher_directories
    assert not integrator.wants_confirmation(tmp_path / "Foo.AppImage")


def test_interrupted_copy_leaves_no_partial_image(locations, source: Path, monkeypatch) -> None:
    source.write_bytes(b"x" * 7000)

    def _half_copy(src, dst, *, follow_symlinks=True):
        with open(src, "rb") as fsrc, open(dst, "wb") as fdst:
            fdst.write(fsrc.read(3500))
        raise OSError(errno.ENOSPC, "No space left on device")

    monkeypatch.setattr(integration, "rename_file", _cross_device_rename)
    monkeypatch.setattr(shutil, "copyfile", _half_copy)
    integrator, _, reporter = _integrator(locations, Decision.YES)

    assert integrator.integrate(source) is IntegrationResult.FAILED
    assert len(reporter.errors) == 1
    assert not _expected(locations).exists()
    assert list(locations.default_destination.iterdir()) == []
    assert source.read_bytes() == b"x" * 7000

    # nothing left over to ask about on the next attempt
    monkeypatch.undo()
    again, confirmation, _ = _integrator(locations)
    assert again.integrate(source) is IntegrationResult.SUCCESSFUL
    assert confirmation.asked == []
