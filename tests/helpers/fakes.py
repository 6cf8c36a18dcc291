"""Test doubles for the collaborators of the integration core."""

from __future__ import annotations

from pathlib import Path

from launcher_integrator.image_inspector import ImageFormat, ImageInspector
from launcher_integrator.prompts import Confirmation, Decision, ErrorReporter
from launcher_integrator.registry import Registrar, image_key
from launcher_integrator.synthesizer import UpdateInformation

BASE_ENTRY = """[Desktop Entry]
Type=Application
Name={name}
Exec={exec_path}
Icon={icon}
Categories=Utility;
"""


class FakeInspector(ImageInspector):
    def __init__(
        self,
        image_format: ImageFormat = ImageFormat.TYPE_2,
        digest: bytes | None = None,
        embedded: tuple[int, int] | None = None,
    ):
        self.format = image_format
        self.digest = digest
        self.embedded = embedded
        self.content_calls = 0

    def image_format(self, path: Path) -> ImageFormat:
        return self.format

    def embedded_digest_range(self, path: Path) -> tuple[int, int] | None:
        return self.embedded

    def content_digest(self, path: Path) -> bytes | None:
        self.content_calls += 1
        return self.digest


class RecordingReporter(ErrorReporter):
    def __init__(self):
        self.errors: list[str] = []
        self.warnings: list[str] = []

    def error(self, message: str) -> None:
        self.errors.append(message)

    def warning(self, message: str) -> None:
        self.warnings.append(message)


class ScriptedConfirmation(Confirmation):
    """Answers questions in order and remembers what was asked."""

    def __init__(self, *answers: Decision):
        self.answers = list(answers)
        self.asked: list[str] = []

    def ask(self, title, text, choices=(Decision.YES, Decision.NO), default=Decision.NO) -> Decision:
        self.asked.append(text)
        if not self.answers:
            raise AssertionError(f"unexpected question: {text}")
        return self.answers.pop(0)


class FakeRegistrar(Registrar):
    """Writes a minimal launcher document the way base registration names it."""

    def __init__(self, applications_dir: Path, name: str = "Foo", fail: bool = False):
        super().__init__(applications_dir)
        self.name = name
        self.fail = fail
        self.registered: list[Path] = []

    def launcher_path_for(self, image_path: Path) -> Path:
        return self.applications_dir / f"appimagekit_{image_key(image_path)}-{self.name}.desktop"

    def register(self, image_path: Path) -> Path:
        if self.fail:
            raise PermissionError("registration refused")
        self.applications_dir.mkdir(parents=True, exist_ok=True)
        path = self.launcher_path_for(image_path)
        path.write_text(
            BASE_ENTRY.format(name=self.name, exec_path=image_path, icon=f"appimagekit_{image_key(image_path)}_foo"),
            encoding="utf-8",
        )
        self.registered.append(image_path)
        return path


class StaticUpdateInformation(UpdateInformation):
    def __init__(self, available: bool):
        self.available = available

    def has_update_information(self, image_path: Path) -> bool:
        return self.available
