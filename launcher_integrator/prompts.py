"""User-facing decisions and error reports.

The integration core asks questions through a ``Confirmation`` and reports
problems through an ``ErrorReporter``. Both block until answered; there is no
event-loop reentrancy. Message box implementations are used when a display is
available, headless ones otherwise.
"""

from __future__ import annotations

import contextlib
import enum
import os
import shutil
import subprocess
from abc import ABC, abstractmethod
from collections.abc import Sequence

from PySide6.QtGui import QKeySequence, QPalette
from PySide6.QtWidgets import QAbstractButton, QApplication, QMessageBox

from .logger import get_logger

_logger = get_logger("prompts")

FORCE_HEADLESS_ENV = "_FORCE_HEADLESS"
LUMINANCE_DARK_THRESHOLD = 128


class Decision(enum.Enum):
    YES = "yes"
    NO = "no"
    CANCEL = "cancel"


_BUTTONS = {
    Decision.YES: ("&Yes", QMessageBox.ButtonRole.YesRole, "button-yes", "Y"),
    Decision.NO: ("&No", QMessageBox.ButtonRole.NoRole, "button-no", "N"),
    Decision.CANCEL: ("&Cancel", QMessageBox.ButtonRole.RejectRole, "button-cancel", None),
}


def is_headless() -> bool:
    """Whether prompts must not open windows.

    ``_FORCE_HEADLESS`` forces headless mode. Otherwise ``xhost`` is asked whether
    a display accepts connections; without ``xhost`` the display variables decide.
    """
    if os.getenv(FORCE_HEADLESS_ENV):
        return True

    if shutil.which("xhost") is not None:
        try:
            rc = subprocess.run(
                ["xhost"],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                check=False,
            ).returncode
        except OSError as e:
            _logger.debug("xhost failed: %s", e)
        else:
            if rc in (0, 1):
                return rc == 1
            _logger.warning("unexpected exit code from xhost: %d", rc)

    return not (os.getenv("DISPLAY") or os.getenv("WAYLAND_DISPLAY"))


def _ensure_app() -> QApplication:
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    return app


def _is_palette_dark(pal: QPalette) -> bool:
    # Estimate whether a palette is dark by checking window color luminance
    w = pal.color(QPalette.ColorRole.Window)
    luminance = 0.299 * w.red() + 0.587 * w.green() + 0.114 * w.blue()
    return luminance < LUMINANCE_DARK_THRESHOLD


def build_dialog_style(theme: str | None = None) -> str:
    """Stylesheet for the confirmation buttons.

    If theme is None, it is derived from the current QApplication palette.
    """
    if theme is None:
        app = QApplication.instance()
        theme = "dark" if app is None or _is_palette_dark(app.palette()) else "light"

    if theme == "light":
        bg, text, border = "#e0e0e0", "#000000", "#bdbdbd"
    else:
        bg, text, border = "#424242", "#ffffff", "#616161"

    parts = [
        "QPushButton { min-width: 80px; min-height: 32px; padding: 6px 16px; font-size: 13px; "
        "font-weight: bold; border-radius: 4px; border: 2px solid transparent; }"
    ]
    for object_name in ("button-yes", "button-no", "button-cancel"):
        parts.append(
            f"QPushButton#{object_name} {{ background-color: {bg}; color: {text}; border: 2px solid {border}; }}"
        )
        parts.append(f"QPushButton#{object_name}:hover {{ border: 2px solid #757575; }}")
        parts.append(
            f"QPushButton#{object_name}:focus, QPushButton#{object_name}:default {{ "
            "border: 2px solid #4A90E2; outline: none; }"
        )
    return "\n".join(parts)


def build_confirmation_box(
    title: str,
    text: str,
    choices: Sequence[Decision],
    default: Decision,
    icon: QMessageBox.Icon = QMessageBox.Icon.Warning,
    parent=None,
) -> tuple[QMessageBox, dict[QAbstractButton, Decision]]:
    """Create (but do not show) a message box offering ``choices``.

    The escape key maps to the last choice, usually No or Cancel.
    """
    msg_box = QMessageBox(parent)
    msg_box.setWindowTitle(title)
    msg_box.setIcon(icon)
    msg_box.setText(text)

    buttons: dict[QAbstractButton, Decision] = {}
    default_btn = None
    for decision in choices:
        label, role, object_name, shortcut = _BUTTONS[decision]
        btn = msg_box.addButton(label, role)
        btn.setObjectName(object_name)
        if shortcut:
            with contextlib.suppress(Exception):
                btn.setShortcut(QKeySequence(shortcut))
        buttons[btn] = decision
        if decision is default:
            default_btn = btn

    if default_btn is not None:
        msg_box.setDefaultButton(default_btn)
    if buttons:
        msg_box.setEscapeButton(list(buttons)[-1])

    msg_box.setStyleSheet(build_dialog_style())
    msg_box.setMinimumWidth(500)
    return msg_box, buttons


class Confirmation(ABC):
    """Blocking yes/no(/cancel) question."""

    @abstractmethod
    def ask(
        self,
        title: str,
        text: str,
        choices: Sequence[Decision] = (Decision.YES, Decision.NO),
        default: Decision = Decision.NO,
    ) -> Decision:
        raise NotImplementedError()


class HeadlessConfirmation(Confirmation):
    """Answers every question with a fixed decision (its default if none given)."""

    def __init__(self, answer: Decision | None = None):
        self.answer = answer

    def ask(self, title, text, choices=(Decision.YES, Decision.NO), default=Decision.NO) -> Decision:
        decision = self.answer if self.answer in choices else default
        _logger.warning("%s: %s -> %s", title, text.replace("\n", " "), decision.value)
        return decision


class MessageBoxConfirmation(Confirmation):
    def __init__(self, parent=None):
        self.parent = parent

    def ask(self, title, text, choices=(Decision.YES, Decision.NO), default=Decision.NO) -> Decision:
        _ensure_app()
        msg_box, buttons = build_confirmation_box(title, text, choices, default, parent=self.parent)
        msg_box.exec()
        decision = buttons.get(msg_box.clickedButton(), Decision.CANCEL)
        _logger.debug("%s -> %s", title, decision.value)
        return decision


def default_confirmation() -> Confirmation:
    return HeadlessConfirmation() if is_headless() else MessageBoxConfirmation()


class ErrorReporter(ABC):
    @abstractmethod
    def error(self, message: str) -> None:
        raise NotImplementedError()

    @abstractmethod
    def warning(self, message: str) -> None:
        raise NotImplementedError()


class LogReporter(ErrorReporter):
    """Reports to the project log only."""

    def error(self, message: str) -> None:
        _logger.error("%s", message)

    def warning(self, message: str) -> None:
        _logger.warning("%s", message)


class MessageBoxReporter(LogReporter):
    """Logs, then shows a message box unless running headless."""

    def __init__(self, parent=None):
        self.parent = parent

    def _show(self, icon: QMessageBox.Icon, title: str, message: str) -> None:
        if is_headless():
            return
        _ensure_app()
        msg_box = QMessageBox(icon, title, message, QMessageBox.StandardButton.Ok, self.parent)
        msg_box.exec()

    def error(self, message: str) -> None:
        super().error(message)
        self._show(QMessageBox.Icon.Critical, "Error", message)

    def warning(self, message: str) -> None:
        super().warning(message)
        self._show(QMessageBox.Icon.Warning, "Warning", message)


def default_reporter() -> ErrorReporter:
    return LogReporter() if is_headless() else MessageBoxReporter()
