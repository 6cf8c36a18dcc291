"""Pytest configuration.

Qt runs offscreen and prompts run headless. ``QSaveFile`` and the message box
tests need a ``QApplication``; one is created at configure time and kept for
the whole session.
"""

from __future__ import annotations

import os

import pytest

from launcher_integrator.locations import Locations

_APP = None


def pytest_configure(config) -> None:  # noqa: ARG001
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    # prompts must never block a test run
    os.environ.setdefault("_FORCE_HEADLESS", "1")

    from PySide6.QtWidgets import QApplication

    global _APP
    # strong ref, the app must outlive every test
    _APP = QApplication.instance() or QApplication([])


def pytest_sessionfinish(session, exitstatus) -> None:  # noqa: ARG001
    from PySide6.QtWidgets import QApplication

    app = QApplication.instance()
    if app is not None:
        app.quit()
        app.processEvents()


@pytest.fixture
def locations(tmp_path) -> Locations:
    """An empty XDG-like home below ``tmp_path``."""
    locs = Locations.under(tmp_path / "home")
    for d in (locs.applications_dir, locs.icons_dir, locs.system_applications_dir):
        d.mkdir(parents=True)
    return locs
