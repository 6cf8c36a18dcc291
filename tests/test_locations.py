from __future__ import annotations

from pathlib import Path

from launcher_integrator.locations import SYSTEM_APPLICATIONS_DIR, Locations


def test_locations_under_root(tmp_path: Path) -> None:
    locs = Locations.under(tmp_path)

    assert locs.applications_dir == tmp_path / ".local/share/applications"
    assert locs.hicolor_dir == tmp_path / ".local/share/icons/hicolor"
    assert locs.config_file.name == "launcher_integrator.cfg"
    assert locs.launcher_directories == [tmp_path / "usr/share/applications", locs.applications_dir]


def test_locations_from_environment() -> None:
    locs = Locations.from_environment()

    assert locs.applications_dir.name == "applications"
    assert locs.icons_dir.name == "icons"
    assert locs.default_destination == Path.home() / "Applications"
    assert locs.launcher_directories[0] == SYSTEM_APPLICATIONS_DIR
