from __future__ import annotations

from pathlib import Path

from launcher_integrator.cleanup import collect_stale_entries, implied_image_path, remove_icons
from launcher_integrator.desktop_file import DesktopFile
from tests.helpers.fakes import BASE_ENTRY


def _entry(locations, key: str, exec_path: str | Path, icon: str) -> Path:
    p = locations.applications_dir / f"appimagekit_{key}-App.desktop"
    p.write_text(BASE_ENTRY.format(name="App", exec_path=exec_path, icon=icon), encoding="utf-8")
    return p


def _icon(locations, size: str, name: str) -> Path:
    p = locations.hicolor_dir / size / "apps" / name
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_bytes(b"png")
    return p


def test_only_entries_of_missing_images_are_removed(locations, tmp_path: Path) -> None:
    image = tmp_path / "Present.AppImage"
    image.write_bytes(b"x")
    kept = _entry(locations, "aaa", image, "appimagekit_aaa_app")
    kept_text = kept.read_text(encoding="utf-8")
    kept_icon = _icon(locations, "48x48", "appimagekit_aaa_app.png")

    stale = _entry(locations, "bbb", tmp_path / "Gone.AppImage", "appimagekit_bbb_app")
    stale_icons = [
        _icon(locations, "48x48", "appimagekit_bbb_app.png"),
        _icon(locations, "256x256", "appimagekit_bbb_app.png"),
    ]

    assert collect_stale_entries(locations, verbose=True) == 1

    assert not stale.exists()
    assert not any(p.exists() for p in stale_icons)
    assert kept.read_text(encoding="utf-8") == kept_text
    assert kept_icon.exists()


def test_foreign_and_broken_documents_are_left_alone(locations, tmp_path: Path) -> None:
    foreign = locations.applications_dir / "firefox.desktop"
    foreign.write_text(BASE_ENTRY.format(name="Firefox", exec_path=tmp_path / "gone", icon="firefox"), encoding="utf-8")
    broken = locations.applications_dir / "appimagekit_ccc-Broken.desktop"
    broken.write_text("garbage without groups\n", encoding="utf-8")
    no_exec = locations.applications_dir / "appimagekit_ddd-NoExec.desktop"
    no_exec.write_text("[Desktop Entry]\nName=NoExec\nIcon=appimagekit_ddd\n", encoding="utf-8")

    assert collect_stale_entries(locations) == 0
    assert foreign.exists() and broken.exists() and no_exec.exists()


def test_missing_applications_directory(locations) -> None:
    locations.applications_dir.rmdir()
    assert collect_stale_entries(locations) == 0


def test_implied_image_path_prefers_try_exec() -> None:
    doc = DesktopFile.parse("[Desktop Entry]\nExec=/usr/bin/wrapper %U\nTryExec=/opt/My App.AppImage\n")
    assert implied_image_path(doc) == "/opt/My App.AppImage"


def test_implied_image_path_from_exec() -> None:
    doc = DesktopFile.parse('[Desktop Entry]\nExec="/home/u/My Apps/Foo.AppImage" --flag %U\n')
    assert implied_image_path(doc) == "/home/u/My Apps/Foo.AppImage"

    doc = DesktopFile.parse("[Desktop Entry]\nExec=/opt/Foo.AppImage %F\n")
    assert implied_image_path(doc) == "/opt/Foo.AppImage"

    assert implied_image_path(DesktopFile.parse("[Desktop Entry]\nName=X\n")) is None
    assert implied_image_path(DesktopFile.parse("[Desktop Entry]\nExec=\n")) == ""


def test_remove_icons_ignores_empty_name(locations) -> None:
    icon = _icon(locations, "48x48", "anything.png")
    assert remove_icons("", locations.icons_dir) == 0
    assert icon.exists()
