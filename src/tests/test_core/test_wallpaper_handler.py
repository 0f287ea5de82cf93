"""
Test wallpaper_handler

Validate that wallpaper strategies are selected per platform, tried in order, and that
failures are reported correctly.

External commands (gsettings, qdbus, xfconf-query, feh, osascript) are never actually run:
subprocess.run is patched and configured to succeed or fail for each test.

*** Fixtures ***
- test_image, huge_image, not_an_image (defined in conftest.py)
"""

import subprocess
import sys
from pathlib import Path
from unittest.mock import MagicMock
from unittest.mock import patch

import pytest
from PIL import Image

# following entities are tested in this module:
from apodwall.wallpaper_handler import FehSetter
from apodwall.wallpaper_handler import GnomeSetter
from apodwall.wallpaper_handler import KdeSetter
from apodwall.wallpaper_handler import MacOSSetter
from apodwall.wallpaper_handler import WallpaperSetter
from apodwall.wallpaper_handler import WallpaperUpdateError
from apodwall.wallpaper_handler import WindowsSetter
from apodwall.wallpaper_handler import XfceSetter
from apodwall.wallpaper_handler import setters_for_platform
from apodwall.wallpaper_handler import update_wallpaper


def fake_setter(succeeds: bool) -> MagicMock:
    setter = MagicMock(spec=WallpaperSetter)
    setter.name = "fake"
    setter.apply.return_value = succeeds
    return setter


@pytest.mark.parametrize(
    "platform, expected",
    [
        ("linux", [GnomeSetter, KdeSetter, XfceSetter, FehSetter]),
        ("darwin", [MacOSSetter]),
        ("win32", [WindowsSetter]),
        ("sunos5", []),
    ],
)
def test_setters_for_platform(platform, expected):

    assert [type(setter) for setter in setters_for_platform(platform)] == expected


def test_update_wallpaper_first_success_wins(test_image):

    setters = [fake_setter(False), fake_setter(True), fake_setter(True)]

    assert update_wallpaper(test_image, setters=setters) is setters[1]

    setters[0].apply.assert_called_once_with(test_image.resolve())
    setters[1].apply.assert_called_once_with(test_image.resolve())
    setters[2].apply.assert_not_called()


def test_update_wallpaper_all_fail(test_image):

    setters = [fake_setter(False), fake_setter(False)]

    with pytest.raises(WallpaperUpdateError, match="no supported desktop environment"):
        update_wallpaper(test_image, setters=setters)


def test_update_wallpaper_unsupported_platform(test_image):

    with pytest.raises(WallpaperUpdateError, match="unsupported OS"):
        update_wallpaper(test_image, platform="plan9")


def test_update_wallpaper_accepts_file_uri(test_image):

    setter = fake_setter(True)
    update_wallpaper(test_image.resolve().as_uri(), setters=[setter])

    setter.apply.assert_called_once_with(test_image.resolve())


def test_update_wallpaper_decodes_file_uri(tmp_path):

    path = tmp_path / "my pictures" / "a b%.jpg"
    path.parent.mkdir()
    Image.new("RGB", (16, 9)).save(path, format="JPEG")

    uri = path.resolve().as_uri()
    assert "%20" in uri

    setter = fake_setter(True)
    update_wallpaper(uri, setters=[setter])

    setter.apply.assert_called_once_with(path.resolve())


def test_update_wallpaper_oversized_image(huge_image):

    setter = fake_setter(True)

    assert update_wallpaper(huge_image, setters=[setter]) is setter
    setter.apply.assert_called_once_with(huge_image.resolve())


@pytest.mark.parametrize(
    "img_path",
    [
        "",
        "/not/a/real/absolute/path.jpg",
        "42",
    ],
)
def test_update_wallpaper_invalid_path(img_path):
    """
    Verify that update_wallpaper raises for an empty path, a path that doesn't exist or
    something that isn't a path at all. No strategy should be attempted.
    """

    setter = fake_setter(True)

    with pytest.raises(WallpaperUpdateError):
        update_wallpaper(Path(img_path), setters=[setter])

    setter.apply.assert_not_called()


def test_update_wallpaper_not_an_image(not_an_image):

    setter = fake_setter(True)

    with pytest.raises(WallpaperUpdateError, match="not a valid image"):
        update_wallpaper(not_an_image, setters=[setter])

    setter.apply.assert_not_called()


@patch("apodwall.wallpaper_handler.subprocess.run", autospec=True)
def test_gnome_sets_light_and_dark(fake_run, test_image):

    image = test_image.resolve()

    assert GnomeSetter().apply(image)

    commands = [call.args[0] for call in fake_run.call_args_list]
    assert commands == [
        ["gsettings", "set", "org.gnome.desktop.background", "picture-uri", image.as_uri()],
        ["gsettings", "set", "org.gnome.desktop.background", "picture-uri-dark", image.as_uri()],
    ]


@patch("apodwall.wallpaper_handler.subprocess.run", autospec=True)
def test_linux_falls_through_to_next_desktop(fake_run, test_image):
    """
    gsettings isn't installed, qdbus fails, xfconf-query succeeds. feh should never run.
    """

    def run(args, **kwargs):
        if args[0] == "gsettings":
            raise FileNotFoundError(args[0])
        if args[0] == "qdbus":
            raise subprocess.CalledProcessError(cmd=args, returncode=1)
        return subprocess.CompletedProcess(args=args, returncode=0)

    fake_run.side_effect = run

    setter = update_wallpaper(test_image, platform="linux")

    assert isinstance(setter, XfceSetter)
    programs = [call.args[0][0] for call in fake_run.call_args_list]
    assert programs == ["gsettings", "qdbus", "xfconf-query"]
    assert fake_run.call_args_list[-1].args[0][-1] == str(test_image.resolve())


@patch("apodwall.wallpaper_handler.subprocess.run", autospec=True)
def test_linux_nothing_available(fake_run, test_image):

    fake_run.side_effect = FileNotFoundError("missing")

    with pytest.raises(WallpaperUpdateError):
        update_wallpaper(test_image, platform="linux")

    assert fake_run.call_count == 4


def test_kde_script_points_at_image(test_image):

    image = test_image.resolve()
    [args] = KdeSetter().commands(image)

    assert args[:4] == [
        "qdbus",
        "org.kde.plasmashell",
        "/PlasmaShell",
        "org.kde.PlasmaShell.evaluateScript",
    ]
    assert f'd.writeConfig("Image", "{image.as_uri()}");' in args[4]


def test_macos_script_points_at_image(test_image):

    image = test_image.resolve()
    [args] = MacOSSetter().commands(image)

    assert args[:2] == ["osascript", "-e"]
    assert args[2] == (
        f'tell application "Finder" to set desktop picture to POSIX file "{image}"'
    )


@pytest.mark.skipif(sys.platform == "win32", reason="ctypes.windll exists on Windows")
def test_windows_setter_off_windows(test_image):
    """
    ctypes.windll only exists on Windows. Elsewhere the strategy reports failure instead of
    raising.
    """

    assert not WindowsSetter().apply(test_image)


def test_windows_setter_calls_user32(test_image):

    with patch("ctypes.windll", create=True, new=MagicMock()) as windll:
        windll.user32.SystemParametersInfoW.return_value = 1
        assert WindowsSetter().apply(test_image)
        windll.user32.SystemParametersInfoW.assert_called_once_with(
            0x0014, 0, str(test_image), 0x01 | 0x02
        )

        windll.user32.SystemParametersInfoW.return_value = 0
        assert not WindowsSetter().apply(test_image)
