"""
Desktop Wallpaper Handler

This module sets the desktop background to a local image file by dropping into whatever
mechanism the running platform provides. Each mechanism is a WallpaperSetter strategy with a
single capability: apply(path) -> bool. update_wallpaper tries the strategies for the current
platform in order and stops at the first one that succeeds.

Linux has no single wallpaper API, so the known desktop environments are tried in turn:

    GNOME   gsettings, org.gnome.desktop.background picture-uri (and picture-uri-dark)
    KDE     qdbus, a Plasma shell script that updates every desktop
    XFCE    xfconf-query, /backdrop/screen0/monitor0/workspace0/last-image
    feh     generic fallback used by many standalone window managers

A strategy whose command is missing or exits with a non-zero status simply reports failure
and the next one is tried. macOS uses AppleScript through osascript and Windows calls
SystemParametersInfoW from user32.

Settings schema for org.gnome.desktop.background:
https://github.com/GNOME/gsettings-desktop-schemas/blob/master/schemas/org.gnome.desktop.background.gschema.xml.in
"""

import logging
import subprocess
import sys
from pathlib import Path
from urllib.parse import unquote
from urllib.parse import urlparse

from apodwall.image_handler import InvalidImageError
from apodwall.image_handler import validate_image

logger = logging.getLogger(__name__)


class WallpaperUpdateError(Exception):
    """
    Raised when an attempt to update the desktop background fails.
    """

    pass


class WallpaperSetter:
    """
    A single way of applying a wallpaper. Subclasses either override apply() or provide
    commands(), a list of argument lists that are run in sequence and must all succeed.
    """

    name = "wallpaper setter"

    def commands(self, img_path: Path) -> list:
        raise NotImplementedError

    def apply(self, img_path: Path) -> bool:
        for args in self.commands(img_path):
            if not run_command(args):
                return False

        return True

    def __repr__(self):
        return f"{type(self).__name__}()"


def run_command(args: list) -> bool:
    """
    Run an external command, returning True when it exits with status 0. A missing executable
    counts as failure.
    """

    logger.debug("running %s", args[0])

    try:
        subprocess.run(
            args,
            check=True,
            stdin=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            stdout=subprocess.PIPE,
        )

    except FileNotFoundError:
        logger.debug("%s is not installed", args[0])
        return False

    except subprocess.CalledProcessError as error:
        logger.debug("%s exited with status %d", args[0], error.returncode)
        return False

    return True


class GnomeSetter(WallpaperSetter):
    name = "GNOME"

    def commands(self, img_path: Path) -> list:
        uri = img_path.as_uri()
        return [
            ["gsettings", "set", "org.gnome.desktop.background", "picture-uri", uri],
            ["gsettings", "set", "org.gnome.desktop.background", "picture-uri-dark", uri],
        ]


class KdeSetter(WallpaperSetter):
    name = "KDE Plasma"

    script = """
var allDesktops = desktops();
for (i=0;i<allDesktops.length;i++) {{
    d = allDesktops[i];
    d.wallpaperPlugin = "org.kde.image";
    d.currentConfigGroup = Array("Wallpaper", "org.kde.image", "General");
    d.writeConfig("Image", "{uri}");
}}
"""

    def commands(self, img_path: Path) -> list:
        return [
            [
                "qdbus",
                "org.kde.plasmashell",
                "/PlasmaShell",
                "org.kde.PlasmaShell.evaluateScript",
                self.script.format(uri=img_path.as_uri()),
            ]
        ]


class XfceSetter(WallpaperSetter):
    name = "XFCE"

    def commands(self, img_path: Path) -> list:
        return [
            [
                "xfconf-query",
                "-c",
                "xfce4-desktop",
                "-p",
                "/backdrop/screen0/monitor0/workspace0/last-image",
                "-s",
                str(img_path),
            ]
        ]


class FehSetter(WallpaperSetter):
    name = "feh"

    def commands(self, img_path: Path) -> list:
        return [["feh", "--bg-scale", str(img_path)]]


class MacOSSetter(WallpaperSetter):
    name = "macOS Finder"

    def commands(self, img_path: Path) -> list:
        script = (
            'tell application "Finder" to set desktop picture to POSIX file '
            f'"{img_path}"'
        )
        return [["osascript", "-e", script]]


class WindowsSetter(WallpaperSetter):
    name = "Windows"

    # Windows API constants
    SPI_SETDESKWALLPAPER = 0x0014
    SPIF_UPDATEINIFILE = 0x01
    SPIF_SENDCHANGE = 0x02

    def apply(self, img_path: Path) -> bool:
        import ctypes

        try:
            result = ctypes.windll.user32.SystemParametersInfoW(
                self.SPI_SETDESKWALLPAPER,
                0,
                str(img_path),
                self.SPIF_UPDATEINIFILE | self.SPIF_SENDCHANGE,
            )
        except (AttributeError, OSError) as error:
            logger.debug("SystemParametersInfoW unavailable: %s", error)
            return False

        return bool(result)


def setters_for_platform(platform: str = None) -> list:
    """
    Return the ordered wallpaper strategies for platform (default: sys.platform).
    """

    platform = platform or sys.platform

    if platform.startswith("linux") or platform.startswith("freebsd"):
        return [GnomeSetter(), KdeSetter(), XfceSetter(), FehSetter()]

    if platform == "darwin":
        return [MacOSSetter()]

    if platform in ("win32", "cygwin"):
        return [WindowsSetter()]

    return []


def update_wallpaper(img_path, setters: list = None, platform: str = None) -> WallpaperSetter:
    """
    Update the background image to the one at img_path. Returns the strategy that succeeded.
    Raise WallpaperUpdateError if the path is not an image or no strategy succeeds.
    """

    if str(img_path).startswith("file:"):
        img_path = Path(unquote(urlparse(str(img_path)).path))
    else:
        img_path = Path(img_path)

    wallpaper_location = img_path.expanduser().resolve().absolute()

    # subsequent operations will fail if path does not exist or is not a file, so catch this.
    if not wallpaper_location.exists() or not wallpaper_location.is_file():
        raise WallpaperUpdateError(
            f"Invalid path provided for image location: {img_path} does not exist."
        )

    try:
        validate_image(wallpaper_location)
    except InvalidImageError:
        raise WallpaperUpdateError(
            f"Invalid image type provided. {wallpaper_location.name} is not a valid image."
        )

    if setters is None:
        setters = setters_for_platform(platform)

    if not setters:
        raise WallpaperUpdateError(f"unsupported OS: {platform or sys.platform}")

    for setter in setters:
        logger.debug("trying %s", setter.name)
        if setter.apply(wallpaper_location):
            logger.info("wallpaper set with %s", setter.name)
            return setter

    raise WallpaperUpdateError("no supported desktop environment found")
