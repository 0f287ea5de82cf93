"""
apodwall CLI Utilities

This module contains utilities for working across Click subcommands: delivering a resolved
image url (printing it, caching the image, updating the desktop) and importing subcommands
from the subcommands package.
"""

import importlib
import pkgutil

import click
from rich.markup import escape

from apodwall import image_handler
from apodwall import wallpaper_handler
from apodwall.ApodwallContext import ApodwallContext
from apodwall.cli_utils.console import confirm_success
from apodwall.cli_utils.console import describe
from apodwall.cli_utils.console import emit
from apodwall.cli_utils.console import warn


def deliver(url: str, obj: ApodwallContext):
    """
    Write the resolved url to stdout. If the user asked for a new wallpaper, download the image
    into the cache (or reuse the cached copy) and apply it to the desktop.
    """

    emit(url)

    if not obj.wallpaper:
        return None

    describe(f":earth_asia-emoji: getting image from {escape(url)} ...")
    file = image_handler.download_image(url, obj.config)
    confirm_success(
        f":floppy_disk-emoji: saved '{file.name}' to {file.parent}"
    )

    setter = wallpaper_handler.update_wallpaper(file)
    confirm_success(
        f":white_check_mark-emoji: updated wallpaper to {file} ({setter.name})"
    )

    return file


def import_commands(package: str = "apodwall.subcommands") -> list:
    """
    Retrieve the click Commands defined in the modules of package. Default package is the built in
    subcommands package for commands that come pre-installed with apodwall.

    A valid apodwall command module defines a "cli" function that is wrapped as a click Command
    object. Set the 'name' keyword argument in the @click.command decorator to set the name of the
    command intended for the end user.
    """

    commands = []
    subcommands = importlib.import_module(package)

    for module_info in sorted(pkgutil.iter_modules(subcommands.__path__), key=lambda m: m.name):
        name = module_info.name
        if name.startswith("_"):
            continue

        module = importlib.import_module(f"{package}.{name}")

        try:
            cli = getattr(module, "cli")
            commands.append(cli)

        except AttributeError:
            warn(f"Cannot add command {name}: no 'cli' function found.")

    return commands


def attach_commands(group: click.Group, commands: list):
    """
    Attach each command in a list of click Command objects to a provided group. Useful when
    retrieving a dynamic list of subcommands with import_commands().
    """

    for command in commands:
        group.add_command(command)
