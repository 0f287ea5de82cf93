"""
ApodwallContext

This module defines the ApodwallContext dataclass, which is stored on the click context by the
'cli' group and handed to whichever subcommand is invoked. It carries the configuration built for
this run and the global options that change what a subcommand does with the url it resolves.
"""

from dataclasses import dataclass

from apodwall.config import ApodwallConfig


@dataclass
class ApodwallContext:
    """
    Application data passed from the command group to subcommands.
    """

    config: ApodwallConfig
    wallpaper: bool = False
