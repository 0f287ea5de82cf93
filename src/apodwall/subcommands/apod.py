"""
apodwall apod

This module defines the 'apod' subcommand, which picks a random Astronomy Picture of the Day
between 1995-06-16 and today and prints the url of its highest resolution image.
"""

import click

from apodwall import apod_handler
from apodwall.ApodwallContext import ApodwallContext
from apodwall.cli_utils.console import describe
from apodwall.cli_utils.decorators import catch_errors
from apodwall.cli_utils.utils import deliver


@click.command(name="apod")
@click.pass_obj
@catch_errors
def cli(obj: ApodwallContext):
    """
    Get a random Astronomy Picture of the Day.
    """

    describe(":game_die-emoji: 'apod' picking a random Astronomy Picture of the Day ...")

    url = apod_handler.resolve_apod(obj.config)
    deliver(url, obj)
