"""
apodwall nasa

This module defines the 'nasa' subcommand, which searches the NASA Image and Video Library for a
keyword and prints the url of the original file of one random match.
"""

import click
from rich.markup import escape

from apodwall import nasa_image_handler
from apodwall.ApodwallContext import ApodwallContext
from apodwall.cli_utils.console import describe
from apodwall.cli_utils.decorators import catch_errors
from apodwall.cli_utils.utils import deliver


@click.command(name="nasa")
@click.option(
    "--query",
    "-q",
    default=nasa_image_handler.DEFAULT_QUERY,
    show_default=True,
    help="Search the NASA Image and Video Library for this text, e.g. nasa -q 'crab nebula'",
)
@click.pass_obj
@catch_errors
def cli(obj: ApodwallContext, query):
    """
    Get a random image from the NASA Image and Video Library.
    """

    describe(f":telescope-emoji: 'nasa' searching NASA images for '{escape(query)}' ...")

    url = nasa_image_handler.resolve_nasa_image(obj.config, query)
    deliver(url, obj)
