"""
apodwall

Fetch a random image from NASA's Astronomy Picture of the Day or the NASA Image and Video Library
and optionally make it your desktop wallpaper.

This module defines the entry point to the apodwall CLI. It defines a 'cli' command group which
collects the global options, builds the configuration for this run and stores it on the click
context. Exactly one subcommand ('apod' or 'nasa') then resolves an image url, prints it to
stdout and, with --wallpaper, downloads it into the cache and sets it as the desktop background.

Status messages and errors go to stderr. A failure prints a single line and exits with status 1.
"""

from io import StringIO
from pathlib import Path

import click

from apodwall.ApodwallContext import ApodwallContext
from apodwall.config import init_cache_dir
from apodwall.config import load_config
from apodwall.cli_utils.console import console
from apodwall.cli_utils.console import setup_logging
from apodwall.cli_utils.decorators import catch_errors
from apodwall.cli_utils.utils import attach_commands
from apodwall.cli_utils.utils import import_commands


@click.group()
@click.option(
    "--wallpaper",
    "-w",
    is_flag=True,
    default=False,
    help="Download and cache the image, then set it as the desktop wallpaper.",
)
@click.option(
    "--timeout",
    "-T",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="HTTP request timeout in seconds.  [default: 30]",
)
@click.option(
    "--api-key",
    type=str,
    default=None,
    help="NASA API key. Defaults to $DATA_GOV_API_KEY, then DEMO_KEY.",
)
@click.option(
    "--cache-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for cached API responses and images. Defaults to $APODWALL_CACHE_DIR or the user cache dir.",
)
@click.option(
    "--verbose",
    "verbosity",
    flag_value="verbose",
    help="Print detailed progress to stderr.",
)
@click.option(
    "--quiet",
    "verbosity",
    flag_value="quiet",
    help="Silence everything except the resolved url and errors.",
)
@click.version_option(package_name="apodwall")
@click.pass_context
@catch_errors
def cli(ctx: click.Context, wallpaper, timeout, api_key, cache_dir, verbosity):
    """
    apodwall

    Print the url of a random NASA image and optionally set it as your wallpaper.

    \b
    Get a random Astronomy Picture of the Day:
        $ apodwall apod

    \b
    Set a random image of Jupiter as your desktop wallpaper:
        $ apodwall --wallpaper nasa --query jupiter

    The url is the only output written to stdout, so apodwall composes with other tools:

    \b
        $ curl -sO "$(apodwall apod)"
    """

    verbosity = verbosity or "normal"
    setup_logging(verbosity)

    # if verbosity is set to quiet, capture all status output to a junk stream.
    # None restores rich's default of writing to the current sys.stderr.
    console.file = StringIO() if verbosity == "quiet" else None

    config = load_config(cache_dir=cache_dir, api_key=api_key, timeout=timeout)
    init_cache_dir(config)

    ctx.obj = ApodwallContext(config=config, wallpaper=wallpaper)
    ctx.call_on_close(config.session.close)


def main():

    commands = import_commands()
    attach_commands(cli, commands)
    cli()


if __name__ == "__main__":
    main()
