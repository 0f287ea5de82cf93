"""
apodwall console utilities

This module provides application-wide access to Rich Console objects for writing
to stdout and stderr. Status messages, warnings and failures are written to stderr
so that stdout only ever carries machine-readable output (the resolved image url),
which keeps apodwall composable in shell pipelines, e.g.

    $ curl -sO "$(apodwall apod)"

Library modules never print directly. They log through the standard logging module
and setup_logging attaches a RichHandler so those records are rendered on the same
stderr console as everything else.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.theme import Theme

apodwall_theme = Theme(
    {"warning": "orange_red1", "fail": "bold red", "confirm": "", "describe": "dim"}
)

console = Console(theme=apodwall_theme, stderr=True)
error_console = Console(theme=apodwall_theme, stderr=True)
machine_console = Console(theme=apodwall_theme, highlight=False, soft_wrap=True)

LOG_LEVELS = {
    "verbose": logging.DEBUG,
    "normal": logging.WARNING,
    "quiet": logging.ERROR,
}


"""
Formatting helpers
"""


def warn(msg: str):
    """
    Format msg and print to stderr.
    """

    error_console.print(
        f":exclamation_mark-emoji: [bold]warning: [/] {escape(msg)}", style="warning"
    )


def describe(msg: str, **kwargs):
    """
    Format descriptive msg and print to stderr.
    """

    console.print(f"{msg}", style="describe", **kwargs)


def confirm_success(msg: str, **kwargs):
    """
    Format confirmation msg and print to stderr. Accept any additional kwargs that console.print from
    rich module exposes.
    """

    console.print(f"{msg}", style="confirm", **kwargs)


def fail(msg: str):
    """
    Format failure msg as a single line and print to stderr.
    """

    error_console.print(f":x-emoji: failed. {escape(msg)}", style="fail", soft_wrap=True)


def emit(value: str):
    """
    Write value to stdout with no markup, highlighting or wrapping applied. This is the
    only output a successful run produces on stdout.
    """

    machine_console.print(value, markup=False, emoji=False)


def setup_logging(verbosity: str = "normal") -> logging.Logger:
    """
    Route records from the apodwall logger hierarchy to the stderr console. Calling this
    more than once replaces the previous handler instead of stacking a new one.
    """

    logger = logging.getLogger("apodwall")
    logger.setLevel(LOG_LEVELS.get(verbosity, logging.WARNING))

    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(console=error_console, show_time=False, show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False

    return logger
