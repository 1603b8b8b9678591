"""
Logging configuration for the csindex command line.

Diagnostics go to stderr through rich; stdout is reserved for command output
such as the --list root listing.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

from csindex.core.config import LoggingConfig

_HANDLER_NAME = "csindex-stderr"


def configure_logging(config: LoggingConfig, verbose: bool = False) -> logging.Logger:
    """
    Install a single stderr handler on the csindex logger.

    Calling it again replaces the previous handler instead of stacking a
    second one.

    Args:
        config: Logging section of the configuration
        verbose: Force DEBUG level

    Returns:
        The configured package logger
    """
    level = logging.DEBUG if verbose else logging.getLevelName(config.level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    root_logger = logging.getLogger("csindex")
    for handler in list(root_logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            root_logger.removeHandler(handler)

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=False,
        markup=False,
    )
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(config.format))
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    return root_logger
