"""Logging configuration for docgraph."""

import sys

from loguru import logger

LOG_FORMAT = "{time:HH:mm:ss} {level.icon} <cyan>{name}</cyan> {message}"


def configure_logging(*, verbose: bool = False) -> None:
    """Configure loguru for a load.

    Verbose mode lowers the level of docgraph's own modules to DEBUG; anything
    else logging through loguru stays at INFO either way.
    """
    logger.remove()
    level = "DEBUG" if verbose else "INFO"
    logger.add(
        sys.stderr,
        level="DEBUG",
        format=LOG_FORMAT,
        filter={"": "INFO", "docgraph": level},
        colorize=False,
    )
