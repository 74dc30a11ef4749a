"""Logging setup: rich-formatted records on stderr."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(verbose: bool = False, quiet: bool = False) -> logging.Logger:
    """Configure the root logger with a RichHandler and return the package logger.

    WARNING by default, DEBUG with ``verbose``, ERROR with ``quiet``.
    """
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        markup=False,
        show_time=verbose,
        show_path=verbose,
    )
    logging.basicConfig(
        level=level, format="%(message)s", datefmt="[%X]", handlers=[handler]
    )

    logger = logging.getLogger("gc_anatomy")
    logger.setLevel(level)
    return logger
