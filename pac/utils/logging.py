"""Logging setup for pac."""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(level: str = "WARNING", console: Optional[Console] = None) -> logging.Logger:
    """Set up logging for the ``pac`` logger hierarchy.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        console: Optional Rich console for output, stderr by default

    Returns:
        Configured ``pac`` logger
    """
    logger = logging.getLogger("pac")
    logger.setLevel(getattr(logging, level.upper()))
    logger.handlers.clear()
    logger.propagate = False

    if console is None:
        console = Console(stderr=True)

    handler = RichHandler(
        console=console, show_time=True, show_path=False, markup=False, rich_tracebacks=True
    )
    handler.setLevel(getattr(logging, level.upper()))
    handler.setFormatter(logging.Formatter(fmt="%(message)s", datefmt="[%X]"))
    logger.addHandler(handler)

    return logger
