"""Logging setup for the quotabar command line."""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

DEBUG_ENV_VAR = "QUOTABAR_DEBUG"


def debug_requested() -> bool:
    return os.environ.get(DEBUG_ENV_VAR, "").lower() in ("1", "true", "yes")


def configure_logging(verbose: bool = False) -> None:
    """Send quotabar log records to stderr through rich.

    Debug records are shown with ``--verbose`` or QUOTABAR_DEBUG=1,
    otherwise only warnings and errors.
    """
    level = logging.DEBUG if verbose or debug_requested() else logging.WARNING

    logger = logging.getLogger("quotabar")
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
