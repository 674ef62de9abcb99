"""Logging setup for the command line."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)


def setup_logging(verbosity: int = 0) -> None:
    """Route log records to stderr through rich, ``-v`` per step."""
    level = _LEVELS[min(max(verbosity, 0), len(_LEVELS) - 1)]
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=verbosity > 1,
        rich_tracebacks=True,
    )
    root = logging.getLogger()
    for existing in list(root.handlers):
        if isinstance(existing, RichHandler):
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)
    # urllib3 and the kubernetes client are chatty at debug
    for name in ("urllib3", "kubernetes"):
        logging.getLogger(name).setLevel(max(level, logging.INFO))
