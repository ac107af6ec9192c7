"""Logging setup shared by the CLI and the interactive prompt."""
from __future__ import annotations

import logging
import os
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOG_LEVEL_ENV = "SHELLCAST_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"


def setup_logging(level: Optional[str] = None) -> None:
    """Route ``shellcast`` loggers to stderr through rich.

    Args:
        level: Log level override. Falls back to ``SHELLCAST_LOG_LEVEL``, then WARNING.
    """
    level_name = (level or os.environ.get(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL)).upper()
    log_level = getattr(logging, level_name, logging.WARNING)

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=log_level == logging.DEBUG,
        rich_tracebacks=True,
    )
    logging.basicConfig(
        level=log_level,
        format="%(name)s: %(message)s",
        datefmt="%H:%M:%S",
        handlers=[handler],
        force=True,
    )
