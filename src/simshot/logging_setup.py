"""Logging configuration for the simshot entry points.

Logs go to stderr; stdout carries JSON results and the MCP stdio transport.
"""

import logging
import os
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

DEFAULT_LEVEL = "WARNING"


def resolve_level(level: Optional[str] = None) -> int:
    name = (level or os.environ.get("SIMSHOT_LOG_LEVEL") or DEFAULT_LEVEL).upper()
    value = logging.getLevelName(name)
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {name}")
    return value


def configure_logging(level: Optional[str] = None) -> None:
    """Send simshot logs to stderr through rich."""
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    logger = logging.getLogger("simshot")
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(resolve_level(level))
