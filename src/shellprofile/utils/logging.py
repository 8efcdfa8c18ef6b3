"""Logging helpers for consistent instrumentation."""

from __future__ import annotations

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(
    level: str = "WARNING",
    rich_tracebacks: bool = True,
    console: Optional[Console] = None,
) -> None:
    """Configure the root logger with optional rich tracebacks.

    Log records go to stderr by default so they never interleave with the
    timing lines printed on stdout.
    """

    handler = RichHandler(
        console=console or Console(stderr=True),
        rich_tracebacks=rich_tracebacks,
        show_path=False,
    )
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )


__all__ = ["setup_logging"]
