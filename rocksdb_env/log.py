"""Logging setup for the CLI.

Standard output is reserved for the export lines, so all diagnostics go
through a rich handler bound to standard error.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(level: str = "INFO", console: Console | None = None) -> None:
    """Route package logging to a rich handler on stderr.

    Args:
        level: Logging level name.
        console: Console to log to; a new stderr console if not provided.
    """
    if console is None:
        console = Console(stderr=True)

    handler = RichHandler(
        console=console,
        show_path=False,
        rich_tracebacks=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger("rocksdb_env")
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False


__all__ = ["configure_logging"]
