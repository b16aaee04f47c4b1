"""Logging helpers shared by every schemagen module.

Modules obtain their logger with ``get_logger(__name__)``; the CLI calls
``configure_logging`` once to attach a rich console handler.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER_NAME = "schemagen"

_configured = False


def get_logger(name: str) -> logging.Logger:
    """Return a logger living under the ``schemagen`` namespace.

    Args:
        name: Usually ``__name__`` of the calling module.

    Returns:
        The logger instance.
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def configure_logging(level: int | str = logging.WARNING, console: Console | None = None) -> None:
    """Attach a ``RichHandler`` to the package root logger.

    Calling it again only adjusts the level.

    Args:
        level: Logging level name or number.
        console: Console to log to (defaults to stderr).
    """
    global _configured

    root = logging.getLogger(ROOT_LOGGER_NAME)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    root.setLevel(level)

    if _configured:
        return

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(handler)
    root.propagate = False
    _configured = True
