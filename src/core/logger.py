"""Logging de la aplicación (stdlib logging + Rich)."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(level: int | str = logging.WARNING) -> None:
    """Configura los loggers del proyecto (idempotente).

    Los módulos usan `logging.getLogger(__name__)`; los paquetes `core`,
    `adapters` y `cli` cuelgan del mismo handler.
    """

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        log_time_format="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(logging.Formatter("%(name)s | %(message)s"))

    for name in ("core", "adapters", "cli"):
        log = logging.getLogger(name)
        log.handlers = [handler]
        log.setLevel(level)
        log.propagate = False
