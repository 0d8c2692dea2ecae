"""Logging setup for the command line and other entry points."""

from __future__ import annotations

import logging
import os
from typing import Final

from .errors import ConfigurationError

LOG_LEVEL_ENV: Final[str] = "SCHEMARECON_LOG_LEVEL"


def parse_log_level(name: str | None) -> int:
    """Translate ``DEBUG``/``info``/... into a ``logging`` level; ``None`` means INFO."""

    if name is None or not name.strip():
        return logging.INFO
    level = logging.getLevelNamesMapping().get(name.strip().upper())
    if level is None:
        raise ConfigurationError(f"Unknown log level: {name!r}")
    return level


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Initialise the root logger with a terse format suitable for CLI output.

    Without an explicit ``level`` the ``SCHEMARECON_LOG_LEVEL`` variable is
    consulted. Pass ``force=True`` to reconfigure an already configured root
    logger.
    """

    if level is None:
        level = parse_log_level(os.getenv(LOG_LEVEL_ENV))
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
