"""Logging configuration shared by the scripts and services."""

from __future__ import annotations

import logging
import sys

from link_manager.core.settings import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger with a single stdout handler.

    Args:
        level: Optional level name overriding ``settings.log_level``.
    """
    level_name = (level or settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    # SQL echo is controlled by SQL_DEBUG, not the application level.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
