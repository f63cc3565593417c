"""Logging setup for the ReelTalk service."""

from __future__ import annotations

import logging

from reeltalk.core.settings import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure the ``reeltalk`` logger hierarchy.

    Args:
        level: Optional level name overriding ``settings.log_level``.
    """
    resolved = (level or settings.log_level).upper()
    root = logging.getLogger("reeltalk")
    root.setLevel(resolved)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    if settings.sql_debug:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)
