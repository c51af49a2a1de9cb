"""Process-wide logging configuration."""

from __future__ import annotations

import logging

from orion_mint.core.settings import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure the root logger once for the service process."""
    resolved = (level or settings.log_level).upper()
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.getLogger("orion_mint").setLevel(resolved)
    # SQL echo is controlled by SQL_DEBUG, not by the application level.
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.sql_debug else logging.WARNING
    )
