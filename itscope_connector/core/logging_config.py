# itscope_connector/core/logging_config.py
"""
Logging setup shared by the web app, the scheduler and the CLI.

The connector's own loggers follow LOG_LEVEL; the HTTP, database and
scheduler libraries underneath are held at WARNING so a sync run reads as
one line per product or order.
"""

import logging
import os
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

QUIET_LOGGERS = (
    "httpx",
    "httpcore",
    "sqlalchemy",
    "sqlalchemy.engine",
    "asyncpg",
    "aiosqlite",
    "apscheduler",
    "apscheduler.executors.default",
)


def configure_logging(level: Optional[str] = None):
    """
    Configure the root handler and logger levels.

    ``level`` overrides the LOG_LEVEL environment variable (CLI --verbose).
    """
    level_name = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    app_level = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(level=app_level, format=LOG_FORMAT, handlers=[logging.StreamHandler()])

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("itscope_connector").setLevel(app_level)
    logging.getLogger("__main__").setLevel(app_level)

    logging.getLogger(__name__).info(f"Logging configured at level: {level_name}")
