"""
app/logging_config.py — Application-wide logging setup.

Called once from the API lifespan and from each script entry point.
Every other module just does `logger = logging.getLogger(__name__)`.
"""

import logging
import sys

from app.config import settings

_DEV_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_PROD_FORMAT = '{"time":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","message":"%(message)s"}'

_NOISY_LOGGERS = [
    "sqlalchemy.engine",
    "httpx",
    "httpcore",
    "multipart",
]


def setup_logging(level: str | None = None, environment: str | None = None) -> None:
    """
    Configure the root logger.

    Args:
        level:       Log level name, defaults to settings.log_level.
        environment: "development" gives a readable format; anything else
                     emits one JSON-like object per line.
    """
    level = (level or settings.log_level).upper()
    environment = environment or settings.log_environment
    fmt = _DEV_FORMAT if environment == "development" else _PROD_FORMAT

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt))

    root = logging.getLogger()
    root.setLevel(level)
    # Replace handlers so repeated calls don't duplicate output
    root.handlers.clear()
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
