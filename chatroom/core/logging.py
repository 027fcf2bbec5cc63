# chatroom/core/logging.py

import logging
import os
import sys


DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Libraries that log every frame or request at INFO
QUIET_LOGGERS = ("websockets", "httpx", "uvicorn.access")


def setup_logging(level_name: str | None = None) -> None:
    """
    Point the chat server's logs (room changes, broadcasts, storage
    errors) at stdout.

    The level comes from ``level_name``, else LOG_LEVEL, else INFO. When
    uvicorn has already installed handlers only the level is changed, so
    lines are not printed twice.
    """
    level = getattr(logging, (level_name or os.getenv("LOG_LEVEL", "INFO")).upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    if root_logger.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
    root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> logging.Logger:
    """Module logger, e.g. ``get_logger(__name__)`` -> "chatroom.main"."""
    return logging.getLogger(name)
