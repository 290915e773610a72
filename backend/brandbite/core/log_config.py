# backend/brandbite/core/log_config.py
from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | int = "INFO") -> None:
    """
    Root logging setup for the API process.
    Safe to call more than once (tests build the app repeatedly).
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    root.setLevel(level)

    # SQL echo is controlled by the engine, keep the sqlalchemy logger quiet.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
