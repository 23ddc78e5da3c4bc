from __future__ import annotations

import logging


FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Send package logs to stderr at ``level``.

    Only the ``immo_watch`` logger gets a handler, so uvicorn keeps its own
    formatting for access and error logs.
    """
    logger = logging.getLogger("immo_watch")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(FORMAT))
        logger.addHandler(handler)
