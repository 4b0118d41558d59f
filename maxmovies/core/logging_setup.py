from __future__ import annotations

import logging

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install the service log format on the root logger.

    Does nothing when the hosting runtime already configured handlers, so an
    ASGI server's own logging setup wins.
    """
    root = logging.getLogger()
    if root.handlers:
        return
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
