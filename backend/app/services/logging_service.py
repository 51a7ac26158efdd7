"""Process-wide logging setup."""

import logging
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def configure_logging(level: str = "INFO", fmt: Optional[str] = None) -> None:
    """Configure the root logger once.

    Args:
        level: Log level name (DEBUG, INFO, ...)
        fmt: Log record format, defaults to DEFAULT_FORMAT
    """
    global _configured

    root = logging.getLogger()
    root.setLevel(level.upper())

    if _configured:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    root.addHandler(handler)
    _configured = True
