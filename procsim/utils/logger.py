"""Logging helpers."""

import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_LEVEL = "INFO"


def setup_logger(name: str, level: Optional[str] = None,
                 verbose: bool = False) -> logging.Logger:
    """Create or fetch a logger with a single stream handler.

    Args:
        name: Logger name, usually the class name of the caller
        level: Log level name (DEBUG, INFO, ...). Keeps the current level
            of an already configured logger when omitted.
        verbose: Shortcut for level="DEBUG"

    Returns:
        Configured logger
    """
    logger = logging.getLogger(f"procsim.{name}")

    if verbose:
        level = "DEBUG"

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False
        logger.setLevel(level or DEFAULT_LEVEL)
    elif level:
        logger.setLevel(level)

    return logger
