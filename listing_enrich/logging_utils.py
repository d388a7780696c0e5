"""
Logging utilities for the listing enrichment tools
"""

import logging
import os
import sys

PACKAGE_LOGGER = "listing_enrich"


def _level_from_env(default: int = logging.INFO) -> int:
    name = (os.getenv("LOG_LEVEL") or "").strip().upper()
    if not name:
        return default
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else default


def setup_logger(name: str, level: int = None) -> logging.Logger:
    """
    Set up a logger with console output

    Args:
        name: Logger name
        level: Logging level (defaults to LOG_LEVEL env var, then INFO)

    Returns:
        Configured logger
    """
    if level is None:
        level = _level_from_env()

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.DEBUG)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    handler.setFormatter(formatter)

    logger.addHandler(handler)

    return logger


def set_verbose(enabled: bool = True) -> None:
    """Switch every listing_enrich logger to DEBUG (or back to INFO)"""
    level = logging.DEBUG if enabled else logging.INFO
    for name, obj in logging.Logger.manager.loggerDict.items():
        if isinstance(obj, logging.Logger) and (name == PACKAGE_LOGGER or name.startswith(PACKAGE_LOGGER + ".")):
            obj.setLevel(level)
