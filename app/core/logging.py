"""
Logging configuration for the gateway.

Every module logs through ``logging.getLogger(__name__)``; this sets the shared
format once at startup.
"""

import logging
import sys

_NOISY_LOGGERS = ("googleapiclient.discovery_cache", "httpx", "httpcore")


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging and quiet chatty third-party loggers."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


__all__ = ["configure_logging"]
