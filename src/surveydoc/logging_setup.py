"""Central logging configuration for scripts embedding the engine.

The library modules only create module loggers; applications call
``configure_logging()`` once to get a stdout handler on the root logger.
"""
from __future__ import annotations
import logging
from logging.config import dictConfig

_DICT_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s %(levelname)s:%(name)s:%(message)s",
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": "DEBUG",
            "formatter": "default",
            "stream": "ext://sys.stdout",
        }
    },
    "root": {"level": "INFO", "handlers": ["console"]},
    "loggers": {
        "surveydoc": {"level": "INFO", "propagate": True},
    },
}


def configure_logging(level: str = "INFO") -> None:
    """Configure logging once.

    If the root logger already has handlers, only the package level is
    adjusted so repeated calls do not duplicate output.
    """
    root = logging.getLogger()
    if not root.handlers:
        dictConfig(_DICT_CONFIG)
    logging.getLogger("surveydoc").setLevel(level.upper())
