from __future__ import annotations

import logging.config
import os
import sys
from typing import Any, Dict, Optional

# Third-party loggers that emit a line per request or per job tick at INFO.
_QUIET_LOGGERS = ("httpx", "httpcore", "apscheduler")


def _handler(level: str) -> Dict[str, Any]:
    destination = os.getenv("LOG_DESTINATION", "stdout").lower()
    if destination == "file":
        log_file = os.getenv("LOG_FILE")
        if not log_file:
            raise RuntimeError("LOG_FILE is required when LOG_DESTINATION=file")
        return {
            "class": "logging.FileHandler",
            "level": level,
            "filename": log_file,
            "formatter": "keyvalue",
        }
    return {
        "class": "logging.StreamHandler",
        "level": level,
        "stream": sys.stdout if destination == "stdout" else sys.stderr,
        "formatter": "keyvalue",
    }


def configure_logging(level: Optional[str] = None) -> None:
    """Route every logger through one handler picked by LOG_DESTINATION.

    ``feedletter.*`` loggers follow LOG_LEVEL (or ``level``); the chatty
    HTTP and scheduler libraries are held at WARNING.
    """
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "keyvalue": {
                    "format": "%(asctime)s level=%(levelname)s logger=%(name)s %(message)s",
                }
            },
            "handlers": {"default": _handler(level)},
            "loggers": {
                "feedletter": {"level": level},
                **{name: {"level": "WARNING"} for name in _QUIET_LOGGERS},
            },
            "root": {"handlers": ["default"], "level": level},
        }
    )
