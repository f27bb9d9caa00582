"""
JSON logging for the API process and the job runner.
"""

import logging
import sys
from typing import Any

from pythonjsonlogger import jsonlogger

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
FIELD_NAMES = {"asctime": "timestamp", "levelname": "level", "name": "logger"}


def _has_json_handler(logger: logging.Logger) -> bool:
    return any(isinstance(h.formatter, jsonlogger.JsonFormatter) for h in logger.handlers)


def configure_logging(app_name: str, log_level: str = "INFO") -> logging.Logger:
    """
    Send every record to stdout as one JSON object per line.

    The handler sits on the root logger, so module loggers from
    ``get_logger(__name__)`` need no setup of their own. Calling this twice
    (app factory plus job runner in one process) only adjusts the level.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)
    if not _has_json_handler(root):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            jsonlogger.JsonFormatter(
                LOG_FORMAT, rename_fields=FIELD_NAMES, datefmt="%Y-%m-%dT%H:%M:%S"
            )
        )
        root.addHandler(handler)

    return logging.getLogger(app_name)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class JobLogger(logging.LoggerAdapter):
    """Adds the adapter's fields (e.g. ``job``) to each record's JSON."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs
