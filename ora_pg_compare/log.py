"""Handler setup for the ``ora_pg_compare`` logger.

Records carry run fields (``run_id``, ``kind``) through ``extra=``; the JSON
formatter copies them into each line, the text formatter ignores them.
"""
from __future__ import annotations

import json
import logging
import sys
from typing import IO

from ora_pg_compare.settings import settings

PACKAGE_LOGGER = "ora_pg_compare"
TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
RUN_FIELDS = ("run_id", "kind")


class JsonLineFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        line = {
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in RUN_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                line[field] = value
        if record.exc_info:
            line["error"] = self.formatException(record.exc_info)
        return json.dumps(line, default=str)


class _PackageHandler(logging.StreamHandler):
    pass


def setup_logging(level: str | None = None, json_lines: bool | None = None, stream: IO[str] | None = None) -> logging.Logger:
    """Attach one stream handler to the package logger; later calls return it unchanged."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    if any(isinstance(h, _PackageHandler) for h in logger.handlers):
        return logger

    level = (level or settings.log_level).upper()
    json_lines = settings.log_json if json_lines is None else json_lines

    handler = _PackageHandler(stream or sys.stdout)
    handler.setFormatter(JsonLineFormatter() if json_lines else logging.Formatter(TEXT_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level, logging.INFO))
    logger.propagate = False

    logger.info("Logging to %s level=%s json=%s", getattr(handler.stream, "name", "stream"), level, json_lines)
    return logger
