"""Logging setup for jtlcompare: stderr handler, text or JSON lines."""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import orjson

LOG_LEVEL_ENV = "JTLCOMPARE_LOG_LEVEL"
LOG_FORMAT_ENV = "JTLCOMPARE_LOG_FORMAT"  # "json" | "text" (default)

ROOT_LOGGER_NAME = "jtlcompare"
TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"


def get_logger(name: str) -> logging.Logger:
    """Return the ``jtlcompare.<name>`` logger, configuring the package root on first use."""
    full_name = ROOT_LOGGER_NAME if name == ROOT_LOGGER_NAME else f"{ROOT_LOGGER_NAME}.{name}"
    logger = logging.getLogger(full_name)
    if not logging.getLogger(ROOT_LOGGER_NAME).handlers:
        configure_logging()
    return logger


def configure_logging(level: str | None = None, fmt: str | None = None) -> logging.Logger:
    """Attach the stderr handler to the package root logger.

    Explicit arguments win over the environment; calling again replaces the
    existing handler so the CLI can raise verbosity after modules were imported.
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    level_name = (level or os.environ.get(LOG_LEVEL_ENV) or "INFO").upper()
    root.setLevel(getattr(logging, level_name, logging.INFO))

    fmt_name = (fmt or os.environ.get(LOG_FORMAT_ENV) or "text").lower()
    handler = logging.StreamHandler(sys.stderr)
    if fmt_name == "json":
        handler.setFormatter(_JsonLineFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATEFMT))

    for old in list(root.handlers):
        root.removeHandler(old)
    root.addHandler(handler)
    return root


class _JsonLineFormatter(logging.Formatter):
    """One JSON object per record, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        obj: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            obj["exception"] = self.formatException(record.exc_info)
        return orjson.dumps(obj).decode("utf-8")
