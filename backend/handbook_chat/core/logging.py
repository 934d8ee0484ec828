"""Logging setup: one JSON object per line on stdout.

Structured fields are passed as ``extra={"ctx_<name>": value}`` and land under
``ctx`` in the payload, without the prefix.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

import orjson

LOG_LEVEL_ENV = "HBCHAT_LOG_LEVEL"
LOG_FORMAT_ENV = "HBCHAT_LOG_FORMAT"
_CTX_PREFIX = "ctx_"

# Client libraries that log every HTTP round trip at INFO.
_CHATTY_LOGGERS = ("httpx", "httpcore", "google_genai", "urllib3", "cachecontrol")


class JsonFormatter(logging.Formatter):
    """Render records as JSON with UTC millisecond timestamps."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        ctx = {
            key[len(_CTX_PREFIX) :]: value
            for key, value in record.__dict__.items()
            if key.startswith(_CTX_PREFIX)
        }
        if ctx:
            payload["ctx"] = ctx
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return orjson.dumps(payload, default=str).decode("utf-8")


def configure_logging(level: str | int | None = None, use_json: bool | None = None) -> None:
    """Install the stdout handler on the root logger; env vars fill unset arguments."""
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV, "INFO").upper()
    if use_json is None:
        use_json = os.environ.get(LOG_FORMAT_ENV, "json").lower() != "text"

    handler = logging.StreamHandler(sys.stdout)
    if use_json:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [handler]
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str = "handbook_chat") -> logging.Logger:
    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)


__all__ = ["JsonFormatter", "configure_logging", "get_logger"]
