"""
Structured logging utilities for the reference data merge.

Every progress line the merge emits (region offsets, per-file entry counts,
totals, output size) goes through ``log_event`` so that the same records can be
rendered either as a readable console summary or as JSON lines for build logs.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

__all__ = [
    "ConsoleFormatter",
    "JSONFormatter",
    "StructuredLogger",
    "get_logger",
    "log_event",
]

LOGGER_NAME = "APIRefKit.DataMerge"


class JSONFormatter(logging.Formatter):
    """Formatter emitting one JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        now = datetime.now(timezone.utc)
        payload: Dict[str, Any] = {
            "timestamp": now.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "message": record.getMessage(),
            "stage": getattr(record, "stage", None),
        }
        if hasattr(record, "extra_fields") and isinstance(record.extra_fields, dict):
            payload.update(record.extra_fields)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class ConsoleFormatter(logging.Formatter):
    """Plain message output; warnings and errors carry their level name."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if record.levelno >= logging.ERROR and not message.startswith("ERROR"):
            message = f"ERROR: {message}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


class StructuredLogger(logging.LoggerAdapter):
    """Logger adapter that enriches structured logs with shared context."""

    def __init__(
        self, logger: logging.Logger, base_fields: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(logger, {})
        self.base_fields: Dict[str, Any] = dict(base_fields or {})

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple[str, Dict[str, Any]]:
        """Merge adapter context into ``extra`` metadata for structured output."""

        extra = kwargs.setdefault("extra", {})
        fields = dict(self.base_fields)
        extra_fields = extra.get("extra_fields")
        if isinstance(extra_fields, dict):
            fields.update(extra_fields)
        extra["extra_fields"] = fields
        kwargs["extra"] = extra
        return msg, kwargs

    def bind(self, **fields: object) -> "StructuredLogger":
        """Attach additional persistent fields to the adapter and return ``self``."""

        self.base_fields.update({k: v for k, v in fields.items() if v is not None})
        return self


def get_logger(
    name: str = LOGGER_NAME,
    level: str = "INFO",
    fmt: str = "console",
    *,
    stream=None,
    base_fields: Optional[Dict[str, Any]] = None,
) -> StructuredLogger:
    """Return a ``StructuredLogger`` writing to ``stream`` (stdout by default).

    Calling this again with a different ``fmt`` or ``stream`` reconfigures the
    existing handler instead of stacking a second one.
    """

    logger = logging.getLogger(name)
    formatter: logging.Formatter = JSONFormatter() if fmt == "json" else ConsoleFormatter()
    handler = getattr(logger, "_datamerge_handler", None)
    if handler is not None:
        logger.removeHandler(handler)
    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    setattr(logger, "_datamerge_handler", handler)
    logger.propagate = False
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    return StructuredLogger(logger, base_fields)


def log_event(logger: logging.Logger, level: str, message: str, **fields: object) -> None:
    """Emit a structured log record using the ``extra_fields`` convention."""

    normalised_level = str(level).lower()
    base_stage = getattr(logger, "base_fields", {}).get("stage")
    if normalised_level in {"warning", "error"}:
        fields.setdefault("stage", base_stage or "unknown")
        error_code = fields.get("error_code")
        fields["error_code"] = str(error_code).upper() if error_code else "UNKNOWN"
    elif "stage" not in fields and base_stage is not None:
        fields["stage"] = base_stage

    emitter = getattr(logger, normalised_level, None)
    if not callable(emitter):
        raise AttributeError(f"Logger has no level '{level}'")
    emitter(message, extra={"extra_fields": fields})
