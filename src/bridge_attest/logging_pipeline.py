"""Structured logging utilities for the bridge operator tooling."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import TextIO
from uuid import uuid4

__all__ = ["JsonFormatter", "configure_logging"]

PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_STRUCTURED_RESERVED_KEYS: frozenset[str] = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "message",
        "asctime",
    }
)


class JsonFormatter(logging.Formatter):
    """Render log records as JSON with their ``extra`` fields as context."""

    def __init__(self, *, default_trace_id: str | None = None) -> None:
        super().__init__()
        self._default_trace_id = default_trace_id

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - inherited
        message = record.getMessage()
        trace_id = getattr(record, "trace_id", None) or self._default_trace_id

        exception_text: str | None = None
        if record.exc_info:
            exception_text = self.formatException(record.exc_info)
        elif record.exc_text:
            exception_text = record.exc_text

        context: dict[str, object] = {}
        for key, value in record.__dict__.items():
            if key in _STRUCTURED_RESERVED_KEYS or key == "trace_id":
                continue
            context[key] = value

        payload: dict[str, object] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": message,
            "trace_id": trace_id,
            "context": context,
        }
        if exception_text:
            payload["exception"] = exception_text

        return json.dumps(payload, default=str)


def configure_logging(
    *,
    level: int = logging.WARNING,
    json_output: bool = False,
    stream: TextIO | None = None,
    trace_id: str | None = None,
) -> logging.Handler:
    """Attach a single stream handler to the ``bridge_attest`` logger.

    Calling this again replaces the handler installed by a previous call,
    so the CLI can be invoked repeatedly in one process.

    Args:
        level: Logging verbosity level.
        json_output: Emit one JSON object per record instead of plain text.
        stream: Target stream, ``sys.stderr`` when omitted.
        trace_id: Trace identifier stamped on JSON records. A random one is
            generated when omitted.

    Returns:
        The installed handler.
    """

    logger = logging.getLogger("bridge_attest")
    for existing in list(logger.handlers):
        if getattr(existing, "_bridge_attest_handler", False):
            logger.removeHandler(existing)

    handler = logging.StreamHandler(stream)
    if json_output:
        handler.setFormatter(JsonFormatter(default_trace_id=trace_id or str(uuid4())))
    else:
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT))
    handler._bridge_attest_handler = True  # type: ignore[attr-defined]

    logger.addHandler(handler)
    logger.setLevel(level)
    return handler
