from __future__ import annotations

import json
import logging
import sys
from logging import LogRecord
from typing import Any, Dict

from loguru import logger
from opentelemetry import trace


# Attributes every stdlib record carries; anything else was passed via ``extra=``.
_STDLIB_RECORD_FIELDS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}

_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite")


class InterceptHandler(logging.Handler):
    """Forward stdlib records (uvicorn, sqlalchemy, alembic) to Loguru."""

    def emit(self, record: LogRecord) -> None:  # pragma: no cover - bridging glue
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        extra = {key: value for key, value in vars(record).items() if key not in _STDLIB_RECORD_FIELDS}
        message = record.getMessage().replace("{", "{{").replace("}", "}}")

        target = logger.bind(**extra) if extra else logger
        target.opt(depth=6, exception=record.exc_info).log(level, message)


def _trace_fields() -> Dict[str, str]:
    span_context = trace.get_current_span().get_span_context()
    if not span_context.is_valid:
        return {}
    return {
        "trace_id": f"{span_context.trace_id:032x}",
        "span_id": f"{span_context.span_id:016x}",
    }


def _json_sink(metadata: Dict[str, Any]):
    def sink(message: "logger.Message") -> None:
        record = message.record
        payload: Dict[str, Any] = {
            "timestamp": record["time"].isoformat(),
            "level": record["level"].name.lower(),
            "message": record["message"],
            "logger": record["name"],
            **metadata,
            **_trace_fields(),
            **record["extra"],
        }
        if record["exception"] is not None:
            payload["exception"] = repr(record["exception"].value)
        sys.stdout.write(json.dumps(payload, default=str) + "\n")

    return sink


def configure_logging(
    *,
    service_name: str,
    environment: str,
    version: str,
    level: str = "INFO",
    json_output: bool = True,
) -> None:
    """Send Loguru and stdlib logging to one structured sink.

    Redemption services log with keyword context (``member_id``,
    ``redemption_id``, ``code``); the JSON sink flattens that context into
    the payload next to the active trace ids.
    """

    logger.remove()
    if json_output:
        metadata = {"service": service_name, "environment": environment, "version": version}
        logger.add(_json_sink(metadata), level=level, backtrace=False, diagnose=False)
    else:
        logger.add(sys.stderr, level=level, backtrace=False, diagnose=False)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


__all__ = ["InterceptHandler", "configure_logging"]
