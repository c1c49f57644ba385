"""Structured JSON logging on top of loguru.

Every event carries a ``trace_id`` plus the ``provider``, ``cycle`` and
``error_code`` fields at the top level of its payload. Values bound with
``logger.bind`` win over values set by :func:`log_context`.
"""

from __future__ import annotations

import json
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, Any, Iterator
from uuid import uuid4

from loguru import logger

from equiscan.core.logging.config import LogConfig

_TRACE_ID: ContextVar[str | None] = ContextVar("equiscan_trace_id", default=None)
_CONTEXT: ContextVar[dict[str, Any]] = ContextVar("equiscan_log_context", default={})

TOP_LEVEL_KEYS = ("provider", "cycle", "error_code")


def _trace_id() -> str:
    trace_id = _TRACE_ID.get()
    if trace_id is None:
        trace_id = uuid4().hex
        _TRACE_ID.set(trace_id)
    return trace_id


def _patch_record(record: dict[str, Any]) -> None:
    extra = record["extra"]
    extra.setdefault("trace_id", _trace_id())
    for key, value in _CONTEXT.get().items():
        if extra.get(key) is None:
            extra[key] = value


def _payload(record: dict[str, Any]) -> str:
    extra = dict(record["extra"])
    payload: dict[str, Any] = {
        "timestamp": record["time"].astimezone(timezone.utc).isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "trace_id": extra.pop("trace_id", None),
    }
    for key in TOP_LEVEL_KEYS:
        payload[key] = extra.pop(key, None)
    if extra:
        payload["context"] = extra
    if record["exception"] is not None:
        payload["exception"] = repr(record["exception"].value)
    return json.dumps(payload, default=_json_default)


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


class _StreamJsonSink:
    """Writes one JSON line per event; ``sys.stderr`` is resolved per write."""

    def __init__(self, stream: IO[str] | None = None) -> None:
        self._stream = stream

    def __call__(self, message: Any) -> None:
        stream = self._stream or sys.stderr
        stream.write(_payload(message.record) + "\n")
        stream.flush()


class _FileJsonSink:
    """Appends JSON lines to a file, creating its directory."""

    def __init__(self, path: str) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def __call__(self, message: Any) -> None:
        with self._path.open("a", encoding="utf-8") as file:
            file.write(_payload(message.record) + "\n")


def configure_logging(level: str = "INFO", **kwargs: Any) -> LogConfig:
    """Replace all loguru handlers with the JSON sinks described by ``LogConfig``."""

    config = LogConfig(level=level, **kwargs)
    handlers: list[dict[str, Any]] = []
    if config.console_output:
        handlers.append({"sink": _StreamJsonSink(config.console_stream), "level": config.level.upper()})
    if config.file_output and config.file_path:
        handlers.append({"sink": _FileJsonSink(config.file_path), "level": config.level.upper()})
    logger.configure(handlers=handlers, patcher=_patch_record, extra=config.extra)
    return config


@contextmanager
def log_context(*, trace_id: str | None = None, **extra: Any) -> Iterator[str]:
    """Attach a trace id and extra fields to every event logged inside the block."""

    active_trace = trace_id or uuid4().hex
    context_token = _CONTEXT.set({**_CONTEXT.get(), **extra})
    trace_token = _TRACE_ID.set(active_trace)
    try:
        yield active_trace
    finally:
        _TRACE_ID.reset(trace_token)
        _CONTEXT.reset(context_token)


configure_logging()


__all__ = ["configure_logging", "log_context", "logger"]
