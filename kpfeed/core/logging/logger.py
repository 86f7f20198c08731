"""Structured logging utilities with run id propagation.

Standard output belongs to the line-protocol data stream, so every sink
configured here writes to standard error or to a file.
"""

from __future__ import annotations

import json
import os
import sys
import traceback
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime
from typing import IO, Any, Iterator
from uuid import uuid4

from loguru import logger

from kpfeed.core.logging.config import LogConfig

_RUN_ID_VAR: ContextVar[str | None] = ContextVar("kpfeed_run_id", default=None)
_CONTEXT_VAR: ContextVar[dict[str, Any]] = ContextVar("kpfeed_log_context", default={})


def _ensure_run_id() -> str:
    run_id = _RUN_ID_VAR.get()
    if run_id is None:
        run_id = uuid4().hex
        _RUN_ID_VAR.set(run_id)
    return run_id


def _patch_record(record: dict[str, Any]) -> None:
    extra = record.setdefault("extra", {})
    if not extra.get("run_id"):
        extra["run_id"] = _ensure_run_id()

    for key, value in _CONTEXT_VAR.get({}).items():
        if key != "run_id":
            extra.setdefault(key, value)


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _format_payload(record: dict[str, Any]) -> dict[str, Any]:
    extra = record.get("extra", {})
    context = {k: v for k, v in extra.items() if k != "run_id"}
    level_value = record.get("level")
    level_name = getattr(level_value, "name", None) or str(level_value or "INFO")
    payload: dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": level_name,
        "message": record.get("message"),
        "run_id": extra.get("run_id"),
    }
    if context:
        payload["context"] = context
    exception = record.get("exception")
    if exception:
        payload["exception"] = "".join(traceback.format_exception(*exception)).rstrip()
    return payload


class _StreamJsonSink:
    """Sink writing structured JSON payloads to a text stream."""

    def __init__(self, stream: IO[str] | None = None) -> None:
        self._stream = stream

    def __call__(self, message: Any) -> None:
        stream = self._stream or sys.stderr
        stream.write(json.dumps(_format_payload(message.record), default=_json_default))
        stream.write("\n")
        stream.flush()


class _FileJsonSink:
    """Sink appending JSON lines to a file path."""

    def __init__(self, path: str) -> None:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self._path = path

    def __call__(self, message: Any) -> None:
        with open(self._path, "a", encoding="utf-8") as file:
            file.write(json.dumps(_format_payload(message.record), default=_json_default))
            file.write("\n")


def _configure_from_config(config: LogConfig) -> None:
    handlers: list[dict[str, Any]] = []
    level = config.level.upper()
    if config.console_output:
        handlers.append({"sink": _StreamJsonSink(config.console_stream), "level": level})
    if config.file_output and config.file_path:
        handlers.append({"sink": _FileJsonSink(config.file_path), "level": level})

    logger.configure(handlers=handlers, patcher=_patch_record)


def configure_logging(level: str = "WARNING", **kwargs: Any) -> None:
    """Configure structured logging with the provided level and options."""

    _configure_from_config(LogConfig(level=level, **kwargs))


def get_logger(name: str | None = None):
    """Return the logger, bound to ``name`` when given."""

    if name:
        return logger.bind(logger_name=name)
    return logger


@contextmanager
def log_context(*, run_id: str | None = None, **extra: Any) -> Iterator[str]:
    """Bind a run id and extra metadata to every event logged inside the block."""

    context_token = _CONTEXT_VAR.set({**_CONTEXT_VAR.get({}), **extra})
    active_run = run_id or uuid4().hex
    run_token = _RUN_ID_VAR.set(active_run)

    try:
        yield active_run
    finally:
        _RUN_ID_VAR.reset(run_token)
        _CONTEXT_VAR.reset(context_token)


def current_run_id() -> str:
    """Return the active run id, generating one if required."""

    return _ensure_run_id()


configure_logging()


__all__ = [
    "configure_logging",
    "current_run_id",
    "get_logger",
    "log_context",
    "logger",
]
