"""Utility helpers shared across CLI commands."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence

import typer

from kpfeed.core.config import ConfigManager
from kpfeed.core.exceptions import (
    ConfigurationError,
    CursorStoreError,
    EncodingError,
    FormatError,
    KpFeedError,
    NetworkError,
)

from .constants import (
    CURSOR_EXIT_CODE,
    ENCODING_EXIT_CODE,
    FORMAT_EXIT_CODE,
    NETWORK_EXIT_CODE,
    SYSTEM_EXIT_CODE,
    VALIDATION_EXIT_CODE,
)

_EXIT_CODES: tuple[tuple[type[KpFeedError], int], ...] = (
    (NetworkError, NETWORK_EXIT_CODE),
    (FormatError, FORMAT_EXIT_CODE),
    (EncodingError, ENCODING_EXIT_CODE),
    (CursorStoreError, CURSOR_EXIT_CODE),
    (ConfigurationError, VALIDATION_EXIT_CODE),
)


def exit_code_for(error: KpFeedError) -> int:
    """Map an error to the process exit code."""

    for error_type, code in _EXIT_CODES:
        if isinstance(error, error_type):
            return code
    return SYSTEM_EXIT_CODE


def get_config_manager(ctx: typer.Context) -> ConfigManager:
    """Return the :class:`ConfigManager` stored by the root callback."""

    ctx.ensure_object(dict)
    manager = ctx.obj.get("config_manager")
    if manager is None:
        manager = ConfigManager()
        ctx.obj["config_manager"] = manager
    return manager


def fail(error: KpFeedError) -> typer.Exit:
    """Report ``error`` on stderr and build the matching :class:`typer.Exit`."""

    emit_error(error.message, error.error_code, details=error.details)
    return typer.Exit(code=exit_code_for(error))


def emit_error(message: str, code: str, *, details: Mapping[str, object] | None = None) -> None:
    """Print a structured error payload to stderr."""

    payload: dict[str, object] = {"code": code, "message": message}
    if details:
        payload["details"] = _sanitize_details(details)
    typer.echo(json.dumps(payload, ensure_ascii=False, default=str), err=True)


def _sanitize_details(details: Mapping[str, object]) -> Mapping[str, object]:
    sanitized: dict[str, object] = {}
    for key, value in details.items():
        if isinstance(value, (str, int, float, bool)) or value is None:
            sanitized[key] = value
        elif isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
            sanitized[key] = [str(item) for item in value]
        else:
            sanitized[key] = str(value)
    return sanitized


__all__ = ["emit_error", "exit_code_for", "fail", "get_config_manager"]
