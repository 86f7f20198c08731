"""The ``run`` command: emit new Kp records as line protocol."""

from __future__ import annotations

import sys
from collections.abc import Callable

import typer

from kpfeed.core.config import FeedConfig
from kpfeed.core.cursor import CursorStore, FileCursorStore
from kpfeed.core.driver import LineProtocolWriter, RecordWriter, run_pipeline
from kpfeed.core.exceptions import KpFeedError
from kpfeed.core.fetcher import fetch_text
from kpfeed.core.logging import logger

from .constants import SYSTEM_EXIT_CODE
from .formatters import DiagnosticWriter
from .utils import emit_error, fail, get_config_manager


def register(app: typer.Typer) -> None:
    """Register the run command on the provided application."""

    app.command("run")(run_command)


def get_fetcher(config: FeedConfig) -> Callable[[], str]:
    """Factory hook returning the source download callable."""

    return lambda: fetch_text(config.fetch.url, timeout=config.fetch.timeout)


def get_cursor_store(config: FeedConfig) -> CursorStore | None:
    """Factory hook returning the cursor store, ``None`` when no path is configured."""

    if not config.cursor.path:
        return None
    return FileCursorStore(config.cursor.path)


def run_command(
    ctx: typer.Context,
    url: str | None = typer.Option(None, "--url", "-u", help="Kp and ap nowcast file URL."),
    cursor_file: str | None = typer.Option(
        None,
        "--cursor-file",
        "--cache-file",
        "-c",
        help="File remembering the last emitted record. Without it every record is emitted.",
    ),
    timeout: float | None = typer.Option(None, "--timeout", help="Download timeout in seconds."),
    measurement: str | None = typer.Option(None, "--measurement", "-m", help="Measurement name."),
    source: str | None = typer.Option(None, "--source", help="Value of the 'source' tag; empty to omit."),
    precision: str | None = typer.Option(None, "--precision", help="Timestamp precision: s, ms, us, ns or none."),
    diagnostic_output: bool = typer.Option(
        False,
        "--diagnostic-output",
        "-d",
        help="Print a human readable report instead of line protocol.",
    ),
) -> None:
    """Download the Kp file and print records newer than the cursor."""

    manager = get_config_manager(ctx)
    try:
        manager.update_config(
            fetch={"url": url, "timeout": timeout},
            cursor={"path": cursor_file},
            output={"measurement": measurement, "source": source, "precision": precision},
        )
    except KpFeedError as error:
        raise fail(error) from error
    config = manager.get_config()

    writer: RecordWriter
    if diagnostic_output:
        writer = DiagnosticWriter(sys.stdout, no_color=bool(ctx.obj.get("no_color")))
    else:
        writer = LineProtocolWriter(
            sys.stdout,
            measurement=config.output.measurement,
            source=config.output.source or None,
            precision=config.precision,
        )

    try:
        result = run_pipeline(
            fetch=get_fetcher(config),
            writer=writer,
            store=get_cursor_store(config),
        )
    except KpFeedError as error:
        raise fail(error) from error
    except Exception as error:  # pragma: no cover - safety net
        logger.exception("Unexpected failure")
        emit_error(str(error), "UNEXPECTED_ERROR")
        raise typer.Exit(code=SYSTEM_EXIT_CODE) from error

    logger.info("Run finished", emitted=result.emitted, cursor=result.cursor)


__all__ = ["register", "run_command", "get_fetcher", "get_cursor_store"]
