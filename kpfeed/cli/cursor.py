"""Cursor inspection commands."""

from __future__ import annotations

import typer

from kpfeed.core.cursor import FileCursorStore
from kpfeed.core.exceptions import KpFeedError

from .constants import VALIDATION_EXIT_CODE
from .utils import emit_error, fail, get_config_manager

cursor_app = typer.Typer(help="Inspect or reset the stored cursor.")


def register(app: typer.Typer) -> None:
    """Register the cursor command group on the provided application."""

    app.add_typer(cursor_app, name="cursor", help="Inspect or reset the stored cursor")


def _resolve_store(ctx: typer.Context, cursor_file: str | None) -> FileCursorStore:
    manager = get_config_manager(ctx)
    path = cursor_file or manager.get_config().cursor.path
    if not path:
        emit_error("No cursor file configured.", "CURSOR_FILE_MISSING")
        raise typer.Exit(code=VALIDATION_EXIT_CODE)
    return FileCursorStore(path)


@cursor_app.command("show")
def show_command(
    ctx: typer.Context,
    cursor_file: str | None = typer.Option(None, "--cursor-file", "--cache-file", "-c", help="Cursor file."),
) -> None:
    """Print the stored cursor timestamp."""

    store = _resolve_store(ctx, cursor_file)
    try:
        cursor = store.load()
    except KpFeedError as error:
        raise fail(error) from error
    typer.echo(cursor.isoformat() if cursor else "No cursor stored.")


@cursor_app.command("reset")
def reset_command(
    ctx: typer.Context,
    cursor_file: str | None = typer.Option(None, "--cursor-file", "--cache-file", "-c", help="Cursor file."),
) -> None:
    """Delete the cursor so the next run emits every record."""

    store = _resolve_store(ctx, cursor_file)
    try:
        removed = store.clear()
    except KpFeedError as error:
        raise fail(error) from error
    typer.echo("Cursor removed." if removed else "No cursor stored.")


__all__ = ["register", "cursor_app", "show_command", "reset_command"]
