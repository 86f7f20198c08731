"""Main entry point for the kpfeed command line interface."""

from __future__ import annotations

from pathlib import Path

import typer

from kpfeed import __version__
from kpfeed.core.config import ConfigManager
from kpfeed.core.exceptions import KpFeedError
from kpfeed.core.logging import configure_logging

from .cursor import register as register_cursor_commands
from .run import register as register_run_command
from .utils import fail


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"kpfeed {__version__}")
        raise typer.Exit()


def create_app() -> typer.Typer:
    """Create a Typer application instance for kpfeed."""

    app = typer.Typer(add_completion=False, help="Kp/ap nowcast to InfluxDB line protocol")

    @app.callback()
    def main(
        ctx: typer.Context,
        config: Path | None = typer.Option(
            None,
            "--config",
            help="TOML configuration file (default: ~/.kpfeed/config.toml if present).",
        ),
        log_level: str | None = typer.Option(
            None,
            "--log-level",
            help="Log level for the JSON log written to stderr.",
        ),
        log_file: Path | None = typer.Option(
            None,
            "--log-file",
            help="Also append JSON logs to this file.",
        ),
        no_color: bool = typer.Option(
            False,
            "--no-color",
            help="Disable colorized diagnostic output.",
        ),
        version: bool = typer.Option(
            False,
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show the version and exit.",
        ),
    ) -> None:
        ctx.ensure_object(dict)
        try:
            manager = ConfigManager(config)
            manager.update_config(
                logging={
                    "level": log_level.upper() if log_level else None,
                    "file": str(log_file) if log_file else None,
                }
            )
        except KpFeedError as error:
            raise fail(error) from error

        settings = manager.get_config().logging
        try:
            configure_logging(
                settings.level,
                file_output=bool(settings.file),
                file_path=settings.file or None,
            )
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--log-level") from exc

        ctx.obj.update({"config_manager": manager, "no_color": no_color})

    register_run_command(app)
    register_cursor_commands(app)
    return app


app = create_app()
