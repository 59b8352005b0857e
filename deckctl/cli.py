"""Typer CLI entrypoint."""

from __future__ import annotations

from dataclasses import asdict
from pathlib import Path

import typer

from deckctl.core.codec import parse_info
from deckctl.core.connection import ConnectionManager
from deckctl.core.errors import DeckctlError
from deckctl.core.log import setup_logging
from deckctl.core.plugin_loader import DEFAULT_PLUGIN, load_plugin
from deckctl.core.settings import default_settings_path, load_settings

app = typer.Typer(help="Stream Deck plugin host connector")

_JOIN_POLL_S = 0.5


@app.command("run")
def run_plugin(
    port: int = typer.Option(..., "--port", "-port", help="Host WebSocket port"),
    plugin_uuid: str = typer.Option(..., "--plugin-uuid", "-pluginUUID", help="Plugin instance UUID"),
    register_event: str = typer.Option(..., "--register-event", "-registerEvent", help="Registration event name"),
    info: str = typer.Option("{}", "--info", "-info", help="Application info JSON"),
    plugin: str = typer.Option(DEFAULT_PLUGIN, "--plugin", help="Plugin class as module:Class"),
    config: Path | None = typer.Option(None, "--config", help="Settings YAML file"),
    log_level: str | None = typer.Option(None, "--log-level", help="Override configured log level"),
    log_file: str | None = typer.Option(None, "--log-file", help="Override configured log file"),
) -> None:
    """Connect to the host with the arguments it launches plugins with."""
    try:
        settings = load_settings(config)
        setup_logging(log_level or settings.log_level, log_file or settings.log_file)
        handlers = load_plugin(plugin)
        manager = ConnectionManager.initialize(
            port,
            plugin_uuid,
            register_event,
            parse_info(info),
            settings=settings,
        )
        manager.set_plugin(handlers).start()
        try:
            while not manager.join(timeout=_JOIN_POLL_S):
                pass
        except KeyboardInterrupt:
            typer.echo("Interrupted, closing connection", err=True)
        finally:
            manager.close()

        if manager.error is not None:
            typer.echo(f"Error: {manager.error}", err=True)
            raise typer.Exit(code=1)
    except DeckctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("check-config")
def check_config(
    config: Path | None = typer.Option(None, "--config", help="Settings YAML file"),
) -> None:
    """Validate the settings file and print the effective settings."""
    try:
        settings = load_settings(config)
        typer.echo(f"Source: {config or default_settings_path()}")
        for key, value in asdict(settings).items():
            typer.echo(f"  {key}: {value}")
    except DeckctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


def run() -> None:
    app()


if __name__ == "__main__":
    run()
