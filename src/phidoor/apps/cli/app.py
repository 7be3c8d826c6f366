"""Entry point of the ``phidoor`` command line."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from phidoor.apps.cli.commands import config as config_cmd
from phidoor.apps.cli.commands import door as door_cmd
from phidoor.services.errors import ConfigurationError
from phidoor.services.logging import setup_logging
from phidoor.services.settings import Settings

app = typer.Typer(help="Unlock a door with this device's key and shared secret.", no_args_is_help=True)
app.add_typer(door_cmd.app, name="door")
app.add_typer(config_cmd.app, name="config")


@app.callback()
def main(
    ctx: typer.Context,
    home: Optional[Path] = typer.Option(None, "--home", help="Directory holding phidoor.yaml and file-backed secrets."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
):
    try:
        settings = Settings.from_sources(base_dir=home)
    except ConfigurationError as exc:
        typer.echo(f"configuration error: {exc}", err=True)
        raise typer.Exit(code=2)
    setup_logging("DEBUG" if verbose else settings.log_level, settings.log_file)
    ctx.obj = {"settings": settings}


if __name__ == "__main__":  # pragma: no cover
    app()
