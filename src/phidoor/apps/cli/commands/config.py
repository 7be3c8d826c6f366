"""Inspect and change ``phidoor.yaml``."""

from __future__ import annotations

import typer
import yaml

from phidoor.services.errors import ConfigurationError
from phidoor.services.settings import config_path

app = typer.Typer(help="Show or change client settings.")


@app.command("show", help="Print the effective settings.")
def cmd_show(ctx: typer.Context):
    settings = ctx.obj["settings"]
    typer.echo(f"# {config_path(settings.base_dir)}")
    typer.echo(yaml.safe_dump(settings.to_dict(), sort_keys=False, allow_unicode=True).rstrip())


@app.command("set-server", help="Set the door server URL used for /register and /operate.")
def cmd_set_server(ctx: typer.Context, url: str):
    _save(ctx, server_url=url.rstrip("/"))
    typer.echo(f"server URL set to {url.rstrip('/')}")


@app.command("set", help="Set any persisted setting, e.g. 'totp_algorithm sha256'.")
def cmd_set(ctx: typer.Context, key: str, value: str):
    if key not in ctx.obj["settings"].to_dict():
        raise typer.BadParameter(f"unknown setting: {key}")
    _save(ctx, **{key: value})
    typer.echo(f"{key} updated")


def _save(ctx: typer.Context, **changes: str) -> None:
    try:
        updated = ctx.obj["settings"].with_overrides(**changes)
    except (ConfigurationError, TypeError) as exc:
        raise typer.BadParameter(str(exc)) from exc
    updated.save()
    ctx.obj["settings"] = updated
