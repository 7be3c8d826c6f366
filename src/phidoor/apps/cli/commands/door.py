"""Door commands: register, unlock, reset and inspect the device identity."""

from __future__ import annotations

import typer

from phidoor.services.identity import DeviceIdentity, OperationResult
from phidoor.services.settings import Settings

app = typer.Typer(help="Register this device, open the door or reset the identity.")


def _settings(ctx: typer.Context) -> Settings:
    return ctx.obj["settings"]


def _identity(ctx: typer.Context) -> DeviceIdentity:
    identity = ctx.obj.get("identity")
    if identity is None:
        identity = ctx.obj["identity"] = DeviceIdentity.from_settings(_settings(ctx))
    return identity


def _finish(result: OperationResult, success: str) -> None:
    if result.ok:
        typer.echo(success)
        return
    typer.echo(f"{result.operation} failed ({result.error_kind}): {result.error}", err=True)
    raise typer.Exit(code=1)


@app.command("register", help="Send the public key to the server and store the shared secret it returns.")
def cmd_register(ctx: typer.Context):
    identity = _identity(ctx)
    result = identity.register()
    _finish(result, f"registered device {identity.device_id}")


@app.command("unlock", help="Send a signed one-time unlock request.")
def cmd_unlock(ctx: typer.Context):
    _finish(_identity(ctx).unlock(), "unlock request accepted")


@app.command("reset", help="Forget the device identifier, shared secret and key pair.")
def cmd_reset(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
):
    if not yes:
        typer.confirm("Delete the device identity? The device will need to register again", abort=True)
    _finish(_identity(ctx).reset(), "device identity removed")


@app.command("status", help="Show the registration state of this device.")
def cmd_status(ctx: typer.Context):
    settings = _settings(ctx)
    identity = _identity(ctx)
    typer.echo(f"state: {identity.state}")
    typer.echo(f"device id: {identity.device_id or '-'}")
    typer.echo(f"key pair: {'present' if identity.has_key_pair() else 'missing'}")
    typer.echo(f"server: {settings.server_url or '-'}")


@app.command("public-key", help="Print the PEM public key sent at registration.")
def cmd_public_key(ctx: typer.Context):
    identity = _identity(ctx)
    if not identity.has_key_pair():
        typer.echo("no key pair yet; run 'phidoor door register' first", err=True)
        raise typer.Exit(code=1)
    typer.echo(identity.public_key_pem())
