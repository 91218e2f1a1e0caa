"""`config` subcommands: inspect resolved settings and backend profiles."""

from __future__ import annotations

from typing import TYPE_CHECKING

import typer

from sql_workbench.cli.commands._shared import get_resolved_config
from sql_workbench.core.config import DEFAULT_CONFIG_PATH, load_config

if TYPE_CHECKING:
    from sql_workbench.core.config import BackendProfile

config_app = typer.Typer(help="Inspect configuration and backend profiles")


@config_app.callback(invoke_without_command=True)
def config_callback(ctx: typer.Context) -> None:
    if not ctx.invoked_subcommand:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _token_status(token: str | None) -> str:
    return "***" if token else "not set"


def _config_path(ctx: typer.Context):
    return ctx.obj.get("config_file") or DEFAULT_CONFIG_PATH


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the resolved settings and where each one came from."""
    resolved = get_resolved_config(ctx)

    def line(key: str, value: object) -> None:
        typer.echo(f"  {key}: {value} ({resolved.sources.get(key, 'default')})")

    typer.echo("Query backend (resolved):")
    line("url", resolved.url)
    line("database", resolved.database or "not set")
    line("token", _token_status(resolved.token))
    line("timeout", f"{resolved.timeout}s")

    typer.echo("")
    typer.echo("Output:")
    line("default_format", resolved.default_format)

    typer.echo("")
    typer.echo("Shell:")
    first_line = (resolved.initial_query or "").strip().splitlines()
    typer.echo(f"  initial_query: {first_line[0] if first_line else 'built-in'}")

    typer.echo("")
    typer.echo(f"Active Profile: {resolved.active_profile or 'none'}")
    typer.echo(f"Config File: {_config_path(ctx)}")


def _describe_profile(profile: BackendProfile) -> list[tuple[str, str]]:
    details = [("url", profile.url)]
    if profile.database:
        details.append(("database", profile.database))
    if profile.token:
        details.append(("token", _token_status(profile.token)))
    if profile.timeout is not None:
        details.append(("timeout", f"{profile.timeout}s"))
    return details


@config_app.command("profiles")
def config_profiles(ctx: typer.Context) -> None:
    """List backend profiles from the config file."""
    app_config = load_config(ctx.obj.get("config_file"))
    if not app_config.profiles:
        typer.echo("No profiles configured.")
        typer.echo(f"Add [profiles.<name>] tables to: {_config_path(ctx)}")
        return

    active = ctx.obj.get("profile") or app_config.default_profile
    typer.echo("Available Profiles:")
    typer.echo("")
    for name in sorted(app_config.profiles):
        if name == active:
            typer.echo(f"* {name} (active)")
        else:
            typer.echo(f"  {name}")
        for key, value in _describe_profile(app_config.profiles[name]):
            typer.echo(f"      {key}: {value}")
        typer.echo("")
