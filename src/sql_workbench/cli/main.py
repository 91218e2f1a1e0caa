"""SQL Workbench main entry point and command registration."""

from __future__ import annotations

from pathlib import Path  # noqa: TC003
from typing import Annotated

import sentry_sdk
import typer

from sql_workbench.__about__ import __version__
from sql_workbench.cli.commands.backend import ping_command, schema_command
from sql_workbench.cli.commands.config import config_app
from sql_workbench.cli.commands.query import query_command
from sql_workbench.cli.output import OutputFormat  # noqa: TC001
from sql_workbench.cli.shell import shell_command
from sql_workbench.core.exceptions import WorkbenchError
from sql_workbench.core.logging import setup_logging
from sql_workbench.core.monitoring import setup_sentry

app = typer.Typer(
    help="SQL Workbench - multi-tab SQL client for a REST query backend",
    no_args_is_help=True,
)

app.add_typer(config_app, name="config")
app.command("query")(query_command)
app.command("ping")(ping_command)
app.command("schema")(schema_command)
app.command("shell")(shell_command)


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"sql-workbench {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Log debug events to stderr"),
    ] = False,
    profile: Annotated[
        str | None,
        typer.Option("--profile", "-P", help="Named backend profile"),
    ] = None,
    url: Annotated[
        str | None,
        typer.Option("--url", help="Query backend base URL"),
    ] = None,
    database: Annotated[
        str | None,
        typer.Option("--database", "-d", help="Database to run queries against"),
    ] = None,
    token: Annotated[
        str | None,
        typer.Option("--token", help="Bearer token for the query backend"),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Config file (default: ~/.config/sql-workbench/config.toml)"),
    ] = None,
    format: Annotated[
        OutputFormat | None,
        typer.Option("--format", "-f", help="Output format: table|json|csv"),
    ] = None,
    compact: Annotated[
        bool,
        typer.Option("--compact", help="Single-line JSON output"),
    ] = False,
    width: Annotated[
        int,
        typer.Option("--width", help="Maximum cell width in table output"),
    ] = 40,
    no_header: Annotated[
        bool,
        typer.Option("--no-header", help="Omit the column header in CSV output"),
    ] = False,
) -> None:
    """SQL Workbench - multi-tab SQL client for a REST query backend."""
    setup_logging(verbose)
    setup_sentry()

    # One transaction per command; closed and flushed when the context exits.
    ctx.call_on_close(lambda: sentry_sdk.flush(timeout=2))
    ctx.with_resource(
        sentry_sdk.start_transaction(
            op="cli", name=ctx.invoked_subcommand or "sql-workbench"
        )
    )

    ctx.ensure_object(dict).update(
        verbose=verbose,
        profile=profile,
        url=url,
        database=database,
        token=token,
        config_file=config_file,
        format=format.value if format else None,
        compact=compact,
        width=width,
        no_header=no_header,
    )


def run() -> None:
    """Console entry point: map WorkbenchError and Ctrl-C to exit codes."""
    try:
        app()
    except WorkbenchError as e:
        sentry_sdk.capture_exception(e)
        typer.echo(f"Error: {e.message}", err=True)
        raise SystemExit(e.exit_code) from None
    except SystemExit:
        raise
    except KeyboardInterrupt:
        raise SystemExit(130) from None
    except Exception as e:
        sentry_sdk.capture_exception(e)
        typer.echo(f"Error: {e}", err=True)
        raise SystemExit(1) from None
