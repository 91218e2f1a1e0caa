from __future__ import annotations

import asyncio
import sys
from typing import TYPE_CHECKING, Annotated

import typer

from sql_workbench.cli.commands._shared import (
    describe_pending,
    get_resolved_config,
    get_service,
    output_result,
)
from sql_workbench.core.coordinator import ExecutionCoordinator
from sql_workbench.core.exceptions import InputError
from sql_workbench.core.exit_codes import ExitCode
from sql_workbench.core.models import PendingConfirmation, QueryFailure
from sql_workbench.core.query_source import resolve_query_source
from sql_workbench.core.sessions import SessionRegistry

if TYPE_CHECKING:
    from sql_workbench.core.config import ResolvedConfig
    from sql_workbench.core.models import ExecutionResult


async def _execute(
    config: ResolvedConfig, sql: str, assume_yes: bool
) -> ExecutionResult | None:
    registry = SessionRegistry(initial_draft=sql)
    async with get_service(config) as service:
        coordinator = ExecutionCoordinator(registry, service, database=config.database)
        outcome = await coordinator.execute()
        if isinstance(outcome, PendingConfirmation):
            typer.echo(describe_pending(outcome), err=True)
            if not (assume_yes or typer.confirm("Execute anyway?", err=True)):
                coordinator.cancel()
                return None
            return await coordinator.confirm()
    return outcome


def query_command(
    ctx: typer.Context,
    file: Annotated[
        str | None,
        typer.Argument(help="SQL file to execute"),
    ] = None,
    execute: Annotated[
        str | None,
        typer.Option("--execute", "-e", help="Execute inline SQL query"),
    ] = None,
    timeout: Annotated[
        float | None,
        typer.Option("--timeout", "-t", help="Request timeout in seconds"),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Confirm destructive statements without prompting"),
    ] = False,
) -> None:
    """Execute a SQL query from file, inline (-e), or stdin."""
    try:
        is_tty = sys.stdin.isatty()
    except (ValueError, AttributeError):
        is_tty = False
    if execute is None and file is None and is_tty:
        typer.echo(ctx.get_help())
        raise typer.Exit()

    try:
        sql = resolve_query_source(inline=execute, file_path=file)
    except InputError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(ExitCode.INPUT_ERROR) from exc

    config = get_resolved_config(ctx, timeout=timeout)
    result = asyncio.run(_execute(config, sql, yes))

    if result is None:
        typer.echo("Execution cancelled.", err=True)
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    if isinstance(result, QueryFailure):
        typer.echo(f"Error: {result.error}", err=True)
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    output_result(ctx, result)
