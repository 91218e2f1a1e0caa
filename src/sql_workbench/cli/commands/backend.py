"""Backend inspection commands: connection check and schema listing.

Thin CLI layer over ExecutionCoordinator.check_connection/fetch_schema.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Annotated

import typer

from sql_workbench.cli.commands._shared import (
    get_resolved_config,
    get_service,
    output_result,
)
from sql_workbench.core.coordinator import ExecutionCoordinator
from sql_workbench.core.exit_codes import ExitCode
from sql_workbench.core.models import QueryResult
from sql_workbench.core.sessions import SessionRegistry

if TYPE_CHECKING:
    from sql_workbench.core.config import ResolvedConfig
    from sql_workbench.core.models import ConnectionStatus, SchemaInfo


async def _check(config: ResolvedConfig) -> ConnectionStatus:
    async with get_service(config) as service:
        coordinator = ExecutionCoordinator(SessionRegistry(), service, database=config.database)
        return await coordinator.check_connection()


async def _schema(config: ResolvedConfig, database: str | None) -> SchemaInfo:
    async with get_service(config) as service:
        coordinator = ExecutionCoordinator(SessionRegistry(), service, database=config.database)
        if database is None and coordinator.database is None:
            await coordinator.check_connection()
        return await coordinator.fetch_schema(database)


def ping_command(ctx: typer.Context) -> None:
    """Check that the query backend is reachable and connected to a database."""
    config = get_resolved_config(ctx)
    status = asyncio.run(_check(config))
    if not status.connected:
        typer.echo(f"Disconnected: {status.error or 'unknown error'}", err=True)
        raise typer.Exit(ExitCode.NETWORK_ERROR)
    typer.echo(f"Connected to {config.url} (database: {status.database or 'default'})")


def schema_command(
    ctx: typer.Context,
    database: Annotated[
        str | None,
        typer.Argument(help="Database to describe (default: current database)"),
    ] = None,
) -> None:
    """List tables and their columns for a database."""
    config = get_resolved_config(ctx)
    schema = asyncio.run(_schema(config, database))

    result = QueryResult(
        columns=["schema", "table", "columns"],
        data=[
            [table.schema_name, table.name, ", ".join(table.columns)]
            for table in sorted(schema.tables, key=lambda t: (t.schema_name, t.name))
        ],
    )
    output_result(ctx, result)
