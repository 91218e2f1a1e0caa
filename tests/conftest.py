"""Shared test fixtures for SQL Workbench."""

from __future__ import annotations

import asyncio
from pathlib import Path
from tempfile import TemporaryDirectory

import pytest
from typer.testing import CliRunner

from sql_workbench.cli.main import app
from sql_workbench.core.models import (
    ConfirmationRequired,
    ConnectionStatus,
    QueryFailure,
    QueryResult,
    SchemaInfo,
    TableInfo,
)
from sql_workbench.core.sessions import SessionRegistry

DESTRUCTIVE_OPERATIONS = ("DROP", "DELETE", "TRUNCATE", "ALTER")


class FakeQueryService:
    """In-memory stand-in for the query backend.

    SELECT returns one row, FAIL returns a backend failure, destructive
    statements require confirmation, anything else reports one affected row.
    """

    def __init__(self, database: str | None = "master") -> None:
        self.database = database
        self.connected = True
        self.error: Exception | None = None
        self.gate: asyncio.Event | None = None
        self.calls: list[tuple[str, str | None, bool]] = []
        self.schema_calls: list[str] = []
        self.closed = False

    async def __aenter__(self) -> FakeQueryService:
        return self

    async def __aexit__(self, *exc: object) -> None:
        self.closed = True

    async def test_connection(self) -> ConnectionStatus:
        if not self.connected:
            return ConnectionStatus(connected=False, error="Login failed")
        return ConnectionStatus(connected=True, database=self.database)

    async def execute_query(self, query, database, confirm_destructive):
        self.calls.append((query, database, confirm_destructive))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error

        words = query.split()
        operation = words[0].upper().rstrip(";") if words else ""
        if operation in DESTRUCTIVE_OPERATIONS and not confirm_destructive:
            target = words[2] if len(words) > 2 else words[-1]
            return ConfirmationRequired(
                query=query,
                operation=operation,
                affected_objects=[target.rstrip(";")],
            )
        if operation == "SELECT":
            return QueryResult(
                columns=["value"], data=[[1]], execution_time=0.01, query=query
            )
        if operation == "FAIL":
            return QueryFailure(error="Incorrect syntax near 'FAIL'")
        return QueryResult(rows_affected=1, execution_time=0.02, query=query)

    async def get_schema(self, database: str) -> SchemaInfo:
        self.schema_calls.append(database)
        return SchemaInfo(
            tables=[
                TableInfo(name="Orders", schema="sales", columns=["id", "total"]),
                TableInfo(name="Foo", schema="dbo", columns=["id", "name"]),
            ]
        )


@pytest.fixture
def service():
    return FakeQueryService()


@pytest.fixture
def registry():
    return SessionRegistry()


@pytest.fixture
def runner():
    """Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def cli_runner(runner):
    """Invoke the CLI app with the given arguments."""

    def invoke(*args: str, **kwargs):
        return runner.invoke(app, list(args), **kwargs)

    return invoke


@pytest.fixture
def temp_dir():
    """Temporary directory for test files."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    """Keep user config and SQL_WORKBENCH_* variables out of tests."""
    for var in (
        "SQL_WORKBENCH_URL",
        "SQL_WORKBENCH_DATABASE",
        "SQL_WORKBENCH_TOKEN",
        "SQL_WORKBENCH_TIMEOUT",
        "SQL_WORKBENCH_PROFILE",
        "SQL_WORKBENCH_SENTRY_DSN",
        "SQL_WORKBENCH_SENTRY_ENVIRONMENT",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(
        "sql_workbench.core.config.DEFAULT_CONFIG_PATH", tmp_path / "missing.toml"
    )


@pytest.fixture
def fake_backend(monkeypatch, service):
    """Route every CLI command to the in-memory FakeQueryService."""
    for module in (
        "sql_workbench.cli.commands.query",
        "sql_workbench.cli.commands.backend",
        "sql_workbench.cli.shell",
    ):
        monkeypatch.setattr(f"{module}.get_service", lambda config: service)
    return service
