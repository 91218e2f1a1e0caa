"""Data models for SQL Workbench.

Pydantic models for the payloads exchanged with the query backend and for
the session snapshots handed out by SessionRegistry.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class SessionStatus(StrEnum):
    IDLE = "idle"
    RUNNING = "running"


class QueryResult(BaseModel):
    """Successful execution returned by the query backend."""

    success: Literal[True] = True
    columns: list[str] = []
    data: list[list[Any]] = []
    rows_affected: int | None = None
    execution_time: float = 0.0
    query: str = ""

    @property
    def row_count(self) -> int:
        return len(self.data)


class QueryFailure(BaseModel):
    """Failed execution, either reported by the backend or produced locally."""

    success: Literal[False] = False
    error: str


class ConfirmationRequired(BaseModel):
    """Backend refused to run a destructive statement without an override."""

    requires_confirmation: Literal[True] = True
    query: str
    operation: str
    affected_objects: list[str] = []


ExecutionResult = QueryResult | QueryFailure
ExecuteResponse = QueryResult | QueryFailure | ConfirmationRequired


class ConnectionStatus(BaseModel):
    connected: bool
    database: str | None = None
    error: str | None = None


class TableInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    schema_name: str = Field(default="dbo", alias="schema")
    columns: list[str] = []

    @property
    def qualified_name(self) -> str:
        return f"{self.schema_name}.{self.name}"


class SchemaInfo(BaseModel):
    tables: list[TableInfo] = []


class Session(BaseModel):
    """Immutable snapshot of one query tab.

    SessionRegistry replaces the snapshot on every mutation; holders of an
    old snapshot never observe later changes.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    draft_query: str = ""
    last_result: QueryResult | QueryFailure | None = None
    running: bool = False

    @property
    def status(self) -> SessionStatus:
        return SessionStatus.RUNNING if self.running else SessionStatus.IDLE


class PendingConfirmation(BaseModel):
    """A destructive request parked until the user confirms or cancels."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    query: str
    operation: str
    affected_objects: list[str] = []
    database: str | None = None
