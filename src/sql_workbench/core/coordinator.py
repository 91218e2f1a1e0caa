"""Execution coordinator for SQL Workbench.

Runs queries for registry sessions through a QueryService and implements the
two-phase protocol for destructive statements: the backend flags the request,
the coordinator parks a PendingConfirmation for the owning session, and only
an explicit confirm() resubmits it with the override flag set.

Per-session states:

    IDLE -> SUBMITTING -> IDLE
                       -> AWAITING_CONFIRMATION -> (cancel) IDLE
                                                -> (confirm) SUBMITTING -> IDLE
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, cast

import sentry_sdk

from sql_workbench.core.exceptions import InputError, SessionBusyError, WorkbenchError
from sql_workbench.core.logging import get_logger
from sql_workbench.core.models import (
    ConfirmationRequired,
    ConnectionStatus,
    PendingConfirmation,
    QueryFailure,
)

if TYPE_CHECKING:
    from sql_workbench.core.models import ExecuteResponse, ExecutionResult, SchemaInfo
    from sql_workbench.core.query_service import QueryService
    from sql_workbench.core.sessions import SessionRegistry

EMPTY_QUERY_MESSAGE = "empty query"
FALLBACK_ERROR_MESSAGE = "Query execution failed"


class ExecutionState(StrEnum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    AWAITING_CONFIRMATION = "awaiting_confirmation"


class ExecutionCoordinator:
    """Drive query execution for the sessions of one SessionRegistry."""

    def __init__(
        self,
        registry: SessionRegistry,
        service: QueryService,
        database: str | None = None,
    ) -> None:
        self.registry = registry
        self.service = service
        self.database = database
        self._pending: dict[str, PendingConfirmation] = {}
        self._in_flight: set[str] = set()

    def _target(self, session_id: str | None) -> str:
        return session_id if session_id is not None else self.registry.active_id

    def _forget_closed(self) -> None:
        for session_id in [sid for sid in self._pending if sid not in self.registry]:
            del self._pending[session_id]

    def _check_idle(self, session_id: str) -> None:
        session = self.registry.get(session_id)
        if session_id in self._in_flight or (session is not None and session.running):
            title = session.title if session is not None else session_id
            msg = f"Session '{title}' is already executing a query"
            raise SessionBusyError(msg)

    def pending(self, session_id: str | None = None) -> PendingConfirmation | None:
        """Return the confirmation awaiting a decision for a session, if any."""
        target_id = self._target(session_id)
        if target_id not in self.registry:
            self._pending.pop(target_id, None)
            return None
        return self._pending.get(target_id)

    def state(self, session_id: str | None = None) -> ExecutionState:
        target_id = self._target(session_id)
        session = self.registry.get(target_id)
        if session is not None and session.running:
            return ExecutionState.SUBMITTING
        if self.pending(target_id) is not None:
            return ExecutionState.AWAITING_CONFIRMATION
        return ExecutionState.IDLE

    async def execute(
        self,
        query_text: str | None = None,
        database: str | None = None,
        confirm_destructive: bool = False,
        *,
        session_id: str | None = None,
    ) -> ExecutionResult | PendingConfirmation:
        """Run a query for a session (the active one by default).

        The query defaults to the session's draft and the database to the
        coordinator's current database. Returns the committed result, or a
        PendingConfirmation when the backend wants the user to approve a
        destructive statement first.

        Raises SessionBusyError if the session already has a request in
        flight, InputError if the session does not exist.
        """
        self._forget_closed()
        target_id = self._target(session_id)
        session = self.registry.get(target_id)
        if session is None:
            raise InputError(f"Unknown session: {target_id}")
        self._check_idle(target_id)

        if query_text is None:
            query_text = session.draft_query
        if not isinstance(query_text, str) or not query_text.strip():
            failure = QueryFailure(error=EMPTY_QUERY_MESSAGE)
            self.registry.update_result(target_id, failure)
            return failure

        db = database if database is not None else self.database
        # A new submission replaces whatever was parked for this session.
        self._pending.pop(target_id, None)
        return await self._run(target_id, query_text, db, confirm_destructive)

    async def confirm(
        self, session_id: str | None = None
    ) -> ExecutionResult | None:
        """Resubmit the pending destructive request once with the override set.

        Returns None when the session has nothing awaiting confirmation.
        """
        self._forget_closed()
        target_id = self._target(session_id)
        log = get_logger("coordinator", session_id=target_id)
        pending = self.pending(target_id)
        if pending is None:
            log.debug("confirm ignored, nothing pending")
            return None
        self._check_idle(target_id)
        del self._pending[target_id]
        log.info(
            "destructive query confirmed",
            operation=pending.operation,
            affected_objects=pending.affected_objects,
        )
        # With the override set, _settle never parks a second confirmation.
        outcome = await self._run(target_id, pending.query, pending.database, True)
        return cast("ExecutionResult", outcome)

    def cancel(self, session_id: str | None = None) -> None:
        """Discard the pending confirmation, leaving the last result untouched."""
        target_id = self._target(session_id)
        pending = self._pending.pop(target_id, None)
        if pending is None:
            return
        if target_id not in self._in_flight:
            self.registry.set_running(target_id, False)
        get_logger("coordinator", session_id=target_id).info(
            "confirmation cancelled",
            operation=pending.operation,
        )

    async def _run(
        self,
        session_id: str,
        query: str,
        database: str | None,
        confirm_destructive: bool,
    ) -> ExecutionResult | PendingConfirmation:
        self._in_flight.add(session_id)
        self.registry.set_running(session_id, True)
        try:
            response = await self._call_service(
                session_id, query, database, confirm_destructive
            )
            return self._settle(
                session_id, query, database, confirm_destructive, response
            )
        finally:
            self._in_flight.discard(session_id)
            self.registry.set_running(session_id, False)

    async def _call_service(
        self,
        session_id: str,
        query: str,
        database: str | None,
        confirm_destructive: bool,
    ) -> ExecuteResponse:
        log = get_logger("coordinator", session_id=session_id)
        sql_normalized = " ".join(query.split())
        log.debug(
            "executing query",
            database=database,
            confirm_destructive=confirm_destructive,
            sql=sql_normalized,
        )
        with sentry_sdk.start_span(
            op="db.query", description=sql_normalized[:100]
        ) as span:
            try:
                return await self.service.execute_query(
                    query, database, confirm_destructive
                )
            except WorkbenchError as e:
                span.set_status("unavailable")
                log.warning("execution failed", error=e.message)
                return QueryFailure(error=e.message or FALLBACK_ERROR_MESSAGE)
            except Exception as e:
                span.set_status("internal_error")
                sentry_sdk.capture_exception(e)
                log.error("execution failed", error=repr(e))
                return QueryFailure(error=FALLBACK_ERROR_MESSAGE)

    def _settle(
        self,
        session_id: str,
        query: str,
        database: str | None,
        confirm_destructive: bool,
        response: ExecuteResponse,
    ) -> ExecutionResult | PendingConfirmation:
        log = get_logger("coordinator", session_id=session_id)
        if isinstance(response, ConfirmationRequired):
            if not confirm_destructive:
                pending = PendingConfirmation(
                    session_id=session_id,
                    query=response.query or query,
                    operation=response.operation,
                    affected_objects=list(response.affected_objects),
                    database=database,
                )
                if session_id in self.registry:
                    self._pending[session_id] = pending
                log.info(
                    "confirmation required",
                    operation=pending.operation,
                    affected_objects=pending.affected_objects,
                )
                return pending
            response = QueryFailure(
                error=f"Backend refused {response.operation} despite confirmation"
            )

        self._pending.pop(session_id, None)
        self.registry.update_result(session_id, response)
        if isinstance(response, QueryFailure):
            log.debug("query failed", error=response.error)
        else:
            log.debug(
                "query complete",
                row_count=response.row_count,
                execution_time=response.execution_time,
            )
        return response

    async def check_connection(self) -> ConnectionStatus:
        """Probe the backend and adopt its database when none is selected."""
        try:
            status = await self.service.test_connection()
        except WorkbenchError as e:
            get_logger("coordinator").warning("connection check failed", error=e.message)
            return ConnectionStatus(connected=False, error=e.message)
        if status.connected and status.database and self.database is None:
            self.database = status.database
        return status

    async def fetch_schema(self, database: str | None = None) -> SchemaInfo:
        db = database if database is not None else self.database
        if not db:
            raise InputError("No database selected. Use --database or connect first.")
        return await self.service.get_schema(db)
