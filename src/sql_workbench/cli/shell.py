"""Interactive multi-tab shell.

Each tab is a registry session. Plain lines are appended to the active tab's
draft; backslash commands manage tabs and drive the coordinator. Executions
run as background tasks, so other tabs stay usable while a query is in
flight.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING, Any

import typer

from sql_workbench.cli.commands._shared import (
    describe_pending,
    formatter_for,
    get_resolved_config,
    get_service,
)
from sql_workbench.cli.output import get_formatter, write_output
from sql_workbench.core.coordinator import ExecutionCoordinator, ExecutionState
from sql_workbench.core.exceptions import WorkbenchError
from sql_workbench.core.models import PendingConfirmation, QueryFailure, QueryResult
from sql_workbench.core.sessions import SessionRegistry

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from sql_workbench.core.models import ExecutionResult
    from sql_workbench.formatters.base import Formatter

HELP_TEXT = """\
Plain lines are appended to the active tab. A line ending in ';' runs the tab.
  \\run               run the active tab
  \\confirm           run the pending destructive statement
  \\cancel            drop the pending destructive statement
  \\new               open a new tab
  \\close [ID]        close a tab (default: active)
  \\dup [ID]          duplicate a tab (default: active)
  \\rename TITLE      rename the active tab
  \\use ID            switch to a tab
  \\tabs              list tabs
  \\show              show the active tab's draft and result
  \\clear             empty the active tab's draft
  \\db [NAME]         show or change the current database
  \\schema            list tables of the current database
  \\export FMT PATH   write the active tab's result as csv or json
  \\quit              leave the shell"""

EXPORT_FORMATS = ("csv", "json")


class WorkbenchShell:
    def __init__(
        self,
        registry: SessionRegistry,
        coordinator: ExecutionCoordinator,
        formatter: Formatter,
        echo: Callable[..., Any] = typer.echo,
    ) -> None:
        self.registry = registry
        self.coordinator = coordinator
        self.formatter = formatter
        self.echo = echo
        self._tasks: set[asyncio.Task[None]] = set()
        self._commands: dict[str, Callable[[str], Awaitable[bool | None]]] = {
            "run": self._cmd_run,
            "confirm": self._cmd_confirm,
            "cancel": self._cmd_cancel,
            "new": self._cmd_new,
            "close": self._cmd_close,
            "dup": self._cmd_dup,
            "rename": self._cmd_rename,
            "use": self._cmd_use,
            "tabs": self._cmd_tabs,
            "show": self._cmd_show,
            "clear": self._cmd_clear,
            "db": self._cmd_db,
            "schema": self._cmd_schema,
            "export": self._cmd_export,
            "help": self._cmd_help,
            "quit": self._cmd_quit,
            "q": self._cmd_quit,
        }

    def prompt(self) -> str:
        active = self.registry.get_active()
        marker = "*" if active.running else ""
        return f"{active.title}{marker}> "

    async def handle(self, line: str) -> bool:
        """Process one input line. Returns False when the shell should exit."""
        stripped = line.strip()
        if stripped.startswith("\\"):
            name, _, args = stripped[1:].partition(" ")
            command = self._commands.get(name.lower())
            if command is None:
                self.echo(f"Unknown command: \\{name}. Type \\help for commands.")
                return True
            return await command(args.strip()) is not False

        active = self.registry.get_active()
        self.registry.update_draft(active.id, active.draft_query + line + "\n")
        if stripped.endswith(";"):
            await self._cmd_run("")
        return True

    async def drain(self) -> None:
        """Wait for all in-flight executions to finish."""
        while True:
            pending = [task for task in self._tasks if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending)

    def _spawn(self, coro: Awaitable[None]) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _execute(self, session_id: str, confirm: bool) -> None:
        try:
            if confirm:
                outcome = await self.coordinator.confirm(session_id)
            else:
                outcome = await self.coordinator.execute(session_id=session_id)
        except WorkbenchError as e:
            self.echo(f"Error: {e.message}")
            return
        if outcome is not None:
            self._report(session_id, outcome)

    def _report(
        self, session_id: str, outcome: ExecutionResult | PendingConfirmation
    ) -> None:
        session = self.registry.get(session_id)
        label = f"[{session.title}] " if session is not None else f"[{session_id}] "
        if isinstance(outcome, PendingConfirmation):
            self.echo(f"{label}! {describe_pending(outcome)}")
            self.echo(f"{label}Type \\confirm to execute or \\cancel to abort.")
        elif isinstance(outcome, QueryFailure):
            self.echo(f"{label}Error: {outcome.error}")
        else:
            self._print_result(label, outcome)

    def _print_result(self, label: str, result: QueryResult) -> None:
        for text in self.formatter.format(result):
            self.echo(text)
        summary = f"{result.row_count} row(s)"
        if result.rows_affected is not None:
            summary = f"{result.rows_affected} row(s) affected"
        self.echo(f"{label}{summary} in {result.execution_time:.3f}s")

    def _resolve_id(self, args: str) -> str | None:
        session_id = args or self.registry.active_id
        if session_id not in self.registry:
            self.echo(f"No such tab: {session_id}")
            return None
        return session_id

    async def _cmd_run(self, args: str) -> None:
        active = self.registry.get_active()
        if active.running:
            self.echo(f"[{active.title}] A query is already running in this tab.")
            return
        self._spawn(self._execute(active.id, confirm=False))
        # Let the task flag the session as running before the next input line.
        await asyncio.sleep(0)

    async def _cmd_confirm(self, args: str) -> None:
        active_id = self.registry.active_id
        if self.coordinator.pending(active_id) is None:
            self.echo("Nothing to confirm in this tab.")
            return
        self._spawn(self._execute(active_id, confirm=True))
        await asyncio.sleep(0)

    async def _cmd_cancel(self, args: str) -> None:
        active_id = self.registry.active_id
        if self.coordinator.pending(active_id) is None:
            self.echo("Nothing to cancel in this tab.")
            return
        self.coordinator.cancel(active_id)
        self.echo("Cancelled.")

    async def _cmd_new(self, args: str) -> None:
        session_id = self.registry.create_session()
        self.echo(f"Opened {self.registry.get_active().title} ({session_id})")

    async def _cmd_close(self, args: str) -> None:
        session_id = self._resolve_id(args)
        if session_id is None:
            return
        self.coordinator.cancel(session_id)
        self.registry.close_session(session_id)
        self.echo(f"Closed {session_id}. Active: {self.registry.get_active().title}")

    async def _cmd_dup(self, args: str) -> None:
        session_id = self._resolve_id(args)
        if session_id is None:
            return
        new_id = self.registry.duplicate_session(session_id)
        self.echo(f"Opened {self.registry.get_active().title} ({new_id})")

    async def _cmd_rename(self, args: str) -> None:
        if not args:
            self.echo("Usage: \\rename TITLE")
            return
        self.registry.rename_session(self.registry.active_id, args)

    async def _cmd_use(self, args: str) -> None:
        session_id = self._resolve_id(args)
        if session_id is not None:
            self.registry.set_active(session_id)

    async def _cmd_tabs(self, args: str) -> None:
        for session in self.registry:
            marker = "*" if session.id == self.registry.active_id else " "
            state = self.coordinator.state(session.id)
            flag = "" if state is ExecutionState.IDLE else f" [{state.value}]"
            self.echo(f"{marker} {session.id}  {session.title}{flag}")

    async def _cmd_show(self, args: str) -> None:
        active = self.registry.get_active()
        self.echo(f"{active.title} ({active.id}) - {active.status.value}")
        self.echo(active.draft_query.rstrip("\n") or "(empty draft)")
        pending = self.coordinator.pending(active.id)
        if pending is not None:
            self.echo(f"! {describe_pending(pending)}")
        result = active.last_result
        if result is None:
            self.echo("(no result)")
        elif isinstance(result, QueryFailure):
            self.echo(f"Error: {result.error}")
        else:
            self._print_result("", result)

    async def _cmd_clear(self, args: str) -> None:
        self.registry.update_draft(self.registry.active_id, "")

    async def _cmd_db(self, args: str) -> None:
        if args:
            self.coordinator.database = args
        self.echo(f"Database: {self.coordinator.database or 'default'}")

    async def _cmd_schema(self, args: str) -> None:
        try:
            schema = await self.coordinator.fetch_schema(args or None)
        except WorkbenchError as e:
            self.echo(f"Error: {e.message}")
            return
        for table in schema.tables:
            self.echo(f"{table.qualified_name} ({', '.join(table.columns)})")

    async def _cmd_export(self, args: str) -> None:
        fmt, _, path = args.partition(" ")
        if fmt not in EXPORT_FORMATS or not path.strip():
            self.echo("Usage: \\export csv|json PATH")
            return
        result = self.registry.get_active().last_result
        if not isinstance(result, QueryResult) or not result.data:
            self.echo("No data to export")
            return
        target = Path(path.strip()).expanduser()
        try:
            with target.open("w", newline="", encoding="utf-8") as f:
                write_output(get_formatter(fmt), result, stream=f)
        except OSError as e:
            self.echo(f"Cannot write {target}: {e.strerror or e}")
            return
        self.echo(f"Exported {result.row_count} row(s) to {target}")

    async def _cmd_help(self, args: str) -> None:
        self.echo(HELP_TEXT)

    async def _cmd_quit(self, args: str) -> bool:
        return False


async def _repl(shell: WorkbenchShell) -> None:
    while True:
        try:
            line = await asyncio.to_thread(input, shell.prompt())
        except EOFError:
            break
        if not await shell.handle(line):
            break
    await shell.drain()


def shell_command(ctx: typer.Context) -> None:
    """Open an interactive multi-tab SQL shell."""
    config = get_resolved_config(ctx)
    formatter = formatter_for(ctx)

    async def main() -> None:
        async with get_service(config) as service:
            registry = SessionRegistry(initial_draft=config.initial_query)
            coordinator = ExecutionCoordinator(registry, service, database=config.database)
            status = await coordinator.check_connection()
            if status.connected:
                typer.echo(f"Connected (database: {coordinator.database or 'default'})")
            else:
                typer.echo(f"Disconnected: {status.error or 'unknown error'}", err=True)
            typer.echo("Type \\help for commands.")
            await _repl(WorkbenchShell(registry, coordinator, formatter))

    asyncio.run(main())
