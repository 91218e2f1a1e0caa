"""rich table output for interactive terminals."""

from __future__ import annotations

import shutil
from io import StringIO
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from sql_workbench.formatters.base import registry
from sql_workbench.formatters.csv import render_cell

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sql_workbench.core.models import QueryResult


class TableFormatter:
    def __init__(self, width: int = 40) -> None:
        self.width = width

    def _clip(self, value: object) -> str:
        text = render_cell(value)
        return text if len(text) <= self.width else text[: self.width - 1] + "…"

    def format(self, result: QueryResult) -> Iterator[str]:
        # Statements without a result set (INSERT, UPDATE, confirmed DROP...)
        # only report how many rows they touched.
        if not result.data:
            if result.rows_affected is None:
                yield "No results"
            else:
                yield f"{result.rows_affected} row(s) affected"
            return

        table = Table(*result.columns)
        for column in table.columns:
            column.no_wrap = True
        for row in result.data:
            table.add_row(*map(self._clip, row))

        buf = StringIO()
        columns = shutil.get_terminal_size((120, 24)).columns
        Console(file=buf, force_terminal=True, width=columns).print(table)
        yield buf.getvalue().rstrip("\n")


registry.register("table", TableFormatter)
