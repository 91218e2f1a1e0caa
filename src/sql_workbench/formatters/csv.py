"""CSV output (RFC 4180 quoting) for results and `\export csv`."""

from __future__ import annotations

import csv
import json
from io import StringIO
from typing import TYPE_CHECKING, Any

from sql_workbench.formatters.base import registry

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sql_workbench.core.models import QueryResult


def render_cell(value: Any) -> str:
    """Render one backend cell. NULL becomes an empty field."""
    if value is None:
        return ""
    if isinstance(value, (list, dict)):
        return json.dumps(value, default=str)
    return str(value)


class CSVFormatter:
    def __init__(self, no_header: bool = False) -> None:
        self.no_header = no_header

    def format(self, result: QueryResult) -> Iterator[str]:
        buf = StringIO()
        writer = csv.writer(buf, lineterminator="\n")
        if not self.no_header and result.columns:
            writer.writerow(result.columns)
        writer.writerows([render_cell(v) for v in row] for row in result.data)
        text = buf.getvalue()
        if text:
            yield from text[:-1].split("\n")


registry.register("csv", CSVFormatter)
