"""JSON output: one object per row, keyed by column name."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from sql_workbench.formatters.base import registry

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sql_workbench.core.models import QueryResult


class JSONFormatter:
    def __init__(self, compact: bool = False) -> None:
        self.compact = compact

    def format(self, result: QueryResult) -> Iterator[str]:
        if not result.columns and result.rows_affected is not None:
            payload: object = {"rows_affected": result.rows_affected}
        else:
            payload = [dict(zip(result.columns, row, strict=True)) for row in result.data]
        yield json.dumps(payload, indent=None if self.compact else 2, default=str)


registry.register("json", JSONFormatter)
