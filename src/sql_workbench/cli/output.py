"""Picking a formatter for the terminal, a pipe, or an export file."""

from __future__ import annotations

import sys
from enum import StrEnum
from typing import IO, TYPE_CHECKING

from sql_workbench.formatters import registry

if TYPE_CHECKING:
    from sql_workbench.core.models import QueryResult
    from sql_workbench.formatters.base import Formatter


class OutputFormat(StrEnum):
    TABLE = "table"
    JSON = "json"
    CSV = "csv"


def detect_tty() -> bool:
    return sys.stdout.isatty()


def resolve_format(format_flag: str | None) -> str:
    """An explicit format wins; otherwise table on a terminal, csv in a pipe."""
    if format_flag is not None:
        return format_flag
    return OutputFormat.TABLE if detect_tty() else OutputFormat.CSV


def get_formatter(
    format_flag: str | None = None,
    *,
    compact: bool = False,
    width: int = 40,
    no_header: bool = False,
) -> Formatter:
    name = resolve_format(format_flag)
    # Each formatter only accepts its own option.
    per_format: dict[str, dict[str, object]] = {
        OutputFormat.TABLE: {"width": width},
        OutputFormat.JSON: {"compact": compact},
        OutputFormat.CSV: {"no_header": no_header},
    }
    return registry.get(name, **per_format.get(name, {}))


def write_output(
    formatter: Formatter, result: QueryResult, stream: IO[str] | None = None
) -> None:
    """Write one formatted result to stdout, or to `stream` (an export file)."""
    out = stream if stream is not None else sys.stdout
    for line in formatter.format(result):
        out.write(line + "\n")
