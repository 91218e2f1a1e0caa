"""Where the `query` command gets its SQL from.

`-e` wins over a file argument, which wins over piped stdin. Blank text is
passed through unchanged; the coordinator reports it as an empty query.
"""

from __future__ import annotations

import sys
from pathlib import Path

from sql_workbench.core.exceptions import InputError


def _read_sql_file(file_path: str) -> str:
    path = Path(file_path).expanduser()
    if not path.is_file():
        raise InputError(
            f"Query file not found: {file_path}\n"
            "Pass SQL inline with -e or pipe it on stdin."
        )
    try:
        # utf-8-sig drops the BOM some editors write into .sql files
        return path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise InputError(f"Cannot read query file {file_path}: {e}") from e


def resolve_query_source(inline: str | None, file_path: str | None) -> str:
    if inline is not None:
        return inline
    if file_path is not None:
        return _read_sql_file(file_path)
    if not sys.stdin.isatty():
        return sys.stdin.read()
    raise InputError("No query provided. Use -e SQL, a file path, or pipe SQL on stdin.")
