"""Shared CLI plumbing for command modules.

Config resolution, backend client creation and output helpers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sql_workbench.cli.output import get_formatter, write_output
from sql_workbench.core.config import load_config, resolve_config
from sql_workbench.core.query_service import HttpQueryService

if TYPE_CHECKING:
    import typer

    from sql_workbench.core.config import ResolvedConfig
    from sql_workbench.core.models import PendingConfirmation, QueryResult
    from sql_workbench.formatters.base import Formatter


def get_resolved_config(ctx: typer.Context, timeout: float | None = None) -> ResolvedConfig:
    obj = ctx.ensure_object(dict)
    config = load_config(obj.get("config_file"))

    cli_overrides: dict[str, Any] = {}
    for key in ("url", "database", "token"):
        val = obj.get(key)
        if val is not None:
            cli_overrides[key] = val
    if timeout is not None:
        cli_overrides["timeout"] = timeout

    resolved = resolve_config(config, profile_name=obj.get("profile"), **cli_overrides)
    if resolved.sources.get("default_format", "default") != "default":
        obj["default_format"] = resolved.default_format
    return resolved


def get_service(config: ResolvedConfig) -> HttpQueryService:
    return HttpQueryService.from_config(config)


def format_options(ctx: typer.Context) -> dict[str, Any]:
    obj = ctx.ensure_object(dict)
    return {
        "format_flag": obj.get("format") or obj.get("default_format"),
        "compact": obj.get("compact", False),
        "width": obj.get("width", 40),
        "no_header": obj.get("no_header", False),
    }


def formatter_for(ctx: typer.Context) -> Formatter:
    return get_formatter(**format_options(ctx))


def output_result(ctx: typer.Context, result: QueryResult) -> None:
    write_output(formatter_for(ctx), result)


def describe_pending(pending: PendingConfirmation) -> str:
    affected = ", ".join(pending.affected_objects) or "unknown objects"
    return f"{pending.operation} requires confirmation. Affected: {affected}"

