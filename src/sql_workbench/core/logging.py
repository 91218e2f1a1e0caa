"""structlog setup for SQL Workbench.

Everything is logged to stderr; stdout is reserved for query results so
`sql-workbench query ... > out.csv` stays clean.
"""

import logging
import sys
from typing import Any

import structlog


class _LazyStderrFactory:
    """Look up sys.stderr per logger instead of once in configure().

    CliRunner replaces and closes stderr between invocations, so a handle
    captured up front would point at a closed stream.
    """

    def __call__(self, *args: Any, **kwargs: Any) -> structlog.PrintLogger:
        return structlog.PrintLogger(file=sys.stderr)


def setup_logging(verbose: bool = False) -> None:
    """Configure structlog. INFO by default, DEBUG with --verbose."""
    level = logging.DEBUG if verbose else logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=_LazyStderrFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None, **context: Any) -> Any:
    """Return a structlog logger bound to a component name and extra context.

    The coordinator binds `session_id` here so every event of one execution
    carries it. Call inside functions, after setup_logging().
    """
    logger = structlog.get_logger()
    if name:
        context = {"logger": name, **context}
    if context:
        logger = logger.bind(**context)
    return logger
