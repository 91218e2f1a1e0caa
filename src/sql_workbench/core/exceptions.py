"""Exception hierarchy for SQL Workbench.

All exceptions carry an exit_code for CLI return value mapping.
"""

from sql_workbench.core.exit_codes import ExitCode


class WorkbenchError(Exception):
    """Base exception for all SQL Workbench errors."""

    exit_code: int = ExitCode.GENERAL_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NetworkError(WorkbenchError):
    """Backend unreachable, connection dropped."""

    exit_code: int = ExitCode.NETWORK_ERROR


class TimeoutError(NetworkError):
    """Request to the query backend timed out."""

    exit_code: int = ExitCode.TIMEOUT


class InputError(WorkbenchError):
    """File not found, invalid parameters."""

    exit_code: int = ExitCode.INPUT_ERROR


class ConfigError(WorkbenchError):
    """Malformed config, missing profile."""

    exit_code: int = ExitCode.CONFIG_ERROR


class QueryServiceError(WorkbenchError):
    """Backend answered with an error or an unreadable payload."""

    exit_code: int = ExitCode.GENERAL_ERROR


class SessionBusyError(WorkbenchError):
    """An execution is already outstanding for the session."""

    exit_code: int = ExitCode.USAGE_ERROR
