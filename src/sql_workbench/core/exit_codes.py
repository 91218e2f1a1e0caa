"""Process exit codes of the sql-workbench command."""

from enum import IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    GENERAL_ERROR = 1  # query failed, declined or backend error
    USAGE_ERROR = 2  # bad flags, session already executing
    INPUT_ERROR = 3  # unreadable SQL source
    OUTPUT_ERROR = 4  # result could not be written
    NETWORK_ERROR = 5  # backend unreachable or disconnected
    TIMEOUT = 6
    CONFIG_ERROR = 7
