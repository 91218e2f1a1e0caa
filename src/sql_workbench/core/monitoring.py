"""Sentry error reporting and tracing.

Disabled unless SQL_WORKBENCH_SENTRY_DSN is set. Mistakes on the user's side
(bad input, bad config, busy session) are not reported.
"""

import os

import sentry_sdk

from sql_workbench.__about__ import __version__
from sql_workbench.core.exceptions import ConfigError, InputError, SessionBusyError

SENTRY_DSN_ENV = "SQL_WORKBENCH_SENTRY_DSN"
SENTRY_ENVIRONMENT_ENV = "SQL_WORKBENCH_SENTRY_ENVIRONMENT"

_USER_ERRORS = (ConfigError, InputError, SessionBusyError)


def _drop_user_errors(event, hint):
    exc_info = hint.get("exc_info")
    if exc_info and isinstance(exc_info[1], _USER_ERRORS):
        return None
    return event


def setup_sentry() -> None:
    sentry_sdk.init(
        dsn=os.environ.get(SENTRY_DSN_ENV),
        environment=os.environ.get(SENTRY_ENVIRONMENT_ENV, "local"),
        release=f"sql-workbench@{__version__}",
        traces_sample_rate=0.03,
        attach_stacktrace=True,
        send_default_pii=False,
        before_send=_drop_user_errors,
    )
