"""Sentry integration for error tracking and performance monitoring.

Sentry is initialized early in main() after logging setup. Without a DSN
in the environment sentry_sdk.init() is a no-op, so spans and captures in
the rest of the code cost nothing.
"""

import os

import sentry_sdk

from pgquerygen.__about__ import __version__

SENTRY_DSN_ENV = "PGQUERYGEN_SENTRY_DSN"


def setup_sentry(environment: str = "local") -> None:
    """Initialize Sentry from PGQUERYGEN_SENTRY_DSN, if set."""
    sentry_sdk.init(
        dsn=os.environ.get(SENTRY_DSN_ENV),
        traces_sample_rate=0.03,
        environment=environment,
        release=__version__,
        attach_stacktrace=True,
        send_default_pii=False,
    )
