"""structlog setup for the CLI.

Logs go to stderr; stdout carries only typed-query output and the gen
summary. Modules call structlog.get_logger() inside functions, so the
configuration applied here is picked up on first use.
"""

import logging
import sys
from typing import Any

import structlog


class _CurrentStderr:
    """Logger factory that looks up sys.stderr each time a logger is built.

    CliRunner swaps sys.stderr per invocation, so a handle captured once at
    configure() time goes stale between tests.
    """

    def __call__(self, *args: Any) -> structlog.PrintLogger:
        return structlog.PrintLogger(file=sys.stderr)


def setup_logging(verbose: bool = False) -> None:
    """Configure structlog. verbose turns on the inferrer's per-step debug trace."""
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if verbose else logging.INFO
        ),
        logger_factory=_CurrentStderr(),
        cache_logger_on_first_use=False,
    )
