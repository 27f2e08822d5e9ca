"""Output format selection and TTY auto-detection."""

from __future__ import annotations

import sys
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pgquerygen.formatters.base import Formatter
    from pgquerygen.infer.query import TypedQuery


class OutputFormat(StrEnum):
    TABLE = "table"
    JSON = "json"
    CSV = "csv"


def detect_tty() -> bool:
    return sys.stdout.isatty()


def resolve_format(format_flag: str | None, default_format: str = "table") -> str:
    """Determine the output format.

    Explicit --format overrides TTY detection. On a TTY the configured
    default applies; pipes get json, which is what scripts consume.
    """
    if format_flag is not None:
        return format_flag
    return default_format if detect_tty() else "json"


def get_formatter(
    format_flag: str | None = None,
    *,
    default_format: str = "table",
    compact: bool = False,
    width: int = 40,
    no_header: bool = False,
) -> Formatter:
    """Build and return the appropriate formatter instance."""
    # Import here to trigger registry population from formatter modules.
    import pgquerygen.formatters.csv  # noqa: F401
    import pgquerygen.formatters.json  # noqa: F401
    import pgquerygen.formatters.table  # noqa: F401
    from pgquerygen.formatters.base import registry

    fmt_name = resolve_format(format_flag, default_format)

    kwargs: dict[str, object] = {}
    if fmt_name == "table":
        kwargs["width"] = width
    elif fmt_name == "json":
        kwargs["compact"] = compact
    elif fmt_name == "csv":
        kwargs["no_header"] = no_header

    return registry.get(fmt_name, **kwargs)


def write_output(formatter: Formatter, queries: Sequence[TypedQuery]) -> None:
    """Write formatted typed queries to stdout."""
    for line in formatter.format(queries):
        sys.stdout.write(line + "\n")
