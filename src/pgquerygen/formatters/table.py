"""Rich table formatter for typed query output."""

from __future__ import annotations

import shutil
from io import StringIO
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from pgquerygen.formatters.base import registry, typed_rows

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from pgquerygen.infer.query import TypedQuery

_NO_RESULTS = "No queries"


def _truncate(value: str, width: int) -> str:
    if len(value) <= width:
        return value
    return value[: width - 1] + "…"


class TableFormatter:
    def __init__(self, width: int = 40) -> None:
        self.width = width

    def format(self, queries: Sequence[TypedQuery]) -> Iterator[str]:
        if not queries:
            yield _NO_RESULTS
            return

        buf = StringIO()
        term_width = shutil.get_terminal_size((120, 24)).columns
        console = Console(file=buf, force_terminal=True, width=term_width)
        for query in queries:
            table = Table(
                title=f"{query.name} {query.result_kind}",
                show_edge=True,
                pad_edge=True,
            )
            for header in ("role", "name", "type", "nullable"):
                table.add_column(header, no_wrap=True)
            for row in typed_rows(query):
                table.add_row(*(_truncate(v, self.width) for v in row))
            console.print(table)
        yield buf.getvalue().rstrip("\n")


registry.register("table", TableFormatter)
