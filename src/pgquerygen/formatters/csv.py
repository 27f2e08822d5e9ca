"""CSV formatter for typed query output (RFC 4180 compliant).

One row per parameter or output column. Queries with neither still get a
single row so every query shows up in the output.
"""

from __future__ import annotations

import csv
from io import StringIO
from typing import TYPE_CHECKING

from pgquerygen.formatters.base import registry, typed_rows

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from pgquerygen.infer.query import TypedQuery

HEADER = ["query", "result_kind", "role", "name", "type", "nullable"]


def _write_row(values: list[str]) -> str:
    buf = StringIO()
    writer = csv.writer(buf)
    writer.writerow(values)
    return buf.getvalue().rstrip("\r\n")


class CSVFormatter:
    def __init__(self, no_header: bool = False) -> None:
        self.no_header = no_header

    def format(self, queries: Sequence[TypedQuery]) -> Iterator[str]:
        if not self.no_header:
            yield _write_row(HEADER)

        for query in queries:
            rows = typed_rows(query) or [("", "", "", "")]
            for row in rows:
                yield _write_row([query.name, str(query.result_kind), *row])


registry.register("csv", CSVFormatter)
