"""JSON formatter for typed query output."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from pgquerygen.formatters.base import registry

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from pgquerygen.infer.query import TypedQuery


class JSONFormatter:
    def __init__(self, compact: bool = False) -> None:
        self.compact = compact

    def format(self, queries: Sequence[TypedQuery]) -> Iterator[str]:
        documents = [q.model_dump(mode="json") for q in queries]

        if self.compact:
            yield json.dumps(documents)
        else:
            yield json.dumps(documents, indent=2)


registry.register("json", JSONFormatter)
