"""Result kind validation against the statement's actual shape."""

from __future__ import annotations

from pgquerygen.core.exceptions import ResultCardinalityError
from pgquerygen.infer.query import ResultKind


def validate_result_kind(name: str, declared: ResultKind, output_count: int) -> None:
    """Reject :one and :many on statements that return no columns.

    Whether a :one query really yields a single row is only knowable at
    runtime, so that mismatch is not checked here.
    """
    match declared:
        case ResultKind.ONE | ResultKind.MANY:
            if output_count == 0:
                msg = (
                    f"query {name} has incompatible result kind {declared}; "
                    "the query doesn't return any rows; "
                    "use :exec if query shouldn't return rows"
                )
                raise ResultCardinalityError(msg, query_name=name)
        case ResultKind.EXEC:
            return
