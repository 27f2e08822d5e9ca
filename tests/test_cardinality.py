"""Tests for result kind validation."""

import pytest

from pgquerygen.core.exceptions import ResultCardinalityError
from pgquerygen.infer.cardinality import validate_result_kind
from pgquerygen.infer.query import ResultKind


@pytest.mark.unit
@pytest.mark.parametrize("kind", [ResultKind.ONE, ResultKind.MANY])
def test_row_kinds_require_outputs(kind):
    with pytest.raises(ResultCardinalityError) as exc_info:
        validate_result_kind("DeleteAuthor", kind, 0)
    assert exc_info.value.query_name == "DeleteAuthor"
    assert exc_info.value.message == (
        f"query DeleteAuthor has incompatible result kind {kind.value}; "
        "the query doesn't return any rows; "
        "use :exec if query shouldn't return rows"
    )


@pytest.mark.unit
@pytest.mark.parametrize("kind", [ResultKind.ONE, ResultKind.MANY])
def test_row_kinds_with_outputs(kind):
    validate_result_kind("FindAuthors", kind, 2)


@pytest.mark.unit
@pytest.mark.parametrize("outputs", [0, 3])
def test_exec_accepts_any_shape(outputs):
    validate_result_kind("Anything", ResultKind.EXEC, outputs)
