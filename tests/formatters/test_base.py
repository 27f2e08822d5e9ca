"""Tests for Formatter protocol, registry and row flattening."""

import pytest

from pgquerygen.formatters.base import Formatter, FormatterRegistry, typed_rows
from pgquerygen.infer.query import InputParam, OutputColumn, ResultKind, TypedQuery
from pgquerygen.infer.types import INT4, TEXT, TEXT_ARRAY


def _make_query(inputs=None, outputs=None):
    if inputs is None:
        inputs = [InputParam(pg_name="AuthorID", pg_type=INT4)]
    if outputs is None:
        outputs = [
            OutputColumn(pg_name="first_name", pg_type=TEXT, nullable=False),
            OutputColumn(pg_name="aliases", pg_type=TEXT_ARRAY, nullable=True),
        ]
    return TypedQuery(
        name="FindAuthor",
        result_kind=ResultKind.ONE,
        prepared_sql="SELECT first_name, aliases FROM author WHERE author_id = $1",
        inputs=tuple(inputs),
        outputs=tuple(outputs),
    )


class _StubFormatter:
    def format(self, queries):
        for query in queries:
            yield query.name


class _BadFormatter:
    """Missing format method."""


@pytest.mark.unit
def test_stub_implements_protocol():
    assert isinstance(_StubFormatter(), Formatter)


@pytest.mark.unit
def test_bad_formatter_fails_protocol():
    assert not isinstance(_BadFormatter(), Formatter)


@pytest.mark.unit
def test_registry_register_and_get():
    reg = FormatterRegistry()
    reg.register("stub", _StubFormatter)
    assert list(reg.get("stub").format([_make_query()])) == ["FindAuthor"]


@pytest.mark.unit
def test_registry_unknown_format_lists_available():
    reg = FormatterRegistry()
    reg.register("stub", _StubFormatter)
    with pytest.raises(KeyError, match="Available: stub"):
        reg.get("xml")


@pytest.mark.unit
def test_registry_available_sorted():
    reg = FormatterRegistry()
    reg.register("b", _StubFormatter)
    reg.register("a", _StubFormatter)
    assert reg.available == ["a", "b"]


@pytest.mark.unit
def test_typed_rows_params_then_columns():
    assert typed_rows(_make_query()) == [
        ("$1", "AuthorID", "int4", ""),
        ("column", "first_name", "text", "no"),
        ("column", "aliases", "text[]", "yes"),
    ]


@pytest.mark.unit
def test_typed_rows_empty_query():
    assert typed_rows(_make_query(inputs=[], outputs=[])) == []
