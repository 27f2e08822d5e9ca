"""Query models flowing through type inference.

SourceQuery comes in from the query file parser, TypedQuery goes out to
manifest emission and the formatters. Both are frozen, so a TypedQuery
built twice from the same catalog compares equal.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from pgquerygen.infer.types import TypeDescriptor  # noqa: TC001


class ResultKind(StrEnum):
    """Declared cardinality of a query's result."""

    ONE = ":one"
    MANY = ":many"
    EXEC = ":exec"


class SourceQuery(BaseModel):
    """A single annotated query as parsed from a query file."""

    model_config = ConfigDict(frozen=True)

    name: str
    prepared_sql: str
    param_names: tuple[str, ...] = ()
    result_kind: ResultKind
    doc: tuple[str, ...] = ()


class InputParam(BaseModel):
    model_config = ConfigDict(frozen=True)

    pg_name: str
    pg_type: TypeDescriptor


class OutputColumn(BaseModel):
    model_config = ConfigDict(frozen=True)

    pg_name: str
    pg_type: TypeDescriptor
    nullable: bool


class TypedQuery(BaseModel):
    """A query with every parameter and output column typed."""

    model_config = ConfigDict(frozen=True)

    name: str
    result_kind: ResultKind
    doc: tuple[str, ...] = ()
    prepared_sql: str
    inputs: tuple[InputParam, ...] = ()
    outputs: tuple[OutputColumn, ...] = ()
