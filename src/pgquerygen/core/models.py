"""Database boundary models for pgquerygen.

Pydantic models for what PgClient reads back from PostgreSQL: plain
catalog query results, prepared statement descriptions, and rows from
pg_type and pg_attribute.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class ColumnMeta(BaseModel):
    """Metadata for a single result column."""

    name: str
    type_oid: int
    type_name: str


class QueryResult(BaseModel):
    """Result of a SQL query execution."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    columns: list[ColumnMeta]
    rows: list[tuple[Any, ...]]
    row_count: int
    status_message: str


class FieldDescription(BaseModel):
    """One result column of a described prepared statement.

    table_oid and table_column are 0 when the column is not a plain
    reference to a table column (expressions, literals, set operations).
    """

    model_config = ConfigDict(frozen=True)

    name: str
    type_oid: int
    table_oid: int = 0
    table_column: int = 0


class StatementDescription(BaseModel):
    """Parameter types and result columns of a prepared statement."""

    model_config = ConfigDict(frozen=True)

    param_oids: tuple[int, ...] = ()
    fields: tuple[FieldDescription, ...] = ()


class TypeRow(BaseModel):
    """A row of pg_catalog.pg_type."""

    model_config = ConfigDict(frozen=True)

    oid: int
    name: str
    elem_oid: int = 0
    type_type: str = "b"
    category: str = "U"


class ColumnRow(BaseModel):
    """A table column from pg_catalog.pg_attribute joined to pg_class."""

    model_config = ConfigDict(frozen=True)

    table_oid: int
    attnum: int
    table_name: str
    column_name: str
    not_null: bool
