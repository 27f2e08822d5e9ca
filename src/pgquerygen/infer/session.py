"""The database session contract used by type inference.

The inferrer never opens connections itself; callers hand it something
satisfying CatalogSession (PgClient in production, in-memory fakes in
tests). Prepared statement state is per connection, so one session must
not be shared by concurrently running inferences.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from pgquerygen.core.models import ColumnRow, StatementDescription, TypeRow


@runtime_checkable
class CatalogSession(Protocol):
    def describe_statement(self, sql: str) -> StatementDescription:
        """Prepare sql and report its parameter OIDs and result fields.

        Raises CatalogError if the database rejects the statement.
        """
        ...

    def lookup_type(self, oid: int) -> TypeRow | None:
        """Return the pg_type row for oid, or None if there is none."""
        ...

    def lookup_column(self, table_oid: int, attnum: int) -> ColumnRow | None:
        """Return the table column at (table_oid, attnum), or None."""
        ...
