"""PostgreSQL client for pgquerygen.

Wraps psycopg v3 synchronous connections with catalog queries, statement
description for type inference, and exception mapping to the
QueryGenError hierarchy. PgClient satisfies infer.session.CatalogSession.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

import psycopg
import psycopg.errors
import sentry_sdk
import structlog
from psycopg import pq
from psycopg.sql import SQL, Identifier

from pgquerygen.core.exceptions import (
    CatalogError,
    NetworkError,
    QueryGenError,
    TimeoutError,
)
from pgquerygen.core.models import (
    ColumnMeta,
    ColumnRow,
    FieldDescription,
    QueryResult,
    StatementDescription,
    TypeRow,
)
from pgquerygen.infer.types import type_name

if TYPE_CHECKING:
    from pgquerygen.core.config import ResolvedConfig

# Describing goes through the unnamed statement, which the next Parse
# message replaces, so nothing is left to deallocate.
_UNNAMED_STATEMENT = b""

_CONNECT_TIMEOUT = 10

_TYPE_SQL = """
SELECT t.oid, t.typname::text, t.typelem, t.typtype::text, t.typcategory::text
FROM pg_catalog.pg_type t
WHERE t.oid = %(oid)s::oid
"""

_COLUMN_SQL = """
SELECT c.oid, a.attnum, c.relname::text, a.attname::text, a.attnotnull
FROM pg_catalog.pg_attribute a
JOIN pg_catalog.pg_class c ON c.oid = a.attrelid
WHERE a.attrelid = %(table_oid)s::oid
  AND a.attnum = %(attnum)s
  AND NOT a.attisdropped
"""


def _error_text(result: pq.abc.PGresult, conn: psycopg.Connection[Any]) -> str:
    return result.error_message.decode(conn.info.encoding, errors="replace").strip()


def _describe_error(
    result: pq.abc.PGresult, conn: psycopg.Connection[Any]
) -> QueryGenError:
    """CatalogError for a rejected statement, NetworkError for a lost connection."""
    text = _error_text(result, conn)
    if conn.pgconn.status != pq.ConnStatus.OK:
        return NetworkError(f"Database error: {text}")
    return CatalogError(text)


class PgClient:
    """Synchronous PostgreSQL client using psycopg v3."""

    def __init__(self, config: ResolvedConfig) -> None:
        self.config = config
        self._connection: psycopg.Connection[Any] | None = None

    def __enter__(self) -> PgClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _connect(self) -> psycopg.Connection[Any]:
        if self._connection is not None and not self._connection.closed:
            return self._connection

        try:
            self._connection = psycopg.connect(
                host=self.config.host,
                port=self.config.port,
                dbname=self.config.dbname,
                user=self.config.user,
                password=self.config.password,
                sslmode=self.config.sslmode,
                connect_timeout=_CONNECT_TIMEOUT,
                application_name="pgquerygen",
                autocommit=True,
            )
        except psycopg.OperationalError as e:
            msg = (
                f"Connection failed to {self.config.host}:{self.config.port} "
                f"database '{self.config.dbname}': {e}"
            )
            raise NetworkError(msg) from e

        timeout_ms = int(self.config.statement_timeout * 1000)
        self._connection.execute(f"SET statement_timeout = {timeout_ms}")
        if self.config.search_path:
            schemas = list(self.config.search_path)
            if "public" not in schemas:
                schemas.append("public")
            self._connection.execute(
                SQL("SET search_path TO {}").format(
                    SQL(", ").join(Identifier(s) for s in schemas)
                )
            )
        return self._connection

    @property
    def connection(self) -> psycopg.Connection[Any]:
        """The live connection, opened on first use."""
        return self._connect()

    def execute_query(
        self, sql: str, params: dict[str, Any] | None = None
    ) -> QueryResult:
        """Execute SQL and return a QueryResult."""
        log = structlog.get_logger()
        conn = self._connect()

        sql_normalized = " ".join(sql.split())
        span_description = sql_normalized[:100]
        log.debug("executing query", sql=sql_normalized)
        with sentry_sdk.start_span(op="db.query", description=span_description) as span:
            start_time = time.monotonic()
            try:
                with conn.cursor() as cur:
                    cur.execute(sql, params)

                    columns: list[ColumnMeta] = []
                    rows: list[tuple[Any, ...]] = []

                    if cur.description:
                        for desc in cur.description:
                            columns.append(
                                ColumnMeta(
                                    name=desc.name,
                                    type_oid=desc.type_code,
                                    type_name=type_name(desc.type_code),
                                )
                            )
                        rows = cur.fetchall()

                    duration_ms = (time.monotonic() - start_time) * 1000
                    span.set_data("row_count", len(rows))
                    span.set_data("duration_ms", duration_ms)
                    log.debug(
                        "query complete",
                        duration_ms=f"{duration_ms:.1f}",
                        row_count=len(rows),
                    )

                    return QueryResult(
                        columns=columns,
                        rows=rows,
                        row_count=len(rows),
                        status_message=cur.statusmessage or "",
                    )

            except psycopg.errors.QueryCanceled as e:
                duration_ms = (time.monotonic() - start_time) * 1000
                span.set_data("duration_ms", duration_ms)
                span.set_status("deadline_exceeded")
                log.error(
                    "query timeout",
                    sql=sql_normalized,
                    duration_ms=f"{duration_ms:.1f}",
                )
                msg = f"Query timed out after {self.config.statement_timeout}s: {e}"
                raise TimeoutError(msg) from e
            except psycopg.errors.SyntaxError as e:
                span.set_status("invalid_argument")
                log.error("query syntax error", sql=sql_normalized, error=str(e))
                raise QueryGenError(f"SQL error: {e}") from e
            except psycopg.OperationalError as e:
                span.set_status("unavailable")
                log.error("database error", sql=sql_normalized, error=str(e))
                raise NetworkError(f"Database error: {e}") from e

    def execute_script(self, sql: str) -> None:
        """Run a multi-statement script such as a schema file.

        Without parameters psycopg uses the simple query protocol, which
        accepts several statements separated by semicolons.
        """
        log = structlog.get_logger()
        conn = self._connect()
        with sentry_sdk.start_span(op="db.script", description=sql[:100]):
            try:
                conn.execute(sql)
            except psycopg.OperationalError as e:
                raise NetworkError(f"Database error: {e}") from e
            except psycopg.Error as e:
                log.error("script failed", error=str(e))
                raise QueryGenError(f"SQL error: {e}") from e

    def describe_statement(self, sql: str) -> StatementDescription:
        """Prepare sql and describe its parameters and result fields.

        Runs inside a transaction block (a savepoint when one is already
        open) so a rejected statement leaves an enclosing transaction
        usable for the next query.
        """
        log = structlog.get_logger()
        conn = self._connect()
        pgconn = conn.pgconn
        sql_normalized = " ".join(sql.split())

        with sentry_sdk.start_span(
            op="db.describe", description=sql_normalized[:100]
        ) as span:
            try:
                with conn.transaction():
                    prepared = pgconn.prepare(
                        _UNNAMED_STATEMENT, sql.encode(conn.info.encoding)
                    )
                    if prepared.status != pq.ExecStatus.COMMAND_OK:
                        span.set_status("invalid_argument")
                        raise _describe_error(prepared, conn)

                    described = pgconn.describe_prepared(_UNNAMED_STATEMENT)
                    if described.status != pq.ExecStatus.COMMAND_OK:
                        span.set_status("invalid_argument")
                        raise _describe_error(described, conn)
            except psycopg.OperationalError as e:
                span.set_status("unavailable")
                raise NetworkError(f"Database error: {e}") from e

            param_oids = tuple(
                described.param_type(i) for i in range(described.nparams)
            )
            fields = tuple(
                FieldDescription(
                    name=(described.fname(i) or b"?column?").decode(conn.info.encoding),
                    type_oid=described.ftype(i),
                    table_oid=described.ftable(i),
                    table_column=described.ftablecol(i),
                )
                for i in range(described.nfields)
            )
            log.debug(
                "statement described",
                sql=sql_normalized,
                params=len(param_oids),
                fields=len(fields),
            )
            return StatementDescription(param_oids=param_oids, fields=fields)

    def lookup_type(self, oid: int) -> TypeRow | None:
        result = self.execute_query(_TYPE_SQL, {"oid": oid})
        if not result.rows:
            return None
        type_oid, name, elem_oid, type_type, category = result.rows[0]
        return TypeRow(
            oid=type_oid,
            name=name,
            elem_oid=elem_oid,
            type_type=type_type,
            category=category,
        )

    def lookup_column(self, table_oid: int, attnum: int) -> ColumnRow | None:
        result = self.execute_query(
            _COLUMN_SQL, {"table_oid": table_oid, "attnum": attnum}
        )
        if not result.rows:
            return None
        rel_oid, column_num, table_name, column_name, not_null = result.rows[0]
        return ColumnRow(
            table_oid=rel_oid,
            attnum=column_num,
            table_name=table_name,
            column_name=column_name,
            not_null=not_null,
        )

    def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None
