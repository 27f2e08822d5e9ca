"""Type inference for a single source query.

The Inferrer drives a catalog session through one linear attempt per
query: describe the prepared statement, check the declared result kind,
resolve every type OID, decide nullability per output column and
assemble a TypedQuery. Any failure raises; there is no partial result.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import sentry_sdk
import structlog

from pgquerygen.core.exceptions import CatalogError
from pgquerygen.infer.cardinality import validate_result_kind
from pgquerygen.infer.nullability import analyze_nullability
from pgquerygen.infer.query import InputParam, OutputColumn, TypedQuery
from pgquerygen.infer.syntax import parse_query_syntax
from pgquerygen.infer.types import TypeResolver

if TYPE_CHECKING:
    from collections.abc import Iterable

    from pgquerygen.core.models import ColumnRow, FieldDescription
    from pgquerygen.infer.query import SourceQuery
    from pgquerygen.infer.session import CatalogSession

_DIRECTIVE_PREFIX = "name:"


def normalize_doc(lines: Iterable[str]) -> tuple[str, ...]:
    """Strip comment dashes and whitespace, dropping name: directives.

    Only dashes are stripped from the front so markdown-ish lines such as
    "--- - item" keep their own leading dash.
    """
    doc: list[str] = []
    for line in lines:
        text = line.strip().lstrip("-").strip()
        if text.startswith(_DIRECTIVE_PREFIX):
            continue
        doc.append(text)
    return tuple(doc)


class Inferrer:
    """Infers parameter and output types by asking the database.

    The session is owned by the caller. Only the type memo carries over
    between calls.
    """

    def __init__(self, session: CatalogSession) -> None:
        self.session = session
        self.resolver = TypeResolver(session)

    def infer_types(self, query: SourceQuery) -> TypedQuery:
        log = structlog.get_logger().bind(query=query.name)
        with sentry_sdk.start_span(op="pgquerygen.infer", description=query.name):
            try:
                description = self.session.describe_statement(query.prepared_sql)
            except CatalogError as e:
                msg = f"query {query.name}: {e.message}"
                raise CatalogError(msg, query_name=query.name) from e
            log.debug("statement prepared", params=len(description.param_oids))

            if len(description.param_oids) != len(query.param_names):
                msg = (
                    f"query {query.name}: expected {len(query.param_names)} "
                    f"parameters but the database reported "
                    f"{len(description.param_oids)}"
                )
                raise CatalogError(msg, query_name=query.name)
            fields = description.fields
            log.debug("statement shaped", outputs=len(fields))

            validate_result_kind(query.name, query.result_kind, len(fields))
            log.debug("result kind validated", result_kind=str(query.result_kind))

            inputs = tuple(
                InputParam(pg_name=name, pg_type=self.resolver.resolve(oid, query.name))
                for name, oid in zip(query.param_names, description.param_oids, strict=True)
            )
            output_types = [self.resolver.resolve(f.type_oid, query.name) for f in fields]
            log.debug("types resolved")

            outputs: tuple[OutputColumn, ...] = ()
            if fields:
                syntax = parse_query_syntax(query.prepared_sql)
                outputs = tuple(
                    OutputColumn(
                        pg_name=field.name,
                        pg_type=pg_type,
                        nullable=analyze_nullability(syntax, i, self._provenance(field)),
                    )
                    for i, (field, pg_type) in enumerate(zip(fields, output_types, strict=True))
                )

            typed = TypedQuery(
                name=query.name,
                result_kind=query.result_kind,
                doc=normalize_doc(query.doc),
                prepared_sql=query.prepared_sql,
                inputs=inputs,
                outputs=outputs,
            )
            log.debug("query assembled", inputs=len(inputs), outputs=len(outputs))
            return typed

    def _provenance(self, field: FieldDescription) -> ColumnRow | None:
        if not field.table_oid or field.table_column <= 0:
            return None
        return self.session.lookup_column(field.table_oid, field.table_column)
