"""Nullability heuristics for output columns.

True nullability needs full semantic analysis of the query. Instead a
short, ordered list of rules is evaluated against the query's syntax and
the catalog provenance of the column; the first rule with an opinion
wins and anything no rule recognizes is reported nullable. Reporting a
never-null column as nullable is acceptable, the opposite is not.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from pgquerygen.infer.syntax import ExprKind, OutputExpr, QuerySyntax

if TYPE_CHECKING:
    from pgquerygen.core.models import ColumnRow

Rule = Callable[[QuerySyntax, OutputExpr, "ColumnRow | None"], "bool | None"]


def literal_rule(
    syntax: QuerySyntax, expr: OutputExpr, provenance: ColumnRow | None
) -> bool | None:
    """Literal constants are never null."""
    if expr.kind is ExprKind.LITERAL:
        return False
    return None


def not_null_column_rule(
    syntax: QuerySyntax, expr: OutputExpr, provenance: ColumnRow | None
) -> bool | None:
    """NOT NULL table columns stay non-null when read from a non-nullable join side.

    The database reports the base table a column originates from even when
    it passes through a subquery or nested join, where an outer join may
    have nulled it. Unqualified references are therefore only trusted when
    every relation in the FROM list is a plain table.
    """
    if expr.kind is not ExprKind.COLUMN or syntax.set_operation:
        return None
    if provenance is None or not provenance.not_null:
        return None
    if expr.column is not None and expr.column != provenance.column_name.lower():
        return None
    if expr.qualifier is None and syntax.has_derived_relation:
        return None

    table = provenance.table_name.lower()
    sources = syntax.source_relations(expr.qualifier, provenance.table_name)
    if sources and all(r.name == table and not r.nullable for r in sources):
        return False
    return None


def outer_join_rule(
    syntax: QuerySyntax, expr: OutputExpr, provenance: ColumnRow | None
) -> bool | None:
    """Set operations and outer-join nullable sides may produce nulls."""
    if syntax.set_operation:
        return True
    if expr.kind is not ExprKind.COLUMN:
        return None

    table = provenance.table_name if provenance is not None else None
    if any(r.nullable for r in syntax.source_relations(expr.qualifier, table)):
        return True
    return None


NULLABILITY_RULES: tuple[Rule, ...] = (
    literal_rule,
    not_null_column_rule,
    outer_join_rule,
)


def analyze_nullability(
    syntax: QuerySyntax, output_index: int, provenance: ColumnRow | None
) -> bool:
    """Return True if the output column at output_index may be null."""
    expr = syntax.output(output_index)
    for rule in NULLABILITY_RULES:
        verdict = rule(syntax, expr, provenance)
        if verdict is not None:
            return verdict
    return True
