"""Relational structure of a query, as seen by the nullability rules.

parse_query_syntax() reduces a statement to a flat, immutable arena: the
relations in its FROM/JOIN list (indexed by position, each marked when it
sits on the nullable side of an outer join) and one entry per output
expression. Nothing here talks to the database; the rules combine this
with the column provenance the database reports.

SQL that sqlglot cannot parse yields an opaque QuerySyntax, which makes
every output fall through to the conservative default.
"""

from __future__ import annotations

from enum import StrEnum

import sqlglot
import structlog
from pydantic import BaseModel, ConfigDict
from sqlglot import exp
from sqlglot.errors import SqlglotError

_SET_OPERATIONS = (exp.Union, exp.Except, exp.Intersect)
_DML = (exp.Insert, exp.Update, exp.Delete)


class ExprKind(StrEnum):
    LITERAL = "literal"
    COLUMN = "column"
    OTHER = "other"


class Relation(BaseModel):
    """A FROM item. name is None for subqueries, CTEs and functions."""

    model_config = ConfigDict(frozen=True)

    index: int
    name: str | None
    alias: str
    nullable: bool = False


class OutputExpr(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    kind: ExprKind
    column: str | None = None
    qualifier: str | None = None


class QuerySyntax(BaseModel):
    model_config = ConfigDict(frozen=True)

    relations: tuple[Relation, ...] = ()
    outputs: tuple[OutputExpr, ...] = ()
    set_operation: bool = False
    star: bool = False
    opaque: bool = False

    def output(self, index: int) -> OutputExpr:
        """Output expression at index.

        With a star in the select list positions no longer line up with
        the written expressions, so every output is treated as an
        unqualified column reference.
        """
        if self.star:
            return OutputExpr(index=index, kind=ExprKind.COLUMN)
        if 0 <= index < len(self.outputs):
            return self.outputs[index]
        return OutputExpr(index=index, kind=ExprKind.OTHER)

    @property
    def has_derived_relation(self) -> bool:
        return any(r.name is None for r in self.relations)

    def source_relations(
        self, qualifier: str | None, table_name: str | None
    ) -> tuple[Relation, ...]:
        """Relations a column reference may come from.

        Qualified references match on alias. Unqualified ones match every
        base table with the provenance table's name.
        """
        if qualifier:
            return tuple(r for r in self.relations if r.alias == qualifier.lower())
        if not table_name:
            return ()
        return tuple(r for r in self.relations if r.name == table_name.lower())


def parse_query_syntax(sql: str) -> QuerySyntax:
    log = structlog.get_logger()
    try:
        statements = [s for s in sqlglot.parse(sql, read="postgres") if s is not None]
    except SqlglotError as e:
        log.warning("could not parse query syntax", error=str(e))
        return QuerySyntax(opaque=True)

    if len(statements) != 1:
        log.warning("expected a single statement", count=len(statements))
        return QuerySyntax(opaque=True)
    return _build(statements[0])


def _build(node: exp.Expression) -> QuerySyntax:
    if isinstance(node, _SET_OPERATIONS):
        return _build_set_operation(node)
    if isinstance(node, exp.Subquery):
        return _build(node.this)

    ctes = _cte_names(node)
    if isinstance(node, exp.Select):
        relations = _select_relations(node, ctes)
        projections = node.expressions
    elif isinstance(node, _DML):
        returning = node.args.get("returning")
        if returning is None:
            return QuerySyntax()
        relations = _dml_relations(node, ctes)
        projections = returning.expressions
    else:
        return QuerySyntax(opaque=True)

    if any(p.is_star for p in projections):
        return QuerySyntax(relations=tuple(relations), star=True)

    outputs = tuple(_output(i, p) for i, p in enumerate(projections))
    return QuerySyntax(relations=tuple(relations), outputs=outputs)


def _build_set_operation(node: exp.Expression) -> QuerySyntax:
    branches = [_build(node.this), _build(node.expression)]
    width = len(branches[0].outputs) if not branches[0].star else 0
    outputs = []
    for i in range(width):
        literal = all(b.output(i).kind is ExprKind.LITERAL for b in branches)
        outputs.append(
            OutputExpr(index=i, kind=ExprKind.LITERAL if literal else ExprKind.OTHER)
        )
    return QuerySyntax(outputs=tuple(outputs), set_operation=True)


def _cte_names(node: exp.Expression) -> set[str]:
    # The arg key is "with" or "with_" depending on the sqlglot release.
    with_ = node.args.get("with") or node.args.get("with_")
    if with_ is None:
        return set()
    return {cte.alias.lower() for cte in with_.expressions}


def _from_clause(node: exp.Expression) -> exp.From | None:
    # The arg key is "from" or "from_" depending on the sqlglot release.
    return node.args.get("from") or node.args.get("from_")


def _relation(
    source: exp.Expression | None, index: int, nullable: bool, ctes: set[str]
) -> Relation:
    # A parenthesized join parses as a table carrying its own joins; its
    # inner join sides are not tracked, so it counts as derived.
    if (
        isinstance(source, exp.Table)
        and isinstance(source.this, exp.Identifier)
        and not source.args.get("joins")
    ):
        name = source.name.lower()
        alias = (source.alias or source.name).lower()
        if name in ctes and not source.db:
            return Relation(index=index, name=None, alias=alias, nullable=nullable)
        return Relation(index=index, name=name, alias=alias, nullable=nullable)
    alias = source.alias_or_name.lower() if source is not None else ""
    return Relation(index=index, name=None, alias=alias, nullable=nullable)


def _join_relations(
    relations: list[Relation], joins: list[exp.Join], ctes: set[str]
) -> list[Relation]:
    for join in joins:
        side = join.side
        if side in ("RIGHT", "FULL"):
            relations = [r.model_copy(update={"nullable": True}) for r in relations]
        nullable = side in ("LEFT", "FULL")
        relations.append(_relation(join.this, len(relations), nullable, ctes))
    return relations


def _select_relations(node: exp.Select, ctes: set[str]) -> list[Relation]:
    relations: list[Relation] = []
    from_ = _from_clause(node)
    if from_ is not None:
        relations.append(_relation(from_.this, 0, False, ctes))
    return _join_relations(relations, node.args.get("joins") or [], ctes)


def _dml_relations(node: exp.Expression, ctes: set[str]) -> list[Relation]:
    target = node.this
    if isinstance(target, exp.Schema):
        target = target.this
    relations = [_relation(target, 0, False, ctes)]

    extra: list[exp.Expression] = []
    from_ = _from_clause(node)
    if from_ is not None:
        extra.append(from_.this)
    extra.extend(node.args.get("using") or [])
    for source in extra:
        relations.append(_relation(source, len(relations), False, ctes))
    return _join_relations(relations, node.args.get("joins") or [], ctes)


def _is_literal(expr: exp.Expression) -> bool:
    if isinstance(expr, (exp.Cast, exp.Neg, exp.Paren)):
        return _is_literal(expr.this)
    return isinstance(expr, (exp.Literal, exp.Boolean))


def _output(index: int, projection: exp.Expression) -> OutputExpr:
    expr = projection.unalias()
    if _is_literal(expr):
        return OutputExpr(index=index, kind=ExprKind.LITERAL)
    if isinstance(expr, exp.Column):
        return OutputExpr(
            index=index,
            kind=ExprKind.COLUMN,
            column=expr.name.lower(),
            qualifier=expr.table.lower() or None,
        )
    return OutputExpr(index=index, kind=ExprKind.OTHER)
