"""PostgreSQL type descriptors and the catalog type resolver.

Type OIDs reported by the database are opaque keys. TypeResolver turns
them into TypeDescriptor values, first from a table of well-known OIDs and
then from pg_catalog.pg_type through the catalog session. Array types
resolve their element type recursively.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel, ConfigDict

from pgquerygen.core.exceptions import UnknownTypeError

if TYPE_CHECKING:
    from pgquerygen.core.models import TypeRow
    from pgquerygen.infer.session import CatalogSession


class TypeKind(StrEnum):
    BASE = "base"
    ARRAY = "array"
    ENUM = "enum"
    COMPOSITE = "composite"
    DOMAIN = "domain"
    PSEUDO = "pseudo"
    RANGE = "range"
    MULTIRANGE = "multirange"


# pg_type.typtype -> TypeKind; arrays are detected by category instead.
_TYPTYPE_KINDS: dict[str, TypeKind] = {
    "b": TypeKind.BASE,
    "c": TypeKind.COMPOSITE,
    "d": TypeKind.DOMAIN,
    "e": TypeKind.ENUM,
    "p": TypeKind.PSEUDO,
    "r": TypeKind.RANGE,
    "m": TypeKind.MULTIRANGE,
}


class TypeDescriptor(BaseModel):
    """Canonical identity of a PostgreSQL type."""

    model_config = ConfigDict(frozen=True)

    oid: int
    name: str
    kind: TypeKind = TypeKind.BASE
    elem: TypeDescriptor | None = None

    @property
    def display_name(self) -> str:
        """SQL spelling: int4[] rather than the catalog's _int4."""
        if self.kind is TypeKind.ARRAY and self.elem is not None:
            return f"{self.elem.display_name}[]"
        return self.name

    def __str__(self) -> str:
        return self.display_name


def _base(oid: int, name: str, kind: TypeKind = TypeKind.BASE) -> TypeDescriptor:
    return TypeDescriptor(oid=oid, name=name, kind=kind)


def _array(oid: int, elem: TypeDescriptor) -> TypeDescriptor:
    return TypeDescriptor(oid=oid, name=f"_{elem.name}", kind=TypeKind.ARRAY, elem=elem)


BOOL = _base(16, "bool")
BYTEA = _base(17, "bytea")
CHAR = _base(18, "char")
NAME = _base(19, "name")
INT8 = _base(20, "int8")
INT2 = _base(21, "int2")
INT4 = _base(23, "int4")
TEXT = _base(25, "text")
OID = _base(26, "oid")
JSON = _base(114, "json")
XML = _base(142, "xml")
CIDR = _base(650, "cidr")
FLOAT4 = _base(700, "float4")
FLOAT8 = _base(701, "float8")
UNKNOWN = _base(705, "unknown", TypeKind.PSEUDO)
MONEY = _base(790, "money")
MACADDR = _base(829, "macaddr")
INET = _base(869, "inet")
BPCHAR = _base(1042, "bpchar")
VARCHAR = _base(1043, "varchar")
DATE = _base(1082, "date")
TIME = _base(1083, "time")
TIMESTAMP = _base(1114, "timestamp")
TIMESTAMPTZ = _base(1184, "timestamptz")
INTERVAL = _base(1186, "interval")
TIMETZ = _base(1266, "timetz")
BIT = _base(1560, "bit")
VARBIT = _base(1562, "varbit")
NUMERIC = _base(1700, "numeric")
REGCLASS = _base(2205, "regclass")
REGTYPE = _base(2206, "regtype")
RECORD = _base(2249, "record", TypeKind.PSEUDO)
VOID = _base(2278, "void", TypeKind.PSEUDO)
UUID = _base(2950, "uuid")
TSVECTOR = _base(3614, "tsvector")
TSQUERY = _base(3615, "tsquery")
JSONB = _base(3802, "jsonb")
INT4RANGE = _base(3904, "int4range", TypeKind.RANGE)
NUMRANGE = _base(3906, "numrange", TypeKind.RANGE)
TSRANGE = _base(3908, "tsrange", TypeKind.RANGE)
TSTZRANGE = _base(3910, "tstzrange", TypeKind.RANGE)
DATERANGE = _base(3912, "daterange", TypeKind.RANGE)
INT8RANGE = _base(3926, "int8range", TypeKind.RANGE)

BOOL_ARRAY = _array(1000, BOOL)
BYTEA_ARRAY = _array(1001, BYTEA)
INT2_ARRAY = _array(1005, INT2)
INT4_ARRAY = _array(1007, INT4)
TEXT_ARRAY = _array(1009, TEXT)
BPCHAR_ARRAY = _array(1014, BPCHAR)
VARCHAR_ARRAY = _array(1015, VARCHAR)
INT8_ARRAY = _array(1016, INT8)
FLOAT4_ARRAY = _array(1021, FLOAT4)
FLOAT8_ARRAY = _array(1022, FLOAT8)
OID_ARRAY = _array(1028, OID)
INET_ARRAY = _array(1041, INET)
TIMESTAMP_ARRAY = _array(1115, TIMESTAMP)
DATE_ARRAY = _array(1182, DATE)
TIME_ARRAY = _array(1183, TIME)
TIMESTAMPTZ_ARRAY = _array(1185, TIMESTAMPTZ)
INTERVAL_ARRAY = _array(1187, INTERVAL)
NUMERIC_ARRAY = _array(1231, NUMERIC)
JSON_ARRAY = _array(199, JSON)
UUID_ARRAY = _array(2951, UUID)
JSONB_ARRAY = _array(3807, JSONB)

# Built-in OIDs are fixed across PostgreSQL versions, so these never need a
# catalog round trip.
KNOWN_TYPES: dict[int, TypeDescriptor] = {
    t.oid: t
    for t in (
        BOOL, BYTEA, CHAR, NAME, INT8, INT2, INT4, TEXT, OID, JSON, XML,
        CIDR, FLOAT4, FLOAT8, UNKNOWN, MONEY, MACADDR, INET, BPCHAR, VARCHAR,
        DATE, TIME, TIMESTAMP, TIMESTAMPTZ, INTERVAL, TIMETZ, BIT, VARBIT,
        NUMERIC, REGCLASS, REGTYPE, RECORD, VOID, UUID, TSVECTOR, TSQUERY,
        JSONB, INT4RANGE, NUMRANGE, TSRANGE, TSTZRANGE, DATERANGE, INT8RANGE,
        BOOL_ARRAY, BYTEA_ARRAY, INT2_ARRAY, INT4_ARRAY, TEXT_ARRAY,
        BPCHAR_ARRAY, VARCHAR_ARRAY, INT8_ARRAY, FLOAT4_ARRAY, FLOAT8_ARRAY,
        OID_ARRAY, INET_ARRAY, TIMESTAMP_ARRAY, DATE_ARRAY, TIME_ARRAY,
        TIMESTAMPTZ_ARRAY, INTERVAL_ARRAY, NUMERIC_ARRAY, JSON_ARRAY,
        UUID_ARRAY, JSONB_ARRAY,
    )
}  # fmt: skip


def type_name(oid: int) -> str:
    """Name of a well-known type OID, or "unknown"."""
    known = KNOWN_TYPES.get(oid)
    return known.name if known is not None else "unknown"


def _kind_of(row: TypeRow) -> TypeKind:
    if row.category == "A" and row.elem_oid:
        return TypeKind.ARRAY
    return _TYPTYPE_KINDS.get(row.type_type, TypeKind.BASE)


class TypeResolver:
    """Resolve type OIDs to descriptors, memoizing every lookup.

    OIDs are immutable for the lifetime of a schema, so the memo never
    needs invalidating while the resolver's session points at one schema.
    """

    def __init__(self, session: CatalogSession) -> None:
        self.session = session
        self._cache: dict[int, TypeDescriptor] = {}

    def resolve(self, oid: int, query_name: str | None = None) -> TypeDescriptor:
        cached = self._cache.get(oid)
        if cached is not None:
            return cached

        descriptor = KNOWN_TYPES.get(oid)
        if descriptor is None:
            descriptor = self._resolve_from_catalog(oid, query_name)
        self._cache[oid] = descriptor
        return descriptor

    def _resolve_from_catalog(
        self, oid: int, query_name: str | None
    ) -> TypeDescriptor:
        log = structlog.get_logger()
        row = self.session.lookup_type(oid)
        if row is None:
            log.error("unknown type oid", oid=oid, query=query_name)
            raise UnknownTypeError(oid, query_name=query_name)

        kind = _kind_of(row)
        elem = None
        if kind is TypeKind.ARRAY:
            elem = self.resolve(row.elem_oid, query_name)
        log.debug("resolved catalog type", oid=oid, name=row.name, kind=kind.value)
        return TypeDescriptor(oid=oid, name=row.name, kind=kind, elem=elem)
