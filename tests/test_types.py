"""Tests for type descriptors and the catalog type resolver."""

import pytest

from pgquerygen.core.exceptions import UnknownTypeError
from pgquerygen.core.models import TypeRow
from pgquerygen.infer.types import (
    INT4,
    INT4_ARRAY,
    KNOWN_TYPES,
    TEXT,
    TypeDescriptor,
    TypeKind,
    TypeResolver,
    type_name,
)
from tests.fakes import MISSING_TYPE_OID, MOOD_ARRAY_OID, MOOD_OID, FakeSession


@pytest.mark.unit
class TestTypeDescriptor:
    def test_display_name_base(self):
        assert INT4.display_name == "int4"
        assert str(TEXT) == "text"

    def test_display_name_array(self):
        assert INT4_ARRAY.name == "_int4"
        assert INT4_ARRAY.display_name == "int4[]"
        assert INT4_ARRAY.elem == INT4

    def test_value_equality(self):
        assert TypeDescriptor(oid=23, name="int4") == INT4

    def test_known_types_keyed_by_oid(self):
        for oid, descriptor in KNOWN_TYPES.items():
            assert descriptor.oid == oid

    def test_type_name(self):
        assert type_name(25) == "text"
        assert type_name(MOOD_OID) == "unknown"


@pytest.mark.unit
class TestTypeResolver:
    def test_builtin_needs_no_catalog(self, session):
        resolver = TypeResolver(session)
        assert resolver.resolve(23) == INT4
        assert session.type_lookups == []

    def test_enum_from_catalog(self, session):
        mood = TypeResolver(session).resolve(MOOD_OID)
        assert mood == TypeDescriptor(oid=MOOD_OID, name="mood", kind=TypeKind.ENUM)

    def test_array_resolves_element(self, session):
        moods = TypeResolver(session).resolve(MOOD_ARRAY_OID)
        assert moods.kind is TypeKind.ARRAY
        assert moods.elem is not None
        assert moods.elem.name == "mood"
        assert moods.display_name == "mood[]"

    def test_memoized(self, session):
        resolver = TypeResolver(session)
        first = resolver.resolve(MOOD_ARRAY_OID)
        second = resolver.resolve(MOOD_ARRAY_OID)
        assert first is second
        assert session.type_lookups == [MOOD_ARRAY_OID, MOOD_OID]

    def test_unknown_oid(self, session):
        with pytest.raises(UnknownTypeError) as exc_info:
            TypeResolver(session).resolve(MISSING_TYPE_OID, query_name="Ghost")
        assert exc_info.value.type_oid == MISSING_TYPE_OID
        assert exc_info.value.query_name == "Ghost"

    def test_unknown_not_memoized(self, session):
        resolver = TypeResolver(session)
        for _ in range(2):
            with pytest.raises(UnknownTypeError):
                resolver.resolve(MISSING_TYPE_OID)
        assert session.type_lookups == [MISSING_TYPE_OID, MISSING_TYPE_OID]

    @pytest.mark.parametrize(
        ("type_type", "kind"),
        [
            ("c", TypeKind.COMPOSITE),
            ("d", TypeKind.DOMAIN),
            ("r", TypeKind.RANGE),
            ("m", TypeKind.MULTIRANGE),
            ("b", TypeKind.BASE),
        ],
    )
    def test_catalog_kinds(self, type_type, kind):
        session = FakeSession(
            types={70000: TypeRow(oid=70000, name="custom", type_type=type_type)}
        )
        assert TypeResolver(session).resolve(70000).kind is kind
