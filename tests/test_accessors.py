"""
Tests for the member accessor cache and type schemas.
"""

from typing import Any, ClassVar, Optional

import pytest

from simple_mapper.accessors import MemberAccessorCache, is_simple_type, unwrap_optional
from simple_mapper.constants import TypeKind
from simple_mapper.errors import MemberAccessError, MemberNotFoundError

from .fixtures.models import (
    Address,
    Customer,
    Exploding,
    OrderDto,
    OrderLineDto,
    OrderSnapshot,
    Point,
    Status,
    Thermometer,
    Unassigned,
    Untyped,
)


@pytest.fixture
def cache():
    return MemberAccessorCache()


class TestSchemaDiscovery:
    """Tests for deriving a type's members."""

    def test_dataclass_fields_in_declaration_order(self, cache):
        """Should list dataclass fields in declaration order."""
        schema = cache.schema(Customer)

        assert list(schema.members) == ["id", "name", "address", "tags"]

    def test_schema_is_cached(self, cache):
        """Should compute a schema once and reuse it."""
        assert cache.schema(Customer) is cache.schema(Customer)

    def test_properties_are_members(self, cache):
        """Should include public properties with their return annotation."""
        member = cache.schema(Thermometer).find("fahrenheit")

        assert member is not None
        assert member.readable
        assert not member.writable
        assert member.annotation is float

    def test_private_and_classvar_excluded(self, cache):
        """Should skip underscore names and ClassVar annotations."""

        class WithHidden:
            visible: int = 0
            _hidden: int = 0
            registry: ClassVar[dict] = {}

        assert list(cache.schema(WithHidden).members) == ["visible"]

    def test_frozen_dataclass_is_read_only(self, cache):
        """Should make frozen dataclass fields readable but not writable."""
        schema = cache.schema(Point)

        assert [m.name for m in schema.readable] == ["x", "y"]
        assert schema.writable == []

    def test_inherited_annotations(self, cache):
        """Should include annotations declared on base classes."""

        class Base:
            id: int = 0

        class Derived(Base):
            name: str = ""

        assert set(cache.schema(Derived).members) == {"id", "name"}

    def test_explicit_registration_replaces_schema(self, cache):
        """Should describe classes without annotations through register()."""
        assert len(cache.schema(Untyped)) == 0

        cache.register(Untyped, {"code": str, "label": Optional[str]})

        schema = cache.schema(Untyped)
        assert list(schema.members) == ["code", "label"]
        assert schema.find("code").writable


class TestCaseInsensitiveLookup:
    """Tests for name lookups."""

    def test_exact_match_first(self, cache):
        """Should prefer an exact name over a case-insensitive one."""

        class Ambiguous:
            Name: str = ""
            name: str = ""

        assert cache.schema(Ambiguous).find("name", case_insensitive=True).name == "name"

    def test_first_declared_wins(self, cache):
        """Should resolve case-only duplicates to the first declared member."""

        class Ambiguous:
            Name: str = ""
            NAME: str = ""

        assert cache.schema(Ambiguous).find("name", case_insensitive=True).name == "Name"

    def test_case_sensitive_by_default(self, cache):
        """Should not fold case unless asked to."""
        assert cache.schema(Address).find("CITY") is None


class TestGetAccessor:
    """Tests for get_accessor."""

    def test_returns_member(self, cache):
        """Should return a member with working getter and setter."""
        member = cache.get_accessor(Address, "city", readable=True, writable=True)
        address = Address(city="Oslo")

        assert member.get(address) == "Oslo"
        member.set(address, "Bergen")
        assert address.city == "Bergen"

    def test_unknown_member(self, cache):
        """Should raise MemberNotFoundError for a missing member."""
        with pytest.raises(MemberNotFoundError) as exc_info:
            cache.get_accessor(Address, "zip")

        assert exc_info.value.member == "zip"
        assert exc_info.value.destination_type is Address

    def test_not_writable(self, cache):
        """Should raise MemberNotFoundError when write access is required."""
        with pytest.raises(MemberNotFoundError, match="not a writable member"):
            cache.get_accessor(Thermometer, "fahrenheit", writable=True)


class TestMemberAccess:
    """Tests for invoking accessors."""

    def test_unassigned_attribute_reads_as_none(self, cache):
        """Should treat a declared but never assigned attribute as absent."""
        member = cache.get_accessor(Unassigned, "name")

        assert member.get(Unassigned()) is None

    def test_getter_failure_is_wrapped(self, cache):
        """Should wrap getter exceptions in MemberAccessError."""
        member = cache.get_accessor(Exploding, "value")

        with pytest.raises(MemberAccessError) as exc_info:
            member.get(Exploding())

        assert isinstance(exc_info.value.__cause__, ValueError)
        assert exc_info.value.member == "value"

    def test_setter_failure_is_wrapped(self, cache):
        """Should wrap setter exceptions in MemberAccessError."""
        member = cache.get_accessor(Point, "x")

        with pytest.raises(MemberAccessError, match="not writable"):
            member.set(Point(), 3)


class TestClassify:
    """Tests for member type classification."""

    @pytest.mark.parametrize("annotation", [int, str, Optional[float], Status])
    def test_simple(self, cache, annotation):
        """Should classify scalars and enums as simple."""
        assert cache.classify(annotation) == (TypeKind.SIMPLE, None)

    def test_complex(self, cache):
        """Should classify classes with members as complex."""
        assert cache.classify(Optional[Address]) == (TypeKind.COMPLEX, None)

    def test_sequences(self, cache):
        """Should classify lists and homogeneous tuples with their element type."""
        lines = cache.schema(OrderDto).find("lines").annotation
        snapshot_lines = cache.schema(OrderSnapshot).find("lines").annotation

        assert cache.classify(lines) == (TypeKind.SEQUENCE, OrderLineDto)
        assert cache.classify(snapshot_lines) == (TypeKind.SEQUENCE, OrderLineDto)

    @pytest.mark.parametrize("annotation", [Any, dict[str, int], set, tuple[int, str]])
    def test_opaque(self, cache, annotation):
        """Should treat untyped, mappings, sets and fixed tuples as opaque."""
        assert cache.classify(annotation)[0] is TypeKind.OPAQUE

    def test_memberless_class_is_opaque(self, cache):
        """Should not map classes without members member-by-member."""

        class Empty:
            pass

        assert not cache.is_mappable(Empty)


class TestHelpers:
    """Tests for module helpers."""

    def test_unwrap_optional(self):
        """Should strip None from Optional and union annotations."""
        assert unwrap_optional(Optional[int]) is int
        assert unwrap_optional(int | None) is int
        assert unwrap_optional(int) is int

    def test_unwrap_keeps_real_unions(self):
        """Should leave multi-type unions untouched."""
        assert unwrap_optional(int | str | None) == (int | str | None)

    def test_is_simple_type(self):
        """Should recognize scalars and reject classes."""
        assert is_simple_type(bool)
        assert is_simple_type(Status)
        assert not is_simple_type(Address)
        assert not is_simple_type(Optional[int])
