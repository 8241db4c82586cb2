"""
Member accessor cache and per-type schemas.

A type's members are discovered once, from its annotations and properties,
and kept as a precomputed schema. Each member carries the getter and setter
callables the executor invokes, so repeated mapping never re-introspects a
type.

Discovery rules:
- Public annotated attributes across the MRO (``typing.get_type_hints``),
  excluding ``ClassVar`` and names starting with ``_``
- Public properties: readable with a getter, writable with a setter
- Fields of a frozen dataclass are readable but not writable
- Classes without annotations can be described explicitly with
  ``MemberAccessorCache.register``
"""

import dataclasses
import inspect
import logging
import operator
import threading
import types
from collections.abc import MutableSequence, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, ClassVar, Optional, Union, get_args, get_origin, get_type_hints

from .constants import SIMPLE_TYPES, TypeKind
from .errors import MemberAccessError, MemberNotFoundError

logger = logging.getLogger(__name__)

Getter = Callable[[Any], Any]
Setter = Callable[[Any, Any], None]

SEQUENCE_ORIGINS = (list, tuple, Sequence, MutableSequence)
_SIMPLE_BASES = tuple(SIMPLE_TYPES)


def unwrap_optional(annotation: Any) -> Any:
    """Strip ``None`` from ``Optional[X]`` / ``X | None`` annotations."""
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def is_simple_type(tp: Any) -> bool:
    """Check if a type is a scalar copied by value."""
    if not isinstance(tp, type):
        return False
    return issubclass(tp, _SIMPLE_BASES) or issubclass(tp, Enum)


def _attribute_setter(name: str) -> Setter:
    def setter(instance: Any, value: Any) -> None:
        setattr(instance, name, value)

    return setter


@dataclass(frozen=True)
class Member:
    """
    A single member of a type with its resolved accessors.

    Attributes:
        owner: The type declaring the member
        name: Attribute name
        annotation: Declared type (``Any`` when unknown)
        getter: Callable reading the member, or None if not readable
        setter: Callable writing the member, or None if not writable
    """

    owner: type
    name: str
    annotation: Any = Any
    getter: Optional[Getter] = field(default=None, compare=False, repr=False)
    setter: Optional[Setter] = field(default=None, compare=False, repr=False)

    @property
    def readable(self) -> bool:
        return self.getter is not None

    @property
    def writable(self) -> bool:
        return self.setter is not None

    @property
    def target_type(self) -> Any:
        """Declared type with any ``Optional`` wrapper removed."""
        return unwrap_optional(self.annotation)

    def get(self, instance: Any, default: Any = None) -> Any:
        """
        Read the member from an instance.

        An attribute that was declared but never assigned reads as absent
        (``default``, None unless given). Any other failure raised by the
        getter is a MemberAccessError.
        """
        if self.getter is None:
            raise MemberAccessError(
                f"'{self.name}' of {self.owner.__qualname__} is not readable",
                source_type=self.owner,
                member=self.name,
            )
        try:
            return self.getter(instance)
        except AttributeError:
            return default
        except Exception as e:
            raise MemberAccessError(
                f"Reading '{self.name}' of {self.owner.__qualname__} failed: {e}",
                source_type=self.owner,
                member=self.name,
            ) from e

    def set(self, instance: Any, value: Any) -> None:
        """Write the member on an instance."""
        if self.setter is None:
            raise MemberAccessError(
                f"'{self.name}' of {self.owner.__qualname__} is not writable",
                destination_type=self.owner,
                member=self.name,
            )
        try:
            self.setter(instance, value)
        except Exception as e:
            raise MemberAccessError(
                f"Writing '{self.name}' of {self.owner.__qualname__} failed: {e}",
                destination_type=self.owner,
                member=self.name,
            ) from e


@dataclass
class TypeSchema:
    """
    The precomputed member table of one type.

    Members keep declaration order. Lookups by name are exact first and
    then case-insensitive, where the first declared member wins.
    """

    owner: type
    members: dict[str, Member] = field(default_factory=dict)
    _folded: dict[str, Member] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        for name, member in self.members.items():
            self._folded.setdefault(name.lower(), member)

    def __contains__(self, name: str) -> bool:
        return name in self.members

    def __iter__(self):
        return iter(self.members.values())

    def __len__(self) -> int:
        return len(self.members)

    def find(self, name: str, case_insensitive: bool = False) -> Optional[Member]:
        member = self.members.get(name)
        if member is None and case_insensitive:
            member = self._folded.get(name.lower())
        return member

    @property
    def writable(self) -> list[Member]:
        return [m for m in self.members.values() if m.writable]

    @property
    def readable(self) -> list[Member]:
        return [m for m in self.members.values() if m.readable]


class MemberAccessorCache:
    """
    Caches type schemas and member type classifications.

    Schemas are computed on first use and never recomputed; an explicit
    ``register`` call replaces a derived schema. Population is serialized
    with a lock, lookups of warmed entries are plain dict reads.

    Example:
        cache = MemberAccessorCache()
        member = cache.get_accessor(UserDto, "email", writable=True)
        member.set(dto, "a@example.com")
    """

    def __init__(self) -> None:
        self._schemas: dict[type, TypeSchema] = {}
        self._kinds: dict[Any, tuple[TypeKind, Any]] = {}
        self._lock = threading.RLock()

    def schema(self, cls: type) -> TypeSchema:
        """Return the schema of a type, computing it on first use."""
        schema = self._schemas.get(cls)
        if schema is not None:
            return schema

        with self._lock:
            schema = self._schemas.get(cls)
            if schema is None:
                schema = self._build_schema(cls)
                self._schemas[cls] = schema
                logger.debug(f"Cached schema for {cls.__qualname__}: {list(schema.members)}")
            return schema

    def register(self, cls: type, members: dict[str, Any]) -> TypeSchema:
        """
        Describe a type's members explicitly.

        Args:
            cls: The type to describe
            members: Member name to declared type

        Returns:
            The registered schema
        """
        schema = TypeSchema(
            owner=cls,
            members={
                name: Member(
                    owner=cls,
                    name=name,
                    annotation=annotation,
                    getter=operator.attrgetter(name),
                    setter=_attribute_setter(name),
                )
                for name, annotation in members.items()
            },
        )
        with self._lock:
            self._schemas[cls] = schema
            self._kinds.pop(cls, None)
        return schema

    def get_accessor(
        self,
        cls: type,
        name: str,
        readable: bool = False,
        writable: bool = False,
    ) -> Member:
        """
        Resolve the accessor pair of a member.

        Raises:
            MemberNotFoundError: If the member does not exist or lacks the
                required read/write access.
        """
        member = self.schema(cls).find(name)
        if member is None:
            raise MemberNotFoundError(cls, name)
        if readable and not member.readable:
            raise MemberNotFoundError(cls, name, reason="is not a readable member")
        if writable and not member.writable:
            raise MemberNotFoundError(cls, name, reason="is not a writable member")
        return member

    def classify(self, annotation: Any) -> tuple[TypeKind, Any]:
        """
        Classify a declared type.

        Returns:
            (kind, element_type) where element_type is set only for
            sequences.
        """
        try:
            cached = self._kinds.get(annotation)
        except TypeError:
            return self._classify(annotation)
        if cached is None:
            cached = self._classify(annotation)
            with self._lock:
                self._kinds[annotation] = cached
        return cached

    def is_mappable(self, annotation: Any) -> bool:
        """Whether values of this type are mapped member by member."""
        return self.classify(annotation)[0] is TypeKind.COMPLEX

    def clear(self) -> None:
        with self._lock:
            self._schemas.clear()
            self._kinds.clear()

    def _classify(self, annotation: Any) -> tuple[TypeKind, Any]:
        annotation = unwrap_optional(annotation)
        if annotation is Any or annotation is None:
            return TypeKind.OPAQUE, None

        origin = get_origin(annotation)
        if origin is not None:
            if origin not in SEQUENCE_ORIGINS:
                return TypeKind.OPAQUE, None
            args = get_args(annotation)
            if origin is tuple:
                if len(args) == 2 and args[1] is Ellipsis:
                    return TypeKind.SEQUENCE, unwrap_optional(args[0])
                return TypeKind.OPAQUE, None
            return TypeKind.SEQUENCE, unwrap_optional(args[0]) if args else Any

        if not isinstance(annotation, type):
            return TypeKind.OPAQUE, None
        if is_simple_type(annotation):
            return TypeKind.SIMPLE, None
        if annotation in (list, tuple):
            return TypeKind.SEQUENCE, Any
        if len(self.schema(annotation)) > 0:
            return TypeKind.COMPLEX, None
        return TypeKind.OPAQUE, None

    def _build_schema(self, cls: type) -> TypeSchema:
        members: dict[str, Member] = {}

        for name, prop in inspect.getmembers(cls, lambda attr: isinstance(attr, property)):
            if name.startswith("_"):
                continue
            members[name] = Member(
                owner=cls,
                name=name,
                annotation=self._property_type(prop),
                getter=operator.attrgetter(name) if prop.fget else None,
                setter=_attribute_setter(name) if prop.fset else None,
            )

        frozen = dataclasses.is_dataclass(cls) and cls.__dataclass_params__.frozen
        for name, annotation in self._type_hints(cls).items():
            if name.startswith("_") or name in members:
                continue
            if annotation is ClassVar or get_origin(annotation) is ClassVar:
                continue
            members[name] = Member(
                owner=cls,
                name=name,
                annotation=annotation,
                getter=operator.attrgetter(name),
                setter=None if frozen else _attribute_setter(name),
            )

        return TypeSchema(owner=cls, members=members)

    def _type_hints(self, cls: type) -> dict[str, Any]:
        try:
            return get_type_hints(cls)
        except Exception as e:
            # Unresolvable forward references fall back to raw annotations
            logger.warning(f"Could not resolve type hints of {cls.__qualname__}: {e}")
            hints: dict[str, Any] = {}
            for klass in reversed(cls.__mro__):
                hints.update(getattr(klass, "__annotations__", {}))
            return hints

    def _property_type(self, prop: property) -> Any:
        if prop.fget is None:
            return Any
        try:
            return get_type_hints(prop.fget).get("return", Any)
        except Exception:
            return Any
