"""
Immutable mapping configuration records.

A MappingDefinition is compiled once from a MappingExpression and read by
every execution afterwards. Member rules and hooks are plain function
values; nothing here changes after the registry builds it.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping, NamedTuple, Optional

from .accessors import Member
from .constants import UNLIMITED_DEPTH, TypeKind
from .errors import ConstructionError

Hook = Callable[[Any, Any], None]
Selector = Callable[[Any], Any]
Condition = Callable[[Any, Any], bool]
Factory = Callable[[Any], Any]


class _NotSet:
    def __repr__(self) -> str:
        return "NOT_SET"

    def __bool__(self) -> bool:
        return False


NOT_SET: Any = _NotSet()


class TypePair(NamedTuple):
    """An ordered (source type, destination type) combination."""

    source_type: type
    destination_type: type

    def reversed(self) -> "TypePair":
        return TypePair(self.destination_type, self.source_type)

    def __str__(self) -> str:
        return f"{self.source_type.__qualname__} -> {self.destination_type.__qualname__}"


@dataclass(frozen=True)
class MemberRule:
    """
    Explicit configuration of one destination member.

    Attributes:
        name: Destination member name
        ignored: Never write the member; all other fields are ignored
        source_selector: Callable computing the value from the source
        source_member: Source member name the value is read from
        condition: Predicate (source, destination current value); the
            member is skipped when it returns False
        null_substitute: Value used when the resolved value is None
    """

    name: str
    ignored: bool = False
    source_selector: Optional[Selector] = None
    source_member: Optional[str] = None
    condition: Optional[Condition] = None
    null_substitute: Any = NOT_SET

    @property
    def has_null_substitute(self) -> bool:
        return self.null_substitute is not NOT_SET

    @property
    def is_invertible(self) -> bool:
        """Whether a reverse map can derive an equivalent rule."""
        if self.ignored:
            return True
        return (
            self.source_selector is None
            and self.condition is None
            and not self.has_null_substitute
        )


@dataclass(frozen=True)
class MemberPlan:
    """
    A destination member paired with how its value is obtained.

    Exactly one of ``rule.source_selector`` or ``source`` provides the
    value. ``kind`` and ``element_type`` classify the destination member
    so the executor knows whether to copy, recurse or map element-wise.
    """

    destination: Member
    kind: TypeKind
    element_type: Any = None
    rule: Optional[MemberRule] = None
    source: Optional[Member] = None

    @property
    def name(self) -> str:
        return self.destination.name

    def resolve(self, source_obj: Any) -> Any:
        """Read the raw value for this member from a source instance."""
        if self.rule is not None and self.rule.source_selector is not None:
            return self.rule.source_selector(source_obj)
        if self.source is None:
            return None
        return self.source.get(source_obj)

    def describe(self) -> str:
        if self.rule is not None and self.rule.source_selector is not None:
            origin = "<computed>"
        elif self.source is not None:
            origin = self.source.name
        else:
            origin = "<none>"
        extras = []
        if self.rule is not None and self.rule.condition is not None:
            extras.append("conditional")
        if self.rule is not None and self.rule.has_null_substitute:
            extras.append(f"null={self.rule.null_substitute!r}")
        suffix = f" [{', '.join(extras)}]" if extras else ""
        return f"{self.name} <- {origin} ({self.kind.value}){suffix}"


@dataclass(frozen=True)
class MappingDefinition:
    """
    The compiled configuration of one type pair.

    Attributes:
        source_type: Type read from
        destination_type: Type written to
        member_rules: Destination member name to explicit rule
        before_hooks: Called with (source, destination) before members
        after_hooks: Called with (source, destination) after members
        constructor: Optional factory (source) -> destination
        max_depth: Recursion limit, 0 for unlimited
        preserve_references: Track mapped sources by identity
        is_reverse: Derived by inverting another definition
        is_convention: Synthesized ad hoc from conventions only
        plan: Member plans in destination declaration order
    """

    source_type: type
    destination_type: type
    member_rules: Mapping[str, MemberRule] = field(default_factory=lambda: MappingProxyType({}))
    before_hooks: tuple[Hook, ...] = ()
    after_hooks: tuple[Hook, ...] = ()
    constructor: Optional[Factory] = None
    max_depth: int = UNLIMITED_DEPTH
    preserve_references: bool = False
    is_reverse: bool = False
    is_convention: bool = False
    plan: tuple[MemberPlan, ...] = ()

    @property
    def type_pair(self) -> TypePair:
        return TypePair(self.source_type, self.destination_type)

    @property
    def ignored_members(self) -> list[str]:
        return [name for name, rule in self.member_rules.items() if rule.ignored]

    def construct(self, source: Any) -> Any:
        """Create a destination instance for a source."""
        try:
            if self.constructor is not None:
                return self.constructor(source)
            return self.destination_type()
        except Exception as e:
            raise ConstructionError(
                f"Could not construct {self.destination_type.__qualname__}: {e}",
                source_type=self.source_type,
                destination_type=self.destination_type,
            ) from e
