"""
Fluent configuration builders.

``MappingRegistry.create_map`` returns a MappingExpression; its chainable
methods collect rules, hooks and options which the registry later compiles
into an immutable MappingDefinition.

Example:
    registry.create_map(Employee, EmployeeDto) \\
        .for_member("full_name", lambda opt: opt.map_from(lambda s: f"{s.first} {s.last}")) \\
        .for_member("email", lambda opt: opt.map_from("email").condition(lambda s: s.verified)) \\
        .ignore("salary") \\
        .reverse_map()
"""

import inspect
from typing import TYPE_CHECKING, Any, Callable, Optional, Union

from .constants import UNLIMITED_DEPTH
from .definitions import NOT_SET, Condition, Factory, Hook, MemberRule, Selector

if TYPE_CHECKING:
    from .registry import MappingRegistry


def _normalize_condition(predicate: Callable[..., bool]) -> Condition:
    """Accept predicates of (source) as well as (source, current value)."""
    try:
        signature = inspect.signature(predicate)
    except (TypeError, ValueError):
        return predicate

    positional = [
        p
        for p in signature.parameters.values()
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD) and p.default is p.empty
    ]
    has_varargs = any(p.kind is p.VAR_POSITIONAL for p in signature.parameters.values())
    if len(positional) == 1 and not has_varargs:
        return lambda source, current: predicate(source)
    return predicate


class MemberConfiguration:
    """Options for a single destination member, passed to ``for_member`` callbacks."""

    def __init__(self, name: str):
        self.name = name
        self._ignored = False
        self._selector: Optional[Selector] = None
        self._source_member: Optional[str] = None
        self._condition: Optional[Condition] = None
        self._null_substitute: Any = NOT_SET

    def map_from(self, selector: Union[str, Selector]) -> "MemberConfiguration":
        """
        Take the value from a source member name or a computed selector.

        A member name keeps the rule invertible for ``reverse_map``; a
        callable does not.
        """
        if isinstance(selector, str):
            self._source_member = selector
            self._selector = None
        elif callable(selector):
            self._selector = selector
            self._source_member = None
        else:
            raise TypeError(f"map_from expects a member name or callable, got {type(selector).__name__}")
        return self

    def ignore(self) -> "MemberConfiguration":
        self._ignored = True
        return self

    def condition(self, predicate: Callable[..., bool]) -> "MemberConfiguration":
        self._condition = _normalize_condition(predicate)
        return self

    def null_substitute(self, value: Any) -> "MemberConfiguration":
        self._null_substitute = value
        return self

    def build(self) -> MemberRule:
        if self._ignored:
            return MemberRule(name=self.name, ignored=True)
        return MemberRule(
            name=self.name,
            source_selector=self._selector,
            source_member=self._source_member,
            condition=self._condition,
            null_substitute=self._null_substitute,
        )


class MappingExpression:
    """
    Chainable configuration of one type pair.

    Attributes:
        source_type: Type read from
        destination_type: Type written to
        reverse_of: The forward expression when this one was created by
            ``reverse_map``; None otherwise
    """

    def __init__(
        self,
        registry: "MappingRegistry",
        source_type: type,
        destination_type: type,
        reverse_of: Optional["MappingExpression"] = None,
    ):
        self.registry = registry
        self.source_type = source_type
        self.destination_type = destination_type
        self.reverse_of = reverse_of
        self.derived: Optional[MappingExpression] = None
        self.rules: dict[str, MemberRule] = {}
        self.before_hooks: list[Hook] = []
        self.after_hooks: list[Hook] = []
        self.constructor: Optional[Factory] = None
        self.depth_limit = UNLIMITED_DEPTH
        self.keep_references = False

    @property
    def is_reverse(self) -> bool:
        return self.reverse_of is not None

    def for_member(
        self,
        name: str,
        configure: Callable[[MemberConfiguration], Any],
    ) -> "MappingExpression":
        """Configure a destination member through a MemberConfiguration callback."""
        self.registry.cache.get_accessor(self.destination_type, name, writable=True)
        config = MemberConfiguration(name)
        configure(config)
        self.rules[name] = config.build()
        self.registry.invalidate(self)
        return self

    def ignore(self, name: str) -> "MappingExpression":
        self.registry.cache.get_accessor(self.destination_type, name)
        self.rules[name] = MemberRule(name=name, ignored=True)
        self.registry.invalidate(self)
        return self

    def before_map(self, hook: Hook) -> "MappingExpression":
        self.before_hooks.append(hook)
        self.registry.invalidate(self)
        return self

    def after_map(self, hook: Hook) -> "MappingExpression":
        self.after_hooks.append(hook)
        self.registry.invalidate(self)
        return self

    def construct_using(self, factory: Factory) -> "MappingExpression":
        self.constructor = factory
        self.registry.invalidate(self)
        return self

    def max_depth(self, depth: int) -> "MappingExpression":
        if depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {depth}")
        self.depth_limit = depth
        self.registry.invalidate(self)
        return self

    def preserve_references(self) -> "MappingExpression":
        self.keep_references = True
        self.registry.invalidate(self)
        return self

    def reverse_map(self) -> "MappingExpression":
        """
        Derive the (destination, source) mapping and return its expression.

        On an expression that is itself a reverse, returns the forward
        expression without deriving anything.
        """
        if self.reverse_of is not None:
            return self.reverse_of
        return self.registry.reverse(self.source_type, self.destination_type)

    def __repr__(self) -> str:
        kind = "reverse " if self.is_reverse else ""
        return (
            f"<{kind}MappingExpression {self.source_type.__qualname__} -> "
            f"{self.destination_type.__qualname__} rules={list(self.rules)}>"
        )
