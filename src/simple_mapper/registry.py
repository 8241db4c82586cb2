"""
Mapping definition registry.

Holds one MappingExpression per ordered type pair and compiles each into an
immutable MappingDefinition on first use (or all at once with ``seal``).
Execution only ever reads compiled definitions.
"""

import logging
import os
import threading
import warnings
from types import MappingProxyType
from typing import Callable, Optional

from .accessors import MemberAccessorCache
from .constants import ENV_CONVENTION_FALLBACK, ENV_STRICT_REVERSE, FALSE_VALUES
from .conventions import ConventionMatcher
from .definitions import MappingDefinition, MemberPlan, MemberRule, TypePair
from .errors import MemberNotFoundError, UninvertibleRuleError, UninvertibleRuleWarning, UnmappedTypePairError
from .expressions import MappingExpression

logger = logging.getLogger(__name__)

Configurator = Callable[[MappingExpression], object]


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() not in FALSE_VALUES


class MappingRegistry:
    """
    Process-wide table of configured type pairs.

    Example:
        registry = MappingRegistry()
        registry.create_map(UserEntity, UserDto).ignore("password_hash").reverse_map()
        registry.seal()
        definition = registry.resolve(UserEntity, UserDto)

    Attributes:
        cache: Member accessor cache shared with the executor
        matcher: Convention matcher used to build member plans
        allow_convention_fallback: Synthesize convention-only definitions
            for unconfigured pairs of complex types
        strict_reverse: Raise instead of warning on uninvertible rules
        warnings: Uninvertible rules recorded while compiling reverse maps
    """

    def __init__(
        self,
        cache: Optional[MemberAccessorCache] = None,
        allow_convention_fallback: Optional[bool] = None,
        strict_reverse: Optional[bool] = None,
    ):
        self.cache = cache or MemberAccessorCache()
        self.matcher = ConventionMatcher(self.cache)
        if allow_convention_fallback is None:
            allow_convention_fallback = _env_flag(ENV_CONVENTION_FALLBACK, default=True)
        if strict_reverse is None:
            strict_reverse = _env_flag(ENV_STRICT_REVERSE, default=False)
        self.allow_convention_fallback = allow_convention_fallback
        self.strict_reverse = strict_reverse
        self.warnings: list[UninvertibleRuleWarning] = []
        self.sealed = False
        self._expressions: dict[TypePair, MappingExpression] = {}
        self._definitions: dict[TypePair, MappingDefinition] = {}
        self._warned: set[tuple[TypePair, str]] = set()
        self._lock = threading.RLock()

    # -------------------------------------------------------------------------
    # Configuration phase
    # -------------------------------------------------------------------------

    def create_map(self, source_type: type, destination_type: type) -> MappingExpression:
        """Start (or restart) the configuration of a type pair."""
        expression = MappingExpression(self, source_type, destination_type)
        self._store(expression)
        return expression

    def register(
        self,
        source_type: type,
        destination_type: type,
        configurator: Optional[Configurator] = None,
    ) -> MappingExpression:
        """
        Build and store the configuration of a type pair.

        Args:
            source_type: Type read from
            destination_type: Type written to
            configurator: Optional callable receiving the MappingExpression

        Returns:
            The stored expression, replacing any earlier one for the pair
        """
        expression = self.create_map(source_type, destination_type)
        if configurator is not None:
            configurator(expression)
        return expression

    def reverse(self, source_type: type, destination_type: type) -> MappingExpression:
        """
        Derive the (destination, source) configuration of a registered pair.

        Raises:
            UnmappedTypePairError: If the forward pair was never registered.
        """
        pair = TypePair(source_type, destination_type)
        forward = self._expressions.get(pair)
        if forward is None:
            raise UnmappedTypePairError(source_type, destination_type)
        if forward.is_reverse:
            return forward.reverse_of

        expression = MappingExpression(self, destination_type, source_type, reverse_of=forward)
        forward.derived = expression
        self._store(expression)
        return expression

    def invalidate(self, expression: MappingExpression) -> None:
        """Drop compiled definitions affected by a change to an expression."""
        with self._lock:
            affected = {TypePair(expression.source_type, expression.destination_type)}
            if expression.derived is not None:
                affected.add(TypePair(expression.derived.source_type, expression.derived.destination_type))
            self._definitions = {
                pair: definition
                for pair, definition in self._definitions.items()
                if pair not in affected and pair in self._expressions
            }
            if self.sealed:
                logger.warning(f"Mapping {', '.join(map(str, affected))} changed after the registry was sealed")

    def clear(self) -> None:
        """Forget every configured pair and recorded warning."""
        with self._lock:
            self._expressions.clear()
            self._definitions.clear()
            self._warned.clear()
            self.warnings.clear()
            self.sealed = False

    def seal(self) -> None:
        """
        Compile every configured pair and close the configuration phase.

        Registering after sealing still works but is logged; callers must
        not do it while other threads are executing.
        """
        with self._lock:
            for pair in list(self._expressions):
                self.resolve(*pair)
            if not self.sealed:
                logger.info(f"Mapping registry sealed with {len(self._expressions)} type pair(s)")
            self.sealed = True

    # -------------------------------------------------------------------------
    # Execution phase
    # -------------------------------------------------------------------------

    def resolve(self, source_type: type, destination_type: type) -> MappingDefinition:
        """
        Return the compiled definition for a type pair.

        Lookup order: exact pair, a pair registered for a base class of the
        source type, then an ad hoc convention-only definition.

        Raises:
            UnmappedTypePairError: If nothing is configured and no
                convention definition can be synthesized.
        """
        pair = TypePair(source_type, destination_type)
        definition = self._definitions.get(pair)
        if definition is not None:
            return definition

        with self._lock:
            definition = self._definitions.get(pair)
            if definition is not None:
                return definition

            expression = self._find_expression(source_type, destination_type)
            if expression is not None:
                definition = self._compile(expression)
            elif self._can_synthesize(source_type, destination_type):
                definition = MappingDefinition(
                    source_type=source_type,
                    destination_type=destination_type,
                    is_convention=True,
                    plan=self._build_plan(source_type, destination_type, {}),
                )
                logger.debug(f"Synthesized convention mapping {pair}")
            else:
                raise UnmappedTypePairError(source_type, destination_type)

            self._definitions[pair] = definition
            return definition

    def has_map(self, source_type: type, destination_type: type) -> bool:
        return TypePair(source_type, destination_type) in self._expressions

    def type_pairs(self) -> list[TypePair]:
        return list(self._expressions)

    def expression(self, source_type: type, destination_type: type) -> Optional[MappingExpression]:
        return self._expressions.get(TypePair(source_type, destination_type))

    def unmapped_members(self, source_type: type, destination_type: type) -> list[str]:
        """Writable destination members that no rule or convention populates."""
        definition = self.resolve(source_type, destination_type)
        covered = {plan.name for plan in definition.plan}
        covered.update(definition.ignored_members)
        return [
            member.name
            for member in self.cache.schema(destination_type).writable
            if member.name not in covered
        ]

    # -------------------------------------------------------------------------
    # Compilation
    # -------------------------------------------------------------------------

    def _store(self, expression: MappingExpression) -> None:
        pair = TypePair(expression.source_type, expression.destination_type)
        with self._lock:
            if self.sealed:
                logger.warning(f"Mapping {pair} registered after the registry was sealed")
            if pair in self._expressions:
                logger.debug(f"Replacing mapping {pair}")
            self._expressions[pair] = expression
            self._definitions = {
                p: d for p, d in self._definitions.items() if p != pair and p in self._expressions
            }

    def _find_expression(self, source_type: type, destination_type: type) -> Optional[MappingExpression]:
        for base in getattr(source_type, "__mro__", (source_type,)):
            expression = self._expressions.get(TypePair(base, destination_type))
            if expression is not None:
                return expression
        return None

    def _can_synthesize(self, source_type: type, destination_type: type) -> bool:
        if not self.allow_convention_fallback:
            return False
        return self.cache.is_mappable(source_type) and self.cache.is_mappable(destination_type)

    def _compile(self, expression: MappingExpression) -> MappingDefinition:
        rules = dict(expression.rules)
        max_depth = expression.depth_limit
        preserve_references = expression.keep_references

        forward = expression.reverse_of
        if forward is not None:
            for name, rule in self._invert(forward).items():
                rules.setdefault(name, rule)
            max_depth = max_depth or forward.depth_limit
            preserve_references = preserve_references or forward.keep_references

        definition = MappingDefinition(
            source_type=expression.source_type,
            destination_type=expression.destination_type,
            member_rules=MappingProxyType(rules),
            before_hooks=tuple(expression.before_hooks),
            after_hooks=tuple(expression.after_hooks),
            constructor=expression.constructor,
            max_depth=max_depth,
            preserve_references=preserve_references,
            is_reverse=forward is not None,
            plan=self._build_plan(expression.source_type, expression.destination_type, rules),
        )
        logger.debug(
            f"Compiled mapping {definition.type_pair} with {len(definition.plan)} member(s)"
        )
        return definition

    def _build_plan(
        self,
        source_type: type,
        destination_type: type,
        rules: dict[str, MemberRule],
    ) -> tuple[MemberPlan, ...]:
        source_schema = self.cache.schema(source_type)
        convention = dict(self.matcher.match_members(source_type, destination_type, explicit=rules))
        plans: list[MemberPlan] = []

        for member in self.cache.schema(destination_type).writable:
            rule = rules.get(member.name)
            if rule is not None and rule.ignored:
                continue

            if rule is not None:
                source = None
                if rule.source_selector is None:
                    if rule.source_member is not None:
                        source = source_schema.find(rule.source_member)
                        if source is None or not source.readable:
                            raise MemberNotFoundError(source_type, rule.source_member)
                    else:
                        source = source_schema.find(member.name, case_insensitive=True)
                        if source is not None and not (
                            source.readable and self.matcher.is_assignable(source, member)
                        ):
                            source = None
            elif member.name in convention:
                source = source_schema.find(convention[member.name])
            else:
                continue

            kind, element_type = self.cache.classify(member.annotation)
            plans.append(
                MemberPlan(
                    destination=member,
                    kind=kind,
                    element_type=element_type,
                    rule=rule,
                    source=source,
                )
            )

        return tuple(plans)

    def _invert(self, forward: MappingExpression) -> dict[str, MemberRule]:
        """Reverse the invertible rules of a forward expression."""
        reverse_destination = self.cache.schema(forward.source_type)
        inverted: dict[str, MemberRule] = {}

        for name, rule in forward.rules.items():
            if rule.ignored:
                if name in reverse_destination:
                    inverted[name] = MemberRule(name=name, ignored=True)
                continue

            if rule.source_selector is not None:
                self._uninvertible(forward, name, "computed source selector")
                continue

            if not rule.is_invertible:
                self._uninvertible(forward, name, "condition or null substitute")
                continue

            if rule.source_member is not None:
                target = reverse_destination.find(rule.source_member)
                if target is not None and target.writable:
                    inverted[target.name] = MemberRule(name=target.name, source_member=name)

        return inverted

    def _uninvertible(self, forward: MappingExpression, member: str, reason: str) -> None:
        warning = UninvertibleRuleWarning(forward.source_type, forward.destination_type, member, reason)
        if self.strict_reverse:
            raise UninvertibleRuleError(
                str(warning),
                source_type=forward.destination_type,
                destination_type=forward.source_type,
                member=member,
            )

        key = (TypePair(forward.source_type, forward.destination_type), member)
        if key in self._warned:
            return
        self._warned.add(key)
        self.warnings.append(warning)
        logger.warning(str(warning))
        warnings.warn(warning, stacklevel=2)
