"""
Mapping executor - the recursive graph transformation.

Given a source instance and a destination type (or instance), walks the
compiled member plan of the resolved MappingDefinition, recursing into
nested objects and sequences. Cycle handling, depth limiting and the
full/patch write modes all live here.
"""

import logging
from collections.abc import Iterable
from contextlib import contextmanager
from typing import Any, Iterator, Optional, get_origin

from .accessors import unwrap_optional
from .constants import TypeKind, WriteMode
from .context import ExecutionContext
from .definitions import NOT_SET, MappingDefinition, MemberPlan
from .errors import MappingError, MemberAccessError
from .registry import MappingRegistry

logger = logging.getLogger(__name__)


class _Skip:
    def __repr__(self) -> str:
        return "SKIP"


# Returned by conversions that must leave the destination member untouched
SKIP: Any = _Skip()


class MappingExecutor:
    """
    Executes compiled mapping definitions.

    The executor holds no per-call state: every top-level call creates its
    own ExecutionContext, so one executor can serve concurrent callers once
    the registry is sealed.

    Example:
        executor = MappingExecutor(registry)
        dto = executor.transform(user, UserDto)
        executor.merge_into(update_dto, user, mode=WriteMode.PATCH)
    """

    def __init__(self, registry: MappingRegistry):
        self.registry = registry
        self.cache = registry.cache

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def transform(self, source: Any, destination_type: type, mode: WriteMode = WriteMode.FULL) -> Any:
        """
        Map a source into a newly constructed destination.

        Args:
            source: Instance to read from; None maps to None
            destination_type: Type to construct
            mode: FULL writes absent values, PATCH keeps constructor defaults

        Returns:
            The populated destination instance
        """
        if source is None:
            return None

        context = ExecutionContext(mode=mode)
        with self._run(context, f"transform {type(source).__qualname__} -> {destination_type.__qualname__}"):
            return self._map_root(source, destination_type, None, context)

    def transform_all(
        self,
        sources: Optional[Iterable[Any]],
        destination_type: type,
        mode: WriteMode = WriteMode.FULL,
    ) -> Optional[list[Any]]:
        """Map every element of a sequence, preserving order."""
        if sources is None:
            return None

        context = ExecutionContext(mode=mode)
        with self._run(context, f"transform sequence -> list[{destination_type.__qualname__}]"):
            return [
                None if item is None else self._map_root(item, destination_type, None, context)
                for item in sources
            ]

    def merge_into(self, source: Any, destination: Any, mode: WriteMode = WriteMode.FULL) -> Any:
        """
        Populate an existing destination in place.

        On failure every member write made by this call is undone before the
        error propagates.

        Returns:
            The destination instance
        """
        if source is None or destination is None:
            return destination

        context = ExecutionContext(mode=mode, in_place=True)
        label = f"{mode.value} merge {type(source).__qualname__} -> {type(destination).__qualname__}"
        with self._run(context, label):
            return self._map_root(source, type(destination), destination, context)

    def merge_all(self, pairs: Iterable[tuple[Any, Any]], mode: WriteMode = WriteMode.FULL) -> int:
        """
        Merge several (source, destination) pairs as one unit.

        Every pair is merged in place under a single journal, so a failure on
        any pair undoes the writes of the pairs merged before it.

        Returns:
            The number of pairs merged
        """
        context = ExecutionContext(mode=mode, in_place=True)
        merged = 0
        with self._run(context, f"{mode.value} merge of several pairs"):
            for source, destination in pairs:
                if source is None or destination is None:
                    continue
                context.visited.clear()
                self._map_root(source, type(destination), destination, context)
                merged += 1
        return merged

    # -------------------------------------------------------------------------
    # Recursion
    # -------------------------------------------------------------------------

    @contextmanager
    def _run(self, context: ExecutionContext, label: str) -> Iterator[None]:
        logger.debug(f"[{context.run_id}] start {label}")
        try:
            yield
        except Exception as e:
            undone = context.rollback()
            if isinstance(e, MappingError) and e.run_id is None:
                e.run_id = context.run_id
            if undone:
                logger.warning(f"[{context.run_id}] {label} failed, rolled back {undone} write(s): {e}")
            else:
                logger.debug(f"[{context.run_id}] {label} failed: {e}")
            raise
        logger.debug(f"[{context.run_id}] finished {label}")

    def _map_root(
        self,
        source: Any,
        destination_type: type,
        destination: Optional[Any],
        context: ExecutionContext,
    ) -> Any:
        definition = self.registry.resolve(type(source), destination_type)
        context.max_depth = definition.max_depth
        context.preserve_references = definition.preserve_references
        context.depth = 0
        return self._map_object(source, destination_type, destination, definition, context)

    def _map_object(
        self,
        source: Any,
        destination_type: type,
        destination: Optional[Any],
        definition: MappingDefinition,
        context: ExecutionContext,
    ) -> Any:
        """Map one object: identity check, construction, hooks and members."""
        enables_tracking = definition.preserve_references and not context.preserve_references
        if enables_tracking:
            context.preserve_references = True

        try:
            if context.preserve_references:
                seen = context.lookup(source, destination_type)
                if seen is not None:
                    return seen

            if destination is None:
                destination = definition.construct(source)

            # Recorded before children so a cycle finds the in-progress parent
            if context.preserve_references:
                context.remember(source, destination_type, destination)

            for hook in definition.before_hooks:
                hook(source, destination)

            for plan in definition.plan:
                self._map_member(plan, source, destination, definition, context)

            for hook in definition.after_hooks:
                hook(source, destination)

            return destination
        finally:
            if enables_tracking:
                context.preserve_references = False

    def _map_member(
        self,
        plan: MemberPlan,
        source: Any,
        destination: Any,
        definition: MappingDefinition,
        context: ExecutionContext,
    ) -> None:
        rule = plan.rule
        raw = plan.resolve(source)

        if rule is not None and rule.condition is not None:
            current = plan.destination.get(destination) if plan.destination.readable else None
            if not rule.condition(source, current):
                return

        if raw is None and rule is not None and rule.has_null_substitute:
            # Substitutes are destination-side values and are written as given
            self._write(plan, destination, rule.null_substitute, context)
            return

        if raw is None:
            if context.is_patch:
                return
            self._write(plan, destination, None, context)
            return

        if plan.kind is TypeKind.COMPLEX:
            existing = None
            if context.in_place and plan.destination.readable:
                current = plan.destination.get(destination)
                if isinstance(current, plan.destination.target_type):
                    existing = current
            value = self._convert_complex(raw, plan.destination.target_type, existing, definition, context)
        elif plan.kind is TypeKind.SEQUENCE:
            value = self._convert_sequence(raw, plan.destination.target_type, plan.element_type, definition, context)
        else:
            value = raw

        if value is SKIP:
            return
        self._write(plan, destination, value, context)

    def _convert(self, value: Any, annotation: Any, definition: MappingDefinition, context: ExecutionContext) -> Any:
        if value is None:
            return None
        kind, element_type = self.cache.classify(annotation)
        if kind is TypeKind.COMPLEX:
            return self._convert_complex(value, unwrap_optional(annotation), None, definition, context)
        if kind is TypeKind.SEQUENCE:
            return self._convert_sequence(value, unwrap_optional(annotation), element_type, definition, context)
        return value

    def _convert_complex(
        self,
        value: Any,
        target_type: type,
        existing: Optional[Any],
        definition: MappingDefinition,
        context: ExecutionContext,
    ) -> Any:
        if not context.can_descend(definition.max_depth):
            return SKIP

        nested = self.registry.resolve(type(value), target_type)
        context.depth += 1
        try:
            return self._map_object(value, target_type, existing, nested, context)
        finally:
            context.depth -= 1

    def _convert_sequence(
        self,
        value: Any,
        annotation: Any,
        element_type: Any,
        definition: MappingDefinition,
        context: ExecutionContext,
    ) -> Any:
        if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
            raise MemberAccessError(
                f"Expected a sequence for {annotation!r}, got {type(value).__qualname__}",
                destination_type=definition.destination_type,
                run_id=context.run_id,
            )

        items = []
        for item in value:
            converted = self._convert(item, element_type, definition, context)
            if converted is SKIP:
                return SKIP
            items.append(converted)

        if annotation is tuple or get_origin(annotation) is tuple:
            return tuple(items)
        return items

    def _write(self, plan: MemberPlan, destination: Any, value: Any, context: ExecutionContext) -> None:
        member = plan.destination
        if context.in_place and member.readable:
            previous = member.get(destination, default=NOT_SET)
            member.set(destination, value)
            context.record(destination, member, previous)
        else:
            member.set(destination, value)
