"""
Convention matcher.

Pairs destination members with same-named source members when no explicit
rule covers them.
"""

import logging
from collections.abc import Iterable
from typing import Any

from .accessors import Member, MemberAccessorCache, unwrap_optional
from .constants import TypeKind

logger = logging.getLogger(__name__)


class ConventionMatcher:
    """
    Proposes default member-to-member pairings by name and type.

    A destination member matches a source member when the names are equal
    ignoring case and the declared types are assignment compatible:
    - identical types (after removing ``Optional``)
    - either side declared as ``Any`` or unannotated
    - both mappable complex types
    - both homogeneous sequences whose element types are identical or
      both mappable

    Destination members without a candidate are simply left out; that is
    not an error.
    """

    def __init__(self, cache: MemberAccessorCache):
        self.cache = cache

    def match_members(
        self,
        source_type: type,
        destination_type: type,
        explicit: Iterable[str] = (),
    ) -> list[tuple[str, str]]:
        """
        Pair writable destination members with readable source members.

        Args:
            source_type: Type read from
            destination_type: Type written to
            explicit: Destination member names already covered by rules

        Returns:
            (destination member name, source member name) pairs in
            destination declaration order
        """
        covered = set(explicit)
        source_schema = self.cache.schema(source_type)
        pairs: list[tuple[str, str]] = []

        for dest_member in self.cache.schema(destination_type).writable:
            if dest_member.name in covered:
                continue
            src_member = source_schema.find(dest_member.name, case_insensitive=True)
            if src_member is None or not src_member.readable:
                continue
            if self.is_assignable(src_member, dest_member):
                pairs.append((dest_member.name, src_member.name))
            else:
                logger.debug(
                    f"Skipping {destination_type.__qualname__}.{dest_member.name}: "
                    f"{src_member.annotation!r} is not assignable to {dest_member.annotation!r}"
                )

        return pairs

    def is_assignable(self, source: Member, destination: Member) -> bool:
        """Check whether a source member's type can populate a destination member."""
        return self.types_compatible(source.annotation, destination.annotation)

    def types_compatible(self, source_annotation: Any, destination_annotation: Any) -> bool:
        src = unwrap_optional(source_annotation)
        dest = unwrap_optional(destination_annotation)
        if src == dest or src is Any or dest is Any:
            return True

        src_kind, src_element = self.cache.classify(src)
        dest_kind, dest_element = self.cache.classify(dest)
        if src_kind is TypeKind.COMPLEX and dest_kind is TypeKind.COMPLEX:
            return True
        if src_kind is TypeKind.SEQUENCE and dest_kind is TypeKind.SEQUENCE:
            if src_element == dest_element or src_element is Any or dest_element is Any:
                return True
            return self.cache.is_mappable(src_element) and self.cache.is_mappable(dest_element)
        return False

    def unmatched_members(
        self,
        source_type: type,
        destination_type: type,
        explicit: Iterable[str] = (),
    ) -> list[str]:
        """Writable destination members with neither rule nor convention match."""
        covered = set(explicit)
        covered.update(dest for dest, _ in self.match_members(source_type, destination_type, covered))
        return [
            m.name for m in self.cache.schema(destination_type).writable if m.name not in covered
        ]
