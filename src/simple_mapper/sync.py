"""
Keyed list synchronization.

Brings a destination list in line with a source list: matching items are
merged, new items are mapped and appended, stale items are removed.
"""

import logging
import operator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Optional, Union

from .constants import WriteMode

if TYPE_CHECKING:
    from .engine import MappingEngine

logger = logging.getLogger(__name__)

KeySelector = Union[str, Callable[[Any], Any]]


@dataclass(frozen=True)
class SyncResult:
    """Counts of a list synchronization."""

    added: int = 0
    updated: int = 0
    removed: int = 0

    def __str__(self) -> str:
        return f"Added={self.added}, Updated={self.updated}, Removed={self.removed}"


def _key_function(key: KeySelector) -> Callable[[Any], Any]:
    if isinstance(key, str):
        return operator.attrgetter(key)
    return key


def sync_list(
    engine: "MappingEngine",
    sources: list[Any],
    destinations: list[Any],
    destination_type: type,
    source_key: KeySelector,
    destination_key: Optional[KeySelector] = None,
    mode: WriteMode = WriteMode.FULL,
) -> SyncResult:
    """
    Synchronize ``destinations`` in place with ``sources``.

    The call is all or nothing: if mapping any item fails, merged items are
    rolled back and ``destinations`` is left as it was.

    Args:
        engine: Engine used to merge and transform items
        sources: Items to mirror
        destinations: Mutable list updated in place
        destination_type: Type of newly added destination items
        source_key: Member name or callable identifying a source item
        destination_key: Same for destination items; defaults to source_key
        mode: Write mode used for matched items (new items use it too)

    Returns:
        SyncResult with added/updated/removed counts

    Raises:
        ValueError: If two source items share a key.
    """
    get_source_key = _key_function(source_key)
    get_destination_key = _key_function(destination_key if destination_key is not None else source_key)

    by_key: dict[Any, Any] = {}
    for item in sources:
        key = get_source_key(item)
        if key in by_key:
            raise ValueError(f"Duplicate source key {key!r}")
        by_key[key] = item

    matched: dict[Any, Any] = {}
    kept: list[Any] = []
    for existing in destinations:
        key = get_destination_key(existing)
        if key not in by_key or key in matched:
            continue
        matched[key] = existing
        kept.append(existing)

    # New items are built before any existing item is touched
    new_items = [
        engine.executor.transform(source, destination_type, mode=mode)
        for key, source in by_key.items()
        if key not in matched
    ]
    updated = engine.executor.merge_all(((by_key[key], existing) for key, existing in matched.items()), mode=mode)

    removed = len(destinations) - len(kept)
    added = len(new_items)
    destinations[:] = kept + new_items
    result = SyncResult(added=added, updated=updated, removed=removed)
    logger.debug(f"Synchronized list of {destination_type.__qualname__}: {result}")
    return result
