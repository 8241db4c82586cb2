"""
Module-level convenience functions over the process-scoped engine.

For applications that want one engine per process without passing it
around. Configure it once at startup:

    from simple_mapper import mapper

    mapper.add_profile(UserProfile)
    dto = mapper.transform(user, UserDto)

Code that can take the engine as a dependency should use SimpleMapper or
MappingEngine directly instead.
"""

from collections.abc import Iterable
from typing import Any, Optional, TypeVar

from .constants import WriteMode
from .engine import MappingEngine, default_engine
from .expressions import MappingExpression
from .profiles import ProfileSource
from .sync import KeySelector, SyncResult

T = TypeVar("T")


def engine() -> MappingEngine:
    return default_engine()


def create_map(source_type: type, destination_type: type) -> MappingExpression:
    return default_engine().create_map(source_type, destination_type)


def add_profile(*profiles: ProfileSource) -> MappingEngine:
    return default_engine().add_profile(*profiles)


def transform(source: Any, destination_type: type[T]) -> T:
    return default_engine().transform(source, destination_type)


def transform_list(sources: Optional[Iterable[Any]], destination_type: type[T]) -> Optional[list[T]]:
    return default_engine().transform_list(sources, destination_type)


def merge_into(source: Any, destination: T) -> T:
    return default_engine().merge_into(source, destination)


def patch(source: Any, destination: T) -> T:
    return default_engine().patch(source, destination)


def patch_new(source: Any, destination_type: type[T]) -> T:
    return default_engine().patch_new(source, destination_type)


def patch_list(sources: Optional[Iterable[Any]], destination_type: type[T]) -> Optional[list[T]]:
    return default_engine().patch_list(sources, destination_type)


def sync(
    sources: list[Any],
    destinations: list[T],
    destination_type: type[T],
    source_key: KeySelector,
    destination_key: Optional[KeySelector] = None,
    mode: WriteMode = WriteMode.FULL,
) -> SyncResult:
    return default_engine().sync(sources, destinations, destination_type, source_key, destination_key, mode)


def reset() -> None:
    """Drop all configuration of the process-scoped engine (for tests)."""
    default_engine().reset()
