"""
Injectable mapping service.

SimpleMapper wraps an explicitly constructed engine behind the small
surface application code needs, so it can be handed to request handlers or
replaced with a test double.
"""

from collections.abc import Iterable
from typing import Any, Optional, TypeVar

from .constants import WriteMode
from .engine import MappingEngine
from .profiles import ProfileSource
from .sync import KeySelector, SyncResult

T = TypeVar("T")


class SimpleMapper:
    """
    Mapping service bound to one engine.

    Args:
        engine: Engine to delegate to; a new one is created when omitted
        profiles: Profiles applied to the engine right away

    Example:
        mapper = SimpleMapper(profiles=[UserProfile])
        dto = mapper.transform(user, UserDto)
        mapper.patch(update, user)
    """

    def __init__(self, engine: Optional[MappingEngine] = None, profiles: Iterable[ProfileSource] = ()):
        self.engine = engine if engine is not None else MappingEngine()
        profiles = list(profiles)
        if profiles:
            self.engine.add_profile(*profiles)

    def transform(self, source: Any, destination_type: type[T]) -> T:
        return self.engine.transform(source, destination_type)

    def transform_list(self, sources: Optional[Iterable[Any]], destination_type: type[T]) -> Optional[list[T]]:
        return self.engine.transform_list(sources, destination_type)

    def merge_into(self, source: Any, destination: T) -> T:
        return self.engine.merge_into(source, destination)

    def patch(self, source: Any, destination: T) -> T:
        return self.engine.patch(source, destination)

    def patch_new(self, source: Any, destination_type: type[T]) -> T:
        return self.engine.patch_new(source, destination_type)

    def patch_list(self, sources: Optional[Iterable[Any]], destination_type: type[T]) -> Optional[list[T]]:
        return self.engine.patch_list(sources, destination_type)

    def sync(
        self,
        sources: list[Any],
        destinations: list[T],
        destination_type: type[T],
        source_key: KeySelector,
        destination_key: Optional[KeySelector] = None,
        mode: WriteMode = WriteMode.FULL,
    ) -> SyncResult:
        return self.engine.sync(sources, destinations, destination_type, source_key, destination_key, mode)
