"""
The mapping engine - configuration and execution behind one object.

An engine owns a registry, its accessor cache and an executor. Create one
at startup, load profiles into it, then share it; the first execution call
seals the configuration.
"""

import logging
import threading
from collections.abc import Iterable
from typing import Any, Optional, TypeVar

from .accessors import MemberAccessorCache
from .constants import WriteMode
from .executor import MappingExecutor
from .expressions import MappingExpression
from .profiles import ProfileLoader, ProfileSource
from .registry import Configurator, MappingRegistry
from .sync import KeySelector, SyncResult, sync_list

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MappingEngine:
    """
    Explicitly constructed mapping engine.

    Example:
        engine = MappingEngine()
        engine.add_profile(UserProfile)
        dto = engine.transform(user, UserDto)
        engine.patch(update_dto, user)

    Attributes:
        registry: Mapping definitions
        executor: Runs definitions against instances
        profiles: Loads profiles into the registry
    """

    def __init__(
        self,
        registry: Optional[MappingRegistry] = None,
        allow_convention_fallback: Optional[bool] = None,
        strict_reverse: Optional[bool] = None,
    ):
        self.registry = registry or MappingRegistry(
            cache=MemberAccessorCache(),
            allow_convention_fallback=allow_convention_fallback,
            strict_reverse=strict_reverse,
        )
        self.executor = MappingExecutor(self.registry)
        self.profiles = ProfileLoader(self.registry)

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    def create_map(self, source_type: type, destination_type: type) -> MappingExpression:
        return self.registry.create_map(source_type, destination_type)

    def register(
        self,
        source_type: type,
        destination_type: type,
        configurator: Optional[Configurator] = None,
    ) -> MappingExpression:
        return self.registry.register(source_type, destination_type, configurator)

    def add_profile(self, *profiles: ProfileSource) -> "MappingEngine":
        """Apply one or more profiles; returns the engine for chaining."""
        self.profiles.load(*profiles)
        return self

    register_profile = add_profile

    def seal(self) -> None:
        self.registry.seal()

    def reset(self) -> None:
        """Drop all configuration."""
        self.registry.clear()
        self.profiles.loaded.clear()

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def transform(self, source: Any, destination_type: type[T]) -> T:
        """Map a source into a new destination instance."""
        self._ensure_sealed()
        return self.executor.transform(source, destination_type)

    def transform_list(self, sources: Optional[Iterable[Any]], destination_type: type[T]) -> Optional[list[T]]:
        """Map a sequence element-wise, preserving order."""
        self._ensure_sealed()
        return self.executor.transform_all(sources, destination_type)

    def merge_into(self, source: Any, destination: T) -> T:
        """Overwrite every mapped member of an existing destination."""
        self._ensure_sealed()
        return self.executor.merge_into(source, destination, mode=WriteMode.FULL)

    def patch(self, source: Any, destination: T) -> T:
        """Apply only the present (non-None) source values to a destination."""
        self._ensure_sealed()
        return self.executor.merge_into(source, destination, mode=WriteMode.PATCH)

    def patch_new(self, source: Any, destination_type: type[T]) -> T:
        """Patch into a new instance, keeping constructor defaults for absent values."""
        self._ensure_sealed()
        return self.executor.transform(source, destination_type, mode=WriteMode.PATCH)

    def patch_list(self, sources: Optional[Iterable[Any]], destination_type: type[T]) -> Optional[list[T]]:
        self._ensure_sealed()
        return self.executor.transform_all(sources, destination_type, mode=WriteMode.PATCH)

    def sync(
        self,
        sources: list[Any],
        destinations: list[T],
        destination_type: type[T],
        source_key: KeySelector,
        destination_key: Optional[KeySelector] = None,
        mode: WriteMode = WriteMode.FULL,
    ) -> SyncResult:
        """Synchronize a destination list with a source list by key."""
        self._ensure_sealed()
        return sync_list(self, sources, destinations, destination_type, source_key, destination_key, mode)

    def _ensure_sealed(self) -> None:
        if not self.registry.sealed:
            self.registry.seal()


_default_engine: Optional[MappingEngine] = None
_default_lock = threading.Lock()


def default_engine() -> MappingEngine:
    """Return the process-scoped engine, creating it on first use."""
    global _default_engine
    if _default_engine is None:
        with _default_lock:
            if _default_engine is None:
                _default_engine = MappingEngine()
                logger.debug("Created default mapping engine")
    return _default_engine
