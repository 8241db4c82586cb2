"""
Profiles group related mapping configurations.

A profile is anything with a ``configure(registry)`` method, or a plain
function taking the registry. Profiles are applied once, in the order
given, before the first mapping call.

Example:
    class UserProfile:
        def configure(self, registry):
            registry.create_map(UserEntity, UserDto).reverse_map()

    @profile
    def order_profile(registry):
        registry.create_map(Order, OrderDto)
"""

import importlib
import inspect
import logging
from types import ModuleType
from typing import Any, Callable, Protocol, Union, runtime_checkable

from .registry import MappingRegistry

logger = logging.getLogger(__name__)

PROFILE_MARKER = "__mapping_profile__"


@runtime_checkable
class Profile(Protocol):
    """Interface of a mapping profile."""

    def configure(self, registry: MappingRegistry) -> None: ...


ProfileSource = Union[Profile, type, Callable[[MappingRegistry], Any]]


def profile(func: Callable[[MappingRegistry], Any]) -> Callable[[MappingRegistry], Any]:
    """Mark a function as a profile so module discovery picks it up."""
    setattr(func, PROFILE_MARKER, True)
    return func


def profile_name(source: Any) -> str:
    target = source if isinstance(source, type) or inspect.isfunction(source) else type(source)
    return getattr(target, "__qualname__", repr(source))


class ProfileLoader:
    """
    Folds profiles into a registry.

    Attributes:
        registry: The registry profiles configure
        loaded: Names of the profiles applied so far, in order
    """

    def __init__(self, registry: MappingRegistry):
        self.registry = registry
        self.loaded: list[str] = []

    def load(self, *profiles: ProfileSource) -> None:
        """
        Apply profiles in order.

        Classes are instantiated without arguments; instances must provide
        ``configure``; other callables are called with the registry.

        Raises:
            TypeError: If a profile is neither a Profile nor callable.
        """
        for source in profiles:
            configure = self._configure_callable(source)
            name = profile_name(source)
            before = len(self.registry.type_pairs())
            configure(self.registry)
            self.loaded.append(name)
            added = len(self.registry.type_pairs()) - before
            logger.info(f"Loaded mapping profile {name} ({added} new type pair(s))")

    def _configure_callable(self, source: ProfileSource) -> Callable[[MappingRegistry], Any]:
        if isinstance(source, type):
            if not callable(getattr(source, "configure", None)):
                raise TypeError(f"Profile class {source.__qualname__} has no configure() method")
            source = source()
        if isinstance(source, Profile):
            return source.configure
        if callable(source):
            return source
        raise TypeError(f"Not a mapping profile: {source!r}")


def discover_profiles(module: ModuleType) -> list[ProfileSource]:
    """
    Find the profiles defined in a module.

    Picks up classes defined in the module that have a ``configure``
    method, Profile instances bound at module level, and functions marked
    with ``@profile``; in definition order.
    """
    found: list[ProfileSource] = []
    for name, value in vars(module).items():
        if name.startswith("_") or value is Profile:
            continue
        if isinstance(value, type):
            if value.__module__ == module.__name__ and callable(getattr(value, "configure", None)):
                found.append(value)
        elif inspect.isfunction(value):
            if getattr(value, PROFILE_MARKER, False):
                found.append(value)
        elif isinstance(value, Profile):
            found.append(value)
    return found


def load_target(target: str) -> list[ProfileSource]:
    """
    Import profiles from ``module`` or ``module:attribute``.

    Raises:
        ImportError: If the module cannot be imported.
        AttributeError: If the attribute does not exist.
        LookupError: If a module defines no profiles.
    """
    module_name, _, attribute = target.partition(":")
    module = importlib.import_module(module_name)
    if attribute:
        return [getattr(module, attribute)]

    found = discover_profiles(module)
    if not found:
        raise LookupError(f"No mapping profiles found in {module_name}")
    return found
