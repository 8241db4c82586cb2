"""
Simple Mapper.

Convention-based object-to-object mapping: populate a destination instance
from a source instance by member name, with explicit per-member rules,
lifecycle hooks, nested and cyclic graphs, and null-skipping patches.

CLI usage::

    simple-mapper plan myapp.mapping
    simple-mapper check myapp.mapping:UserProfile

Programmatic usage::

    from simple_mapper import MappingEngine

    engine = MappingEngine()
    engine.create_map(UserEntity, UserDto) \\
        .for_member("full_name", lambda opt: opt.map_from(lambda u: f"{u.first_name} {u.last_name}")) \\
        .ignore("password_hash") \\
        .reverse_map()

    dto = engine.transform(user, UserDto)
    engine.patch(update_dto, user)
"""

__version__ = "0.1.0"

from .constants import WriteMode
from .engine import MappingEngine, default_engine
from .errors import (
    ConstructionError,
    MappingError,
    MappingWarning,
    MemberAccessError,
    MemberNotFoundError,
    UninvertibleRuleError,
    UninvertibleRuleWarning,
    UnmappedTypePairError,
)
from .expressions import MappingExpression, MemberConfiguration
from .profiles import Profile, profile
from .registry import MappingRegistry
from .service import SimpleMapper
from .sync import SyncResult

__all__ = [
    "ConstructionError",
    "MappingEngine",
    "MappingError",
    "MappingExpression",
    "MappingRegistry",
    "MappingWarning",
    "MemberAccessError",
    "MemberConfiguration",
    "MemberNotFoundError",
    "Profile",
    "SimpleMapper",
    "SyncResult",
    "UninvertibleRuleError",
    "UninvertibleRuleWarning",
    "UnmappedTypePairError",
    "WriteMode",
    "default_engine",
    "profile",
    "__version__",
]
