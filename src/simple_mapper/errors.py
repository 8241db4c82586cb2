"""
Exception and warning taxonomy for the mapping engine.

Every fatal error aborts the enclosing top-level call. Uninvertible reverse
rules are reported as warnings unless the registry is strict.
"""

from typing import Any, Optional


class MappingError(Exception):
    """Base class for all fatal mapping errors."""

    def __init__(
        self,
        message: str,
        source_type: Optional[type] = None,
        destination_type: Optional[type] = None,
        member: Optional[str] = None,
        run_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.source_type = source_type
        self.destination_type = destination_type
        self.member = member
        self.run_id = run_id

    def __str__(self) -> str:
        message = super().__str__()
        if self.run_id:
            return f"{message} (run {self.run_id})"
        return message


class UnmappedTypePairError(MappingError):
    """No definition exists or can be synthesized for a type pair."""

    def __init__(self, source_type: type, destination_type: type, run_id: Optional[str] = None):
        super().__init__(
            f"No mapping configured from {_name(source_type)} to {_name(destination_type)}",
            source_type=source_type,
            destination_type=destination_type,
            run_id=run_id,
        )


class MemberNotFoundError(MappingError):
    """A member does not exist on a type, or lacks the required access."""

    def __init__(self, owner: type, member: str, reason: str = "is not a member"):
        super().__init__(
            f"'{member}' {reason} of {_name(owner)}",
            destination_type=owner,
            member=member,
        )


class MemberAccessError(MappingError):
    """A resolved accessor failed when invoked."""


class ConstructionError(MappingError):
    """A destination instance could not be created."""


class UninvertibleRuleError(MappingError):
    """Raised instead of a warning when the registry is strict about reverse maps."""


class MappingWarning(UserWarning):
    """Base class for non-fatal mapping diagnostics."""


class UninvertibleRuleWarning(MappingWarning):
    """A member rule was dropped while deriving a reverse definition."""

    def __init__(self, source_type: type, destination_type: type, member: str, reason: str):
        super().__init__(
            f"Reverse map {_name(destination_type)} -> {_name(source_type)}: "
            f"rule for '{member}' dropped ({reason})"
        )
        self.source_type = source_type
        self.destination_type = destination_type
        self.member = member
        self.reason = reason


def _name(tp: Any) -> str:
    return getattr(tp, "__qualname__", None) or repr(tp)
