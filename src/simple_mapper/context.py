"""
Per-call execution state.

An ExecutionContext is created for every top-level transform/merge call and
discarded when it returns. It is never shared between calls, which is what
makes a single engine safe to use from several threads.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from .accessors import Member
from .constants import UNLIMITED_DEPTH, WriteMode
from .definitions import NOT_SET
from .ulid import generate_run_id


@dataclass
class JournalEntry:
    """
    A member write that can be undone.

    ``previous`` is NOT_SET when the attribute was never assigned before
    the write; undoing it deletes the attribute again.
    """

    target: Any
    member: Member
    previous: Any = NOT_SET

    def undo(self) -> None:
        if self.previous is NOT_SET:
            try:
                delattr(self.target, self.member.name)
            except AttributeError:
                pass
        else:
            self.member.set(self.target, self.previous)


@dataclass
class ExecutionContext:
    """
    State threaded through one recursive mapping call.

    Attributes:
        mode: Full overwrite or null-skipping patch
        max_depth: Depth limit of the top-level definition (0 = unlimited)
        preserve_references: Identity tracking requested by the top-level
            definition
        run_id: ULID tagging logs and errors of this call
        depth: Current recursion depth, 0 at the root
        visited: (id(source), destination type) -> (source, destination)
        in_place: The call updates an existing destination; nested members
            are merged into existing instances and writes are journaled
        journal: Member writes recorded for rollback of in-place calls
    """

    mode: WriteMode = WriteMode.FULL
    max_depth: int = UNLIMITED_DEPTH
    preserve_references: bool = False
    in_place: bool = False
    run_id: str = field(default_factory=generate_run_id)
    depth: int = 0
    visited: dict[tuple[int, type], tuple[Any, Any]] = field(default_factory=dict)
    journal: list[JournalEntry] = field(default_factory=list)

    @property
    def is_patch(self) -> bool:
        return self.mode is WriteMode.PATCH

    def depth_limit(self, definition_max_depth: int) -> int:
        """Tightest non-zero limit of the top-level and current definitions."""
        limits = [d for d in (self.max_depth, definition_max_depth) if d > 0]
        return min(limits) if limits else UNLIMITED_DEPTH

    def can_descend(self, definition_max_depth: int) -> bool:
        limit = self.depth_limit(definition_max_depth)
        return limit == UNLIMITED_DEPTH or self.depth < limit

    def lookup(self, source: Any, destination_type: type) -> Optional[Any]:
        """Return the destination already produced for a source, if any."""
        entry = self.visited.get((id(source), destination_type))
        return entry[1] if entry is not None else None

    def remember(self, source: Any, destination_type: type, destination: Any) -> None:
        # The source is kept alive so its id() cannot be reused mid-call
        self.visited[(id(source), destination_type)] = (source, destination)

    def record(self, target: Any, member: Member, previous: Any = NOT_SET) -> None:
        if self.in_place:
            self.journal.append(JournalEntry(target, member, previous))

    def rollback(self) -> int:
        """Undo journaled writes in reverse order; returns how many were undone."""
        undone = 0
        while self.journal:
            self.journal.pop().undo()
            undone += 1
        return undone
