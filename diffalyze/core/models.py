"""
Core data models for the diff and merge engine.

This module defines all data structures shared across the engine:
- Edit script operations
- Move detection index
- Side-by-side diff entries and statistics
- Change blocks
- Merge snapshots

All models are designed to be:
- UI-agnostic (can be used with any frontend)
- Deep-copyable (merge history stores full snapshots)
- Type-hinted for IDE support
- Immutable where practical
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Iterator, Optional, Sequence


# =============================================================================
# Enumerations
# =============================================================================

class EntryType(Enum):
    """Type of a rendered row entry on one side of a diff."""
    UNCHANGED = "unchanged"  # Same content on both sides
    ADDED = "added"          # Only in the changed text
    REMOVED = "removed"      # Only in the original text
    MODIFIED = "modified"    # Paired with a different line on the other side
    MOVED = "moved"          # Unique line found at a distant position
    EMPTY = "empty"          # Placeholder for alignment


class Side(Enum):
    """One side of a two-way comparison."""
    ORIGINAL = "original"
    CHANGED = "changed"

    @property
    def other(self) -> 'Side':
        return Side.CHANGED if self is Side.ORIGINAL else Side.ORIGINAL

    @classmethod
    def from_string(cls, value: str) -> 'Side':
        """Create from string value ("original"/"changed" or "left"/"right")."""
        aliases = {"left": cls.ORIGINAL, "right": cls.CHANGED}
        lowered = value.strip().lower()
        if lowered in aliases:
            return aliases[lowered]
        return cls(lowered)


class EditOpKind(Enum):
    """Kind of edit script operation."""
    EQUAL = auto()
    DELETE = auto()
    INSERT = auto()


# =============================================================================
# Input Models
# =============================================================================

@dataclass(frozen=True)
class Line:
    """A single input line and its 0-based position in its own sequence."""
    index: int
    content: str


def split_lines(text: str) -> list[str]:
    """
    Split raw text into lines.

    Splits on newline only, so an empty text is a single empty line and
    carriage returns stay part of the line content.
    """
    return text.split("\n")


def iter_lines(lines: Sequence[str]) -> Iterator[Line]:
    """Iterate over lines paired with their index."""
    for index, content in enumerate(lines):
        yield Line(index, content)


# =============================================================================
# Edit Script Models
# =============================================================================

@dataclass(frozen=True)
class EditOp:
    """
    One step of an edit script.

    DELETE consumes an original line, INSERT consumes a changed line,
    EQUAL consumes one of each.
    """
    kind: EditOpKind
    original_index: Optional[int] = None
    changed_index: Optional[int] = None

    @classmethod
    def equal(cls, original_index: int, changed_index: int) -> 'EditOp':
        return cls(EditOpKind.EQUAL, original_index, changed_index)

    @classmethod
    def delete(cls, original_index: int) -> 'EditOp':
        return cls(EditOpKind.DELETE, original_index, None)

    @classmethod
    def insert(cls, changed_index: int) -> 'EditOp':
        return cls(EditOpKind.INSERT, None, changed_index)

    @property
    def is_equal(self) -> bool:
        return self.kind is EditOpKind.EQUAL


@dataclass(frozen=True)
class MovedPair:
    """A line found exactly once on each side at distant positions."""
    original_index: int
    changed_index: int
    content: str

    @property
    def distance(self) -> int:
        return abs(self.original_index - self.changed_index)


@dataclass
class MoveIndex:
    """Line positions flagged as moved on each side."""
    original: set[int] = field(default_factory=set)
    changed: set[int] = field(default_factory=set)
    pairs: list[MovedPair] = field(default_factory=list)

    def add(self, pair: MovedPair) -> None:
        self.original.add(pair.original_index)
        self.changed.add(pair.changed_index)
        self.pairs.append(pair)

    def __len__(self) -> int:
        return len(self.pairs)


# =============================================================================
# Diff Result Models
# =============================================================================

@dataclass
class DiffEntry:
    """
    One rendered row on one side of a diff.

    `number` is the 1-based line number within the entry's own text,
    None for alignment placeholders.
    """
    entry_type: EntryType
    content: str
    number: Optional[int] = None
    moved: bool = False

    @classmethod
    def placeholder(cls) -> 'DiffEntry':
        return cls(EntryType.EMPTY, "", None)

    @property
    def is_placeholder(self) -> bool:
        return self.entry_type is EntryType.EMPTY

    @property
    def is_unchanged(self) -> bool:
        return self.entry_type is EntryType.UNCHANGED


@dataclass
class DiffStats:
    """
    Aggregate statistics of a diff result.

    Always derived from the entries, one increment per row.
    """
    added: int = 0
    removed: int = 0
    modified: int = 0
    moved: int = 0
    unchanged: int = 0

    @classmethod
    def from_rows(
        cls,
        original: Sequence[DiffEntry],
        changed: Sequence[DiffEntry]
    ) -> 'DiffStats':
        """
        Count rows by type.

        A row is moved if either side is moved, else modified if either side
        is modified, else added/removed by the side that holds the line, else
        unchanged when both sides are unchanged.
        """
        stats = cls()
        for left, right in zip(original, changed):
            types = (left.entry_type, right.entry_type)
            if EntryType.MOVED in types:
                stats.moved += 1
            elif EntryType.MODIFIED in types:
                stats.modified += 1
            elif right.entry_type is EntryType.ADDED:
                stats.added += 1
            elif left.entry_type is EntryType.REMOVED:
                stats.removed += 1
            elif left.is_unchanged and right.is_unchanged:
                stats.unchanged += 1
        return stats

    @property
    def total_changes(self) -> int:
        """Total number of changed rows."""
        return self.added + self.removed + self.modified + self.moved

    @property
    def has_changes(self) -> bool:
        return self.total_changes > 0

    @property
    def total_rows(self) -> int:
        return self.total_changes + self.unchanged

    def as_dict(self) -> dict[str, int]:
        return {
            "added": self.added,
            "removed": self.removed,
            "modified": self.modified,
            "moved": self.moved,
            "unchanged": self.unchanged,
        }

    def __str__(self) -> str:
        return (f"+{self.added} -{self.removed} "
                f"~{self.modified} >{self.moved} ={self.unchanged}")


@dataclass
class DiffResult:
    """
    Complete result of a line diff.

    `original` and `changed` are parallel row sequences of equal length.
    `stats` is never trusted on its own: call recompute_stats() after any
    entry changes.
    """
    original: list[DiffEntry] = field(default_factory=list)
    changed: list[DiffEntry] = field(default_factory=list)
    stats: DiffStats = field(default_factory=DiffStats)

    @classmethod
    def empty(cls) -> 'DiffResult':
        """The all-zero result used to signal a failed computation."""
        return cls()

    @classmethod
    def from_rows(
        cls,
        original: list[DiffEntry],
        changed: list[DiffEntry]
    ) -> 'DiffResult':
        if len(original) != len(changed):
            raise ValueError(
                f"Row sequences differ in length: {len(original)} != {len(changed)}"
            )
        return cls(original, changed, DiffStats.from_rows(original, changed))

    @property
    def row_count(self) -> int:
        return len(self.original)

    @property
    def is_empty(self) -> bool:
        return not self.original and not self.changed

    @property
    def has_changes(self) -> bool:
        return self.stats.has_changes

    def recompute_stats(self) -> DiffStats:
        """Rebuild statistics from the current entries."""
        self.stats = DiffStats.from_rows(self.original, self.changed)
        return self.stats

    def entries(self, side: Side) -> list[DiffEntry]:
        """Get the row sequence for one side."""
        return self.original if side is Side.ORIGINAL else self.changed

    def row(self, index: int) -> tuple[DiffEntry, DiffEntry]:
        return self.original[index], self.changed[index]

    def iter_rows(self) -> Iterator[tuple[int, DiffEntry, DiffEntry]]:
        for index, (left, right) in enumerate(zip(self.original, self.changed)):
            yield index, left, right

    def copy(self) -> 'DiffResult':
        """Deep copy, sharing nothing mutable with this result."""
        return copy.deepcopy(self)


@dataclass(frozen=True)
class ChangeBlock:
    """A maximal contiguous run of rows with a change on either side."""
    start_index: int
    end_index: int  # inclusive

    @property
    def length(self) -> int:
        return self.end_index - self.start_index + 1

    def contains(self, index: int) -> bool:
        return self.start_index <= index <= self.end_index

    def indices(self) -> range:
        return range(self.start_index, self.end_index + 1)


# =============================================================================
# Merge Models
# =============================================================================

@dataclass(frozen=True)
class MergeSnapshot:
    """Deep-copied merge state kept in undo/redo history."""
    merged_lines: tuple[str, ...]
    diff: DiffResult
    dropped: frozenset[int] = frozenset()  # Rows resolved to a placeholder


@dataclass(frozen=True)
class MergeStatus:
    """Merge state reported back to the caller after each operation."""
    merged_lines: tuple[str, ...]
    can_undo: bool
    can_redo: bool

    @property
    def merged_text(self) -> str:
        return "\n".join(self.merged_lines)
