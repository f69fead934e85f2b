"""
Text diff engine.

Provides line-by-line comparison with support for:
- Whitespace, case and blank line normalization
- Stripping a user pattern before comparing
- Moved line detection
- Modified line pairing
- Side-by-side text output
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, Iterator, Optional, Sequence

from diffalyze.core.diff.moves import detect_moved_lines
from diffalyze.core.diff.myers import myers_diff
from diffalyze.core.diff.normalizer import CompareOptions, LineNormalizer
from diffalyze.core.models import (
    DiffEntry,
    DiffResult,
    EditOp,
    EditOpKind,
    EntryType,
    MoveIndex,
)


logger = logging.getLogger(__name__)


class OpGroupKind(Enum):
    """Kind of a run of edit operations."""
    EQUAL = auto()  # Lines present on both sides
    MIXED = auto()  # Deletes and inserts of similar count, paired line by line
    EDIT = auto()   # Independent deletes and inserts


@dataclass
class OpGroup:
    """A run of consecutive operations of one kind."""
    kind: OpGroupKind
    count: int = 0     # Equal lines
    deletes: int = 0
    inserts: int = 0

    @property
    def pairs(self) -> int:
        """Number of line pairs in a mixed run."""
        return min(self.deletes, self.inserts) if self.kind is OpGroupKind.MIXED else 0


def group_operations(script: Sequence[EditOp]) -> list[OpGroup]:
    """
    Group consecutive operations.

    Equal operations form one run; every run of non-equal operations is
    classified MIXED when it has both deletes and inserts whose counts
    differ by at most one, otherwise EDIT.
    """
    groups: list[OpGroup] = []
    current: Optional[OpGroup] = None

    def close_edit_run() -> None:
        if current.deletes and current.inserts and abs(current.deletes - current.inserts) <= 1:
            current.kind = OpGroupKind.MIXED
        groups.append(current)

    for op in script:
        if op.kind is EditOpKind.EQUAL:
            if current is not None and current.kind is not OpGroupKind.EQUAL:
                close_edit_run()
                current = None
            if current is None:
                current = OpGroup(OpGroupKind.EQUAL)
                groups.append(current)
            current.count += 1
        else:
            if current is None or current.kind is OpGroupKind.EQUAL:
                current = OpGroup(OpGroupKind.EDIT)
            if op.kind is EditOpKind.DELETE:
                current.deletes += 1
            else:
                current.inserts += 1

    if current is not None and current.kind is not OpGroupKind.EQUAL:
        close_edit_run()

    return groups


class _RowBuilder:
    """Accumulates the two parallel row sequences."""

    def __init__(
        self,
        original_lines: Sequence[str],
        changed_lines: Sequence[str],
        moves: MoveIndex
    ):
        self.original_lines = original_lines
        self.changed_lines = changed_lines
        self.moves = moves
        self.original: list[DiffEntry] = []
        self.changed: list[DiffEntry] = []
        self.original_pos = 0
        self.changed_pos = 0

    def _original_entry(self, default: EntryType) -> DiffEntry:
        index = self.original_pos
        moved = index in self.moves.original
        self.original_pos += 1
        return DiffEntry(
            EntryType.MOVED if moved else default,
            self.original_lines[index],
            index + 1,
            moved,
        )

    def _changed_entry(self, default: EntryType) -> DiffEntry:
        index = self.changed_pos
        moved = index in self.moves.changed
        self.changed_pos += 1
        return DiffEntry(
            EntryType.MOVED if moved else default,
            self.changed_lines[index],
            index + 1,
            moved,
        )

    def add_equal(self, count: int) -> None:
        for _ in range(count):
            self.original.append(self._original_entry(EntryType.UNCHANGED))
            self.changed.append(self._changed_entry(EntryType.UNCHANGED))

    def add_pairs(self, count: int) -> None:
        for _ in range(count):
            left = self.original_lines[self.original_pos]
            right = self.changed_lines[self.changed_pos]
            entry_type = EntryType.UNCHANGED if left == right else EntryType.MODIFIED
            self.original.append(DiffEntry(entry_type, left, self.original_pos + 1))
            self.changed.append(DiffEntry(entry_type, right, self.changed_pos + 1))
            self.original_pos += 1
            self.changed_pos += 1

    def add_deletes(self, count: int) -> None:
        for _ in range(count):
            self.original.append(self._original_entry(EntryType.REMOVED))
            self.changed.append(DiffEntry.placeholder())

    def add_inserts(self, count: int) -> None:
        for _ in range(count):
            self.original.append(DiffEntry.placeholder())
            self.changed.append(self._changed_entry(EntryType.ADDED))


def classify(
    script: Sequence[EditOp],
    original_lines: Sequence[str],
    changed_lines: Sequence[str],
    moves: Optional[MoveIndex] = None
) -> DiffResult:
    """
    Turn an edit script into two aligned row sequences.

    Args:
        script: Edit script from myers_diff
        original_lines: Raw original lines
        changed_lines: Raw changed lines
        moves: Moved line flags (none if omitted)

    Returns:
        DiffResult with statistics counted from the rows
    """
    builder = _RowBuilder(original_lines, changed_lines, moves or MoveIndex())

    for group in group_operations(script):
        if group.kind is OpGroupKind.EQUAL:
            builder.add_equal(group.count)
        elif group.kind is OpGroupKind.MIXED:
            builder.add_pairs(group.pairs)
            builder.add_deletes(group.deletes - group.pairs)
            builder.add_inserts(group.inserts - group.pairs)
        else:
            builder.add_deletes(group.deletes)
            builder.add_inserts(group.inserts)

    return DiffResult.from_rows(builder.original, builder.changed)


class TextDiffEngine:
    """
    Engine for comparing two sequences of lines.

    Runs normalization, the Myers edit script, move detection and
    classification. Internal failures propagate; use compute_diff() for
    the never-raising entry point.
    """

    def __init__(
        self,
        options: Optional[CompareOptions] = None,
        detect_moves: bool = True,
        cancel_check: Optional[Callable[[], bool]] = None
    ):
        self.options = options or CompareOptions()
        self.detect_moves = detect_moves
        self.cancel_check = cancel_check
        self.normalizer = LineNormalizer(self.options)

    def compute(
        self,
        original_lines: Sequence[str],
        changed_lines: Sequence[str]
    ) -> DiffResult:
        """
        Compare two sequences of lines.

        Args:
            original_lines: Lines of the original text
            changed_lines: Lines of the changed text

        Returns:
            DiffResult containing both aligned sides and statistics
        """
        original = list(original_lines)
        changed = list(changed_lines)

        a = self.normalizer.normalize_all(original)
        b = self.normalizer.normalize_all(changed)

        # One line each that differs: report a modification directly
        if len(a) == 1 and len(b) == 1 and a[0] != b[0]:
            return DiffResult.from_rows(
                [DiffEntry(EntryType.MODIFIED, original[0], 1)],
                [DiffEntry(EntryType.MODIFIED, changed[0], 1)],
            )

        script = myers_diff(a, b, self.cancel_check)

        if self.detect_moves:
            moves = detect_moved_lines(original, changed, self.normalizer)
        else:
            moves = MoveIndex()

        return classify(script, original, changed, moves)


def _coerce_lines(value: Any) -> list[str]:
    """Accept a sequence of strings, anything else becomes no lines."""
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        return []
    return [line if isinstance(line, str) else "" for line in value]


def compute_diff(
    original_lines: Sequence[str],
    changed_lines: Sequence[str],
    options: Optional[CompareOptions] = None,
    detect_moves: bool = True
) -> DiffResult:
    """
    Compare two line sequences without ever raising.

    Malformed input is treated as empty. An internal failure is logged and
    returned as DiffResult.empty() so callers can fall back.
    """
    original = _coerce_lines(original_lines)
    changed = _coerce_lines(changed_lines)
    try:
        return TextDiffEngine(options, detect_moves).compute(original, changed)
    except Exception:
        logger.exception("Diff computation failed")
        return DiffResult.empty()


class SideBySideFormatter:
    """Format diff results for side-by-side text display."""

    MARKERS = {
        EntryType.UNCHANGED: " ",
        EntryType.ADDED: "+",
        EntryType.REMOVED: "-",
        EntryType.MODIFIED: "~",
        EntryType.MOVED: ">",
        EntryType.EMPTY: " ",
    }

    def __init__(self, width: int = 80, tab_size: int = 4):
        self.width = width
        self.tab_size = tab_size

    def format(self, result: DiffResult) -> Iterator[str]:
        """Yield one formatted line per row."""
        column = max((self.width - 3) // 2, 12)
        for _, left, right in result.iter_rows():
            yield (f"{self._format_entry(left, column)}"
                   f" | {self._format_entry(right, column)}").rstrip()

    def _format_entry(self, entry: DiffEntry, column: int) -> str:
        """Format a single entry with marker and line number."""
        if entry.is_placeholder:
            return " " * column

        number = f"{entry.number:4d}" if entry.number is not None else "    "
        prefix = f"{self.MARKERS[entry.entry_type]}{number} "
        content = entry.content.rstrip("\r").replace("\t", " " * self.tab_size)

        max_content = column - len(prefix)
        if len(content) > max_content:
            content = content[:max_content - 3] + "..."

        return (prefix + content).ljust(column)
