"""
Interactive two-way merge session.

Owns a working copy of a diff and the merged line buffer. The operator
accepts lines or whole change blocks from either side until both sides
agree; every accept can be undone and redone.
"""

from __future__ import annotations

from collections import deque
from typing import Optional

from diffalyze.core.diff.blocks import compute_blocks
from diffalyze.core.models import (
    ChangeBlock,
    DiffResult,
    EntryType,
    MergeSnapshot,
    MergeStatus,
    Side,
)


DEFAULT_HISTORY_LIMIT = 20


def prepare_merge(diff: DiffResult) -> list[str]:
    """Initial merged lines: the original content of each row, else the changed."""
    return [left.content or right.content for _, left, right in diff.iter_rows()]


class MergeSession:
    """
    Mutable merge state for one comparison.

    The session deep-copies the diff it is given, so the caller's copy
    (typically the one being displayed) is never mutated.

    Usage:
        session = MergeSession(diff)
        session.accept_line(3, Side.CHANGED)
        session.undo()
        text = session.merged_text
    """

    def __init__(self, diff: DiffResult, history_limit: int = DEFAULT_HISTORY_LIMIT):
        if history_limit < 1:
            raise ValueError("history_limit must be at least 1")
        self.history_limit = history_limit
        self._diff = diff.copy()
        self._merged_lines = prepare_merge(self._diff)
        self._dropped: set[int] = set()
        self._blocks = compute_blocks(self._diff)
        self._undo_stack: deque[MergeSnapshot] = deque(maxlen=history_limit)
        self._redo_stack: deque[MergeSnapshot] = deque(maxlen=history_limit)

    # -------------------------------------------------------------------------
    # Read-only views
    # -------------------------------------------------------------------------

    @property
    def merged_lines(self) -> tuple[str, ...]:
        return tuple(self._merged_lines)

    @property
    def merged_text(self) -> str:
        return "\n".join(self._merged_lines)

    def merged_output(self) -> list[str]:
        """
        Merged lines as file content.

        Rows where a placeholder was accepted hold an empty merged line so
        row indices stay aligned; they are left out here.
        """
        return [line for index, line in enumerate(self._merged_lines)
                if index not in self._dropped]

    @property
    def output_text(self) -> str:
        return "\n".join(self.merged_output())

    @property
    def diff(self) -> DiffResult:
        """Deep copy of the working diff."""
        return self._diff.copy()

    @property
    def blocks(self) -> list[ChangeBlock]:
        return list(self._blocks)

    @property
    def row_count(self) -> int:
        return self._diff.row_count

    @property
    def can_undo(self) -> bool:
        return len(self._undo_stack) > 0

    @property
    def can_redo(self) -> bool:
        return len(self._redo_stack) > 0

    @property
    def undo_depth(self) -> int:
        return len(self._undo_stack)

    @property
    def redo_depth(self) -> int:
        return len(self._redo_stack)

    @property
    def is_resolved(self) -> bool:
        """True once no change blocks remain."""
        return not self._blocks

    def status(self) -> MergeStatus:
        return MergeStatus(self.merged_lines, self.can_undo, self.can_redo)

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def accept_line(self, index: int, side: Side) -> MergeStatus:
        """
        Accept one row from the given side.

        The chosen content is copied onto the other side and both entries
        become unchanged. Out-of-range rows are ignored.
        """
        if not self._in_range(index):
            return self.status()

        self._save_state()
        self._apply(index, side)
        self._refresh()
        return self.status()

    def accept_block(self, start_index: int, end_index: int, side: Side) -> MergeStatus:
        """Accept every row of an inclusive range from the given side."""
        if start_index > end_index or not (
            self._in_range(start_index) and self._in_range(end_index)
        ):
            return self.status()

        self._save_state()
        for index in range(start_index, end_index + 1):
            self._apply(index, side)
        self._refresh()
        return self.status()

    def accept_all(self, side: Side) -> MergeStatus:
        """Accept every remaining change block from one side as one step."""
        if not self._blocks:
            return self.status()

        self._save_state()
        for block in self._blocks:
            for index in block.indices():
                self._apply(index, side)
        self._refresh()
        return self.status()

    def undo(self) -> MergeStatus:
        """Restore the state before the last accept."""
        if self._undo_stack:
            self._redo_stack.append(self._snapshot())
            self._restore(self._undo_stack.pop())
        return self.status()

    def redo(self) -> MergeStatus:
        """Re-apply the last undone accept."""
        if self._redo_stack:
            self._undo_stack.append(self._snapshot())
            self._restore(self._redo_stack.pop())
        return self.status()

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _in_range(self, index: int) -> bool:
        return 0 <= index < self._diff.row_count

    def _apply(self, index: int, side: Side) -> None:
        chosen = self._diff.entries(side)[index]
        other = self._diff.entries(side.other)[index]
        other.content = chosen.content

        chosen.entry_type = EntryType.UNCHANGED
        other.entry_type = EntryType.UNCHANGED

        self._merged_lines[index] = chosen.content
        if chosen.number is None:
            self._dropped.add(index)
        else:
            self._dropped.discard(index)

    def _refresh(self) -> None:
        self._diff.recompute_stats()
        self._blocks = compute_blocks(self._diff)

    def _snapshot(self) -> MergeSnapshot:
        return MergeSnapshot(
            tuple(self._merged_lines), self._diff.copy(), frozenset(self._dropped)
        )

    def _save_state(self) -> None:
        # deque(maxlen) drops the oldest snapshot
        self._undo_stack.append(self._snapshot())
        self._redo_stack.clear()

    def _restore(self, snapshot: MergeSnapshot) -> None:
        self._merged_lines = list(snapshot.merged_lines)
        self._diff = snapshot.diff.copy()
        self._dropped = set(snapshot.dropped)
        self._blocks = compute_blocks(self._diff)
