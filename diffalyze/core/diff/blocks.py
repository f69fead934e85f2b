"""
Change block location and navigation.

Blocks are maximal runs of rows where either side is not unchanged. These
functions only read entry types; they never touch the statistics.
"""

from __future__ import annotations

from typing import Optional, Sequence

from diffalyze.core.models import ChangeBlock, DiffResult


def compute_blocks(diff: DiffResult) -> list[ChangeBlock]:
    """Find contiguous changed regions."""
    blocks: list[ChangeBlock] = []
    start: Optional[int] = None

    for index, left, right in diff.iter_rows():
        changed = not (left.is_unchanged and right.is_unchanged)
        if changed and start is None:
            start = index
        elif not changed and start is not None:
            blocks.append(ChangeBlock(start, index - 1))
            start = None

    if start is not None:
        blocks.append(ChangeBlock(start, diff.row_count - 1))

    return blocks


def block_at(blocks: Sequence[ChangeBlock], index: int) -> Optional[ChangeBlock]:
    """Get the block containing a row, if any."""
    for block in blocks:
        if block.contains(index):
            return block
    return None


def next_block(blocks: Sequence[ChangeBlock], index: int) -> Optional[ChangeBlock]:
    """First block starting after the given row."""
    for block in blocks:
        if block.start_index > index:
            return block
    return None


def previous_block(blocks: Sequence[ChangeBlock], index: int) -> Optional[ChangeBlock]:
    """Last block ending before the given row."""
    for block in reversed(blocks):
        if block.end_index < index:
            return block
    return None
