"""
Degraded positional comparison.

Used when the exact engine is unavailable, too slow, or the input is too
large. Row i of the original is compared with row i of the changed text;
there is no edit distance search and no move detection, so a single
inserted line makes every following row look modified.
"""

from __future__ import annotations

from typing import Optional, Sequence

from diffalyze.core.diff.normalizer import CompareOptions, LineNormalizer
from diffalyze.core.models import DiffEntry, DiffResult, EntryType


def positional_diff(
    original_lines: Sequence[str],
    changed_lines: Sequence[str],
    options: Optional[CompareOptions] = None
) -> DiffResult:
    """Compare two line sequences position by position."""
    normalize = LineNormalizer(options)
    original_rows: list[DiffEntry] = []
    changed_rows: list[DiffEntry] = []

    for i in range(max(len(original_lines), len(changed_lines))):
        if i >= len(original_lines):
            original_rows.append(DiffEntry.placeholder())
            changed_rows.append(DiffEntry(EntryType.ADDED, changed_lines[i], i + 1))
            continue
        if i >= len(changed_lines):
            original_rows.append(DiffEntry(EntryType.REMOVED, original_lines[i], i + 1))
            changed_rows.append(DiffEntry.placeholder())
            continue

        left = original_lines[i]
        right = changed_lines[i]
        if normalize(left) == normalize(right):
            entry_type = EntryType.UNCHANGED
        else:
            entry_type = EntryType.MODIFIED
        original_rows.append(DiffEntry(entry_type, left, i + 1))
        changed_rows.append(DiffEntry(entry_type, right, i + 1))

    return DiffResult.from_rows(original_rows, changed_rows)
