"""
Moved line detection.

A heuristic overlay computed from the raw line sets, independent of the
edit script. Only keys that occur exactly once on each side are considered;
ambiguous correspondences are never guessed.
"""

from __future__ import annotations

from typing import Callable, Sequence

from diffalyze.core.models import MoveIndex, MovedPair


MIN_MOVE_DISTANCE = 2
MOVE_DISTANCE_RATIO = 0.1


def move_threshold(original_count: int) -> int:
    """Displacement a line must exceed to count as moved."""
    return max(MIN_MOVE_DISTANCE, int(MOVE_DISTANCE_RATIO * original_count))


def _index_by_key(
    lines: Sequence[str],
    key: Callable[[str], str]
) -> dict[str, list[int]]:
    positions: dict[str, list[int]] = {}
    for index, line in enumerate(lines):
        positions.setdefault(key(line), []).append(index)
    return positions


def detect_moved_lines(
    original_lines: Sequence[str],
    changed_lines: Sequence[str],
    key: Callable[[str], str]
) -> MoveIndex:
    """
    Flag unique lines that reappear at a distant position.

    Args:
        original_lines: Raw original lines
        changed_lines: Raw changed lines
        key: Normalizer used to compare lines

    Returns:
        MoveIndex with pairs ordered by first appearance in the original
    """
    moves = MoveIndex()
    original_positions = _index_by_key(original_lines, key)
    changed_positions = _index_by_key(changed_lines, key)
    threshold = move_threshold(len(original_lines))

    for normalized, original_indices in original_positions.items():
        changed_indices = changed_positions.get(normalized)
        if changed_indices is None:
            continue
        if len(original_indices) != 1 or len(changed_indices) != 1:
            continue

        original_index = original_indices[0]
        pair = MovedPair(original_index, changed_indices[0], original_lines[original_index])
        if pair.distance > threshold:
            moves.add(pair)

    return moves
