from __future__ import annotations

import pytest

from diffalyze.core.diff.moves import detect_moved_lines, move_threshold
from diffalyze.core.diff.normalizer import CompareOptions, LineNormalizer


def _identity(line: str) -> str:
    return line


@pytest.mark.parametrize(
    "count, expected",
    [(0, 2), (3, 2), (29, 2), (30, 3), (100, 10), (1234, 123)],
)
def test_move_threshold(count, expected):
    assert move_threshold(count) == expected


def test_line_moved_far_is_flagged():
    original = list("abcdefgh")
    changed = list("bcdefgha")
    moves = detect_moved_lines(original, changed, _identity)
    assert moves.original == {0}
    assert moves.changed == {7}
    assert [(p.original_index, p.changed_index, p.content) for p in moves.pairs] == [(0, 7, "a")]


def test_displacement_equal_to_threshold_is_not_a_move():
    # "z" moves by exactly 2, which does not exceed the threshold of 2
    moves = detect_moved_lines(["x", "y", "z"], ["z", "x", "y"], _identity)
    assert len(moves) == 0


def test_repeated_lines_never_flagged():
    original = ["dup", "a", "b", "c", "dup"]
    changed = ["a", "b", "c", "dup", "x", "y", "z", "dup"]
    moves = detect_moved_lines(original, changed, _identity)
    assert len(moves) == 0


def test_line_missing_on_one_side_not_flagged():
    moves = detect_moved_lines(["gone", "a", "b", "c"], ["a", "b", "c", "new"], _identity)
    assert len(moves) == 0


def test_uses_normalized_keys_and_raw_content():
    normalize = LineNormalizer(CompareOptions(ignore_spaces_case=True))
    original = ["  Header  ", "1", "2", "3", "4"]
    changed = ["1", "2", "3", "4", "header"]
    moves = detect_moved_lines(original, changed, normalize)
    assert moves.original == {0}
    assert moves.changed == {4}
    assert moves.pairs[0].content == "  Header  "
