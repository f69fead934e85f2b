from __future__ import annotations

from typing import Sequence

import pytest

from diffalyze.core.diff.text_diff import compute_diff
from diffalyze.core.models import DiffResult, EditOp, EditOpKind, EntryType


@pytest.fixture
def modified_diff() -> DiffResult:
    """Three rows, the middle one modified."""
    return compute_diff(["alpha", "beta", "gamma"], ["alpha", "BETA", "gamma"])


@pytest.fixture
def many_modified_diff() -> DiffResult:
    """Twenty five modified rows and nothing else."""
    return compute_diff([f"o{i}" for i in range(25)], [f"c{i}" for i in range(25)])


def apply_script(script: Sequence[EditOp], a: Sequence[str], b: Sequence[str]) -> tuple[list[str], list[str]]:
    """Rebuild both sequences from an edit script, checking every EQUAL on the way."""
    rebuilt_a: list[str] = []
    rebuilt_b: list[str] = []
    for op in script:
        if op.kind is EditOpKind.EQUAL:
            assert a[op.original_index] == b[op.changed_index]
            rebuilt_a.append(a[op.original_index])
            rebuilt_b.append(b[op.changed_index])
        elif op.kind is EditOpKind.DELETE:
            rebuilt_a.append(a[op.original_index])
        else:
            rebuilt_b.append(b[op.changed_index])
    return rebuilt_a, rebuilt_b


def row_types(diff: DiffResult) -> list[tuple[EntryType, EntryType]]:
    return [(left.entry_type, right.entry_type) for _, left, right in diff.iter_rows()]
