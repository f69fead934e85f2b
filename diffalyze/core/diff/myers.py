"""
Myers O(ND) shortest edit script.

Computes the minimal sequence of equal/delete/insert operations that turns
one key sequence into another. A changed line is a delete followed by an
insert; there is no substitution primitive.
"""

from __future__ import annotations

from typing import Callable, Optional, Sequence

from diffalyze.core.models import EditOp, EditOpKind


class SearchCancelled(Exception):
    """Raised when the caller cancels a running search."""
    pass


def myers_diff(
    a: Sequence[str],
    b: Sequence[str],
    cancel_check: Optional[Callable[[], bool]] = None
) -> list[EditOp]:
    """
    Compute the shortest edit script from `a` to `b`.

    Args:
        a: Original keys
        b: Changed keys
        cancel_check: Polled once per edit distance round; the search
            raises SearchCancelled when it returns True

    Returns:
        Edit script ordered from the start of both sequences
    """
    n = len(a)
    m = len(b)

    if n == 0:
        return [EditOp.insert(j) for j in range(m)]
    if m == 0:
        return [EditOp.delete(i) for i in range(n)]

    max_d = n + m
    offset = max_d + 1
    # v[offset + k] holds the furthest x reached on diagonal k
    v = [0] * (2 * max_d + 3)
    trace: list[list[int]] = []

    for d in range(max_d + 1):
        if cancel_check is not None and cancel_check():
            raise SearchCancelled(f"Search cancelled at edit distance {d}")

        # Frontier before this round, diagonals -d..d
        trace.append(v[offset - d:offset + d + 1])

        for k in range(-d, d + 1, 2):
            if k == -d or (k != d and v[offset + k - 1] < v[offset + k + 1]):
                x = v[offset + k + 1]
            else:
                x = v[offset + k - 1] + 1
            y = x - k

            while x < n and y < m and a[x] == b[y]:
                x += 1
                y += 1

            v[offset + k] = x

            if x >= n and y >= m:
                return _backtrack(trace, d, k, n, m)

    return []


def _backtrack(
    trace: list[list[int]],
    final_d: int,
    k: int,
    n: int,
    m: int
) -> list[EditOp]:
    """Rebuild the edit script from the recorded frontiers."""
    script: list[EditOp] = []
    x = n
    y = m

    for d in range(final_d, 0, -1):
        prev_v = trace[d]

        if k == -d or (k != d and prev_v[k - 1 + d] < prev_v[k + 1 + d]):
            prev_k = k + 1
        else:
            prev_k = k - 1

        prev_x = prev_v[prev_k + d]
        prev_y = prev_x - prev_k

        while x > prev_x and y > prev_y:
            x -= 1
            y -= 1
            script.append(EditOp.equal(x, y))

        if x > prev_x:
            x -= 1
            script.append(EditOp.delete(x))
        elif y > prev_y:
            y -= 1
            script.append(EditOp.insert(y))

        k = prev_k

    while x > 0 and y > 0:
        x -= 1
        y -= 1
        script.append(EditOp.equal(x, y))

    script.reverse()
    return script


def edit_distance(script: Sequence[EditOp]) -> int:
    """Number of non-equal operations in an edit script."""
    return sum(1 for op in script if op.kind is not EditOpKind.EQUAL)
