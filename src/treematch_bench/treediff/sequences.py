"""Sequence alignment helpers."""

from __future__ import annotations

from typing import Callable, Sequence, TypeVar

T = TypeVar("T")
U = TypeVar("U")


def longest_common_subsequence(
    xs: Sequence[T], ys: Sequence[U], eq: Callable[[T, U], bool],
) -> list[tuple[T, U]]:
    """Classic O(n*m) LCS; returns the aligned pairs in sequence order."""
    n, m = len(xs), len(ys)
    if n == 0 or m == 0:
        return []
    # lengths[i][j] = LCS length of xs[i:] and ys[j:]
    lengths = [[0] * (m + 1) for _ in range(n + 1)]
    for i in range(n - 1, -1, -1):
        row, below = lengths[i], lengths[i + 1]
        for j in range(m - 1, -1, -1):
            if eq(xs[i], ys[j]):
                row[j] = below[j + 1] + 1
            else:
                row[j] = max(below[j], row[j + 1])

    pairs: list[tuple[T, U]] = []
    i = j = 0
    while i < n and j < m:
        if eq(xs[i], ys[j]):
            pairs.append((xs[i], ys[j]))
            i += 1
            j += 1
        elif lengths[i + 1][j] >= lengths[i][j + 1]:
            i += 1
        else:
            j += 1
    return pairs
