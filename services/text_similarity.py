from __future__ import annotations

from typing import Any, List


def normalize_option(s: Any) -> str:
    """Lower-case and trim; the comparison form for both input and options."""
    if s is None:
        return ""
    return str(s).lower().strip()


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance over code points (unit cost insert/delete/substitute).

    Full matrix, rows = len(b) + 1, cols = len(a) + 1.
    """
    rows = len(b) + 1
    cols = len(a) + 1

    matrix: List[List[int]] = [[0] * cols for _ in range(rows)]
    for i in range(rows):
        matrix[i][0] = i
    for j in range(cols):
        matrix[0][j] = j

    for i in range(1, rows):
        cb = b[i - 1]
        for j in range(1, cols):
            if cb == a[j - 1]:
                matrix[i][j] = matrix[i - 1][j - 1]
            else:
                matrix[i][j] = min(
                    matrix[i - 1][j - 1] + 1,  # substitution
                    matrix[i][j - 1] + 1,  # insertion
                    matrix[i - 1][j] + 1,  # deletion
                )

    return matrix[rows - 1][cols - 1]


def similarity(a: str, b: str) -> float:
    """(maxLen - distance) / maxLen, in [0, 1]; two empty strings are identical."""
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 1.0
    return (max_len - edit_distance(a, b)) / max_len
