"""Edit distance primitive for the mimic engine.

Every similarity test in the engine (trigger matching, greeting detection,
transcript mining) is expressed as a Levenshtein distance compared against a
threshold scaled by the length of the text involved.
"""

from __future__ import annotations

from typing import Optional, Sequence


def distance(a: Optional[Sequence[str]], b: Optional[Sequence[str]]) -> int:
    """Return the Levenshtein distance between *a* and *b*.

    Only two rows of the cost matrix are kept, sized after the shorter input.

    Args:
        a: First character sequence.
        b: Second character sequence.

    Returns:
        Minimum number of single-character insertions, deletions and
        substitutions turning *a* into *b*.

    Raises:
        ValueError: If either sequence is ``None``.
    """
    if a is None or b is None:
        raise ValueError("sequences must not be None")

    n, m = len(a), len(b)
    if n == 0:
        return m
    if m == 0:
        return n

    # keep the rows as short as possible
    if n > m:
        a, b = b, a
        n, m = m, n

    previous = list(range(n + 1))
    current = [0] * (n + 1)

    for j in range(1, m + 1):
        b_j = b[j - 1]
        current[0] = j
        for i in range(1, n + 1):
            cost = 0 if a[i - 1] == b_j else 1
            current[i] = min(current[i - 1] + 1, previous[i] + 1, previous[i - 1] + cost)
        previous, current = current, previous

    return previous[n]
