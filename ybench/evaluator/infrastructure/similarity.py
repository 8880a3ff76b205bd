"""Change entropy and normalized edit-distance similarity."""

import math
from collections.abc import Sequence

# Above this many DP cells, similarity is computed over lines instead of characters.
_MAX_CHAR_CELLS = 4_000_000


def change_entropy(changes: Sequence[int]) -> float:
    """Shannon entropy (bits) of the distribution of changed lines across files.

    Zero when nothing changed or when all changes fall in a single file; grows
    as the same volume of change is spread over more files.
    """
    total = sum(changes)
    if total <= 0:
        return 0.0
    entropy = 0.0
    for count in changes:
        if count > 0:
            proportion = count / total
            entropy -= proportion * math.log2(proportion)
    return entropy


def levenshtein_distance(a: Sequence[object], b: Sequence[object]) -> int:
    """Minimum number of single-element insertions, deletions, and substitutions."""
    # Common prefixes and suffixes never contribute to the distance.
    start = 0
    while start < len(a) and start < len(b) and a[start] == b[start]:
        start += 1
    end_a, end_b = len(a), len(b)
    while end_a > start and end_b > start and a[end_a - 1] == b[end_b - 1]:
        end_a -= 1
        end_b -= 1
    a, b = a[start:end_a], b[start:end_b]

    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, item_a in enumerate(a, start=1):
        current = [i]
        for j, item_b in enumerate(b, start=1):
            cost = 0 if item_a == item_b else 1
            current.append(
                min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost)
            )
        previous = current
    return previous[-1]


def text_similarity(a: str, b: str) -> float:
    """1 - distance / max length, in [0, 1]; identical texts score exactly 1.0.

    Character-level for ordinary files. Very large pairs are compared line by
    line so that the quadratic edit distance stays tractable.
    """
    if a == b:
        return 1.0
    if len(a) * len(b) <= _MAX_CHAR_CELLS:
        left: Sequence[object] = a
        right: Sequence[object] = b
    else:
        left = a.splitlines()
        right = b.splitlines()
    longest = max(len(left), len(right))
    if longest == 0:
        return 1.0
    similarity = 1.0 - levenshtein_distance(left, right) / longest
    return max(0.0, min(1.0, similarity))
