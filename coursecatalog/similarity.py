"""
Name similarity.

Both fuzzy tiers of the instructor resolver go through the same
interface: a strategy scores two names between 0.0 and 1.0, and a
candidate only counts as a match when its score is strictly greater
than MATCH_THRESHOLD.
"""

from __future__ import annotations

from collections import Counter
from typing import Callable, Iterable, Optional, Protocol, Tuple, TypeVar


MATCH_THRESHOLD = 0.70

T = TypeVar("T")


class SimilarityStrategy(Protocol):
    def score(self, a: str, b: str) -> float: ...


class DiceSimilarity:
    """
    Dice coefficient over character bigrams (whitespace ignored).

    Identical strings score 1.0; strings shorter than two characters
    score 0.0 against anything else.
    """

    def score(self, a: str, b: str) -> float:
        first = "".join(a.split())
        second = "".join(b.split())

        if first == second:
            return 1.0
        if len(first) < 2 or len(second) < 2:
            return 0.0

        bigrams = Counter(first[i : i + 2] for i in range(len(first) - 1))
        intersection = 0
        for i in range(len(second) - 1):
            pair = second[i : i + 2]
            if bigrams[pair] > 0:
                bigrams[pair] -= 1
                intersection += 1

        return (2.0 * intersection) / (len(first) + len(second) - 2)


def is_match(score: float, threshold: float = MATCH_THRESHOLD) -> bool:
    return score > threshold


def best_match(
    query: str,
    candidates: Iterable[T],
    key: Callable[[T], str],
    strategy: Optional[SimilarityStrategy] = None,
    threshold: float = MATCH_THRESHOLD,
) -> Optional[Tuple[T, float]]:
    """
    Return the highest scoring candidate above the threshold.

    Ties keep the candidate that came first. Returns None if nothing
    scores above the threshold.
    """
    strategy = strategy or DiceSimilarity()

    best: Optional[Tuple[T, float]] = None
    for candidate in candidates:
        score = strategy.score(query, key(candidate))
        if not is_match(score, threshold):
            continue
        if best is None or score > best[1]:
            best = (candidate, score)

    return best
