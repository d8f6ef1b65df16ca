"""Exhaustive Euclidean ranking of tasks against a query vector.

Distances are normalised against the farthest task in the corpus and inverted:

  score(t) = 1 - dist(q, t) / max_dist

so the farthest task always scores 0 and an exact match scores 1. Scores
depend on the corpus snapshot and must not be compared across searches.
A corpus whose tasks all sit at distance 0 cannot be normalised and yields
no results.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from tasktracker.errors import DimensionMismatchError, ValidationError
from tasktracker.models import SearchResult, Task

DEFAULT_THRESHOLD = 0.01
DEFAULT_LIMIT = 10


def euclidean_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Return the Euclidean distance between *a* and *b*.

    Raises:
        DimensionMismatchError: If the vectors differ in length.
    """
    if len(a) != len(b):
        raise DimensionMismatchError(
            f"vectors must be of the same length (got {len(a)} and {len(b)})"
        )
    return math.dist(a, b)


def check_params(threshold: float, limit: int) -> None:
    """Raise ValidationError unless ``0 <= threshold < 1`` and ``limit >= 0``."""
    if not 0.0 <= threshold < 1.0:
        raise ValidationError(f"search threshold must be in [0, 1), got {threshold!r}")
    if limit < 0:
        raise ValidationError(f"search limit must not be negative, got {limit!r}")


def rank(
    query: Sequence[float],
    corpus: Sequence[tuple[Task, Sequence[float]]],
    threshold: float = DEFAULT_THRESHOLD,
    limit: int = DEFAULT_LIMIT,
) -> list[SearchResult]:
    """Score every task in *corpus* against *query*, best first.

    Args:
        query: Query embedding.
        corpus: ``(task, vector)`` pairs; iteration order breaks score ties.
        threshold: Results scoring at or below this are dropped.
        limit: Maximum number of results.

    Returns:
        At most *limit* results with ``threshold < score <= 1``, sorted by
        score descending.

    Raises:
        DimensionMismatchError: If any vector's length differs from *query*'s.
        ValidationError: If *threshold* is outside [0, 1) or *limit* is negative.
    """
    check_params(threshold, limit)
    distances: list[float] = []
    for task, vector in corpus:
        try:
            distances.append(euclidean_distance(query, vector))
        except DimensionMismatchError as exc:
            raise DimensionMismatchError(f"calc vectors distance {task.id!r}: {exc}") from exc

    max_dist = max(distances, default=0.0)
    if max_dist == 0:
        return []

    results: list[SearchResult] = []
    for (task, _), dist in zip(corpus, distances):
        score = 1.0 - dist / max_dist
        if score > threshold:
            results.append(SearchResult(task=task, score=score))

    # list.sort is stable — equal scores keep corpus order
    results.sort(key=lambda r: r.score, reverse=True)
    return results[:limit]
