"""tasktracker search — corpus-relative Euclidean ranking."""

from tasktracker.search.ranking import (
    DEFAULT_LIMIT,
    DEFAULT_THRESHOLD,
    check_params,
    euclidean_distance,
    rank,
)

__all__ = ["DEFAULT_LIMIT", "DEFAULT_THRESHOLD", "check_params", "euclidean_distance", "rank"]
