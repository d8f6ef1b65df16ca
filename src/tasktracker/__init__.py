"""tasktracker — file-backed task store with embedding-based semantic search."""

from tasktracker.embedding import Embedder, LiteLLMEmbedder
from tasktracker.errors import (
    CodecError,
    DimensionMismatchError,
    NotFoundError,
    ProviderError,
    StaleCopyError,
    StorageError,
    TrackerError,
    ValidationError,
)
from tasktracker.models import SearchResult, Task
from tasktracker.tracker import Tracker

__all__ = [
    "CodecError",
    "DimensionMismatchError",
    "Embedder",
    "LiteLLMEmbedder",
    "NotFoundError",
    "ProviderError",
    "SearchResult",
    "StaleCopyError",
    "StorageError",
    "Task",
    "Tracker",
    "TrackerError",
    "ValidationError",
]
