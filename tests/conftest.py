"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from tasktracker.errors import ProviderError
from tasktracker.store.files import TaskFiles
from tasktracker.tracker import Tracker

_VOCAB = ("parser", "config", "database", "test", "deploy", "docs")


class KeywordEmbedder:
    """Deterministic embedder: one dimension per vocabulary word (occurrence count).

    Explicit ``vectors`` entries take precedence, keyed by the exact text.
    Every call is recorded as ``(text, timeout)``.
    """

    def __init__(self, vectors: dict[str, list[float]] | None = None) -> None:
        self.vectors = dict(vectors or {})
        self.calls: list[tuple[str, float | None]] = []
        self.fail_with: Exception | None = None

    def embed(self, text: str, *, timeout: float | None = None) -> list[float]:
        self.calls.append((text, timeout))
        if self.fail_with is not None:
            raise self.fail_with
        if text in self.vectors:
            return list(self.vectors[text])
        lower = text.lower()
        return [float(lower.count(word)) for word in _VOCAB]


@pytest.fixture
def embedder():
    return KeywordEmbedder()


@pytest.fixture
def task_files(tmp_path):
    """TaskFiles rooted at a fresh directory under tmp_path."""
    return TaskFiles(tmp_path / "tasks")


@pytest.fixture
def tracker(task_files, embedder):
    return Tracker(task_files, embedder)


@pytest.fixture
def provider_error():
    return ProviderError("connection refused")


@pytest.fixture
def make_embedder():
    """Factory for KeywordEmbedders with explicit text → vector overrides."""
    return KeywordEmbedder
