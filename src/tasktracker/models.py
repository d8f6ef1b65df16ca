"""Tracker-facing domain models."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Task:
    title: str
    description: str
    done: bool = False
    id: str = ""  # filled in on read; ignored by Tracker.set, which takes the id separately

    @property
    def embed_text(self) -> str:
        """Markdown rendering of the task that is sent to the embedder."""
        return f"# {self.title}\n\n{self.description}"


@dataclass
class SearchResult:
    """A task matched by a search, with its corpus-relative score.

    Scores lie in [0, 1] and are only comparable within one search call.
    """

    task: Task
    score: float
