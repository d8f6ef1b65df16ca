"""Tracker — the task store contract used by the orchestration layer.

Operations: set, get, delete, list, search.

Every failure is re-raised as the same error kind with the operation and
task id prepended, so callers can still tell NotFoundError and
ValidationError apart from StorageError and ProviderError.

Concurrency: set and delete hold a per-id lock for the whole
write-new / remove-stale sequence, so concurrent status flips on one id
cannot interleave within a process. list and search re-read the directory
on every call. Only one process should own a task directory.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from tasktracker.config import TrackerConfig
from tasktracker.embedding import Embedder, LiteLLMEmbedder
from tasktracker.errors import ProviderError, TrackerError, ValidationError, rewrap
from tasktracker.models import SearchResult, Task
from tasktracker.search.ranking import DEFAULT_LIMIT, DEFAULT_THRESHOLD, check_params, rank
from tasktracker.store.files import TaskFiles, check_id
from tasktracker.store.models import TaskRecord

logger = logging.getLogger(__name__)


class Tracker:
    """File-backed task store with embedding search.

    Args:
        files: Storage handle owning the task directory.
        embedder: Embedding provider used for task content and queries.
        threshold: Search results scoring at or below this are dropped.
        limit: Maximum number of search results.

    Raises:
        ValidationError: If *threshold* is outside [0, 1) or *limit* is negative.
    """

    def __init__(
        self,
        files: TaskFiles,
        embedder: Embedder,
        *,
        threshold: float = DEFAULT_THRESHOLD,
        limit: int = DEFAULT_LIMIT,
    ) -> None:
        check_params(threshold, limit)
        self._files = files
        self._embedder = embedder
        self.threshold = threshold
        self.limit = limit
        self._locks: dict[str, _IdLock] = {}
        self._locks_guard = threading.Lock()

    @classmethod
    def from_config(
        cls,
        cfg: TrackerConfig,
        *,
        embedder: Embedder | None = None,
    ) -> Tracker:
        """Build a Tracker from a loaded config (LiteLLM embedder unless given)."""
        if embedder is None:
            embedder = LiteLLMEmbedder(
                cfg.embedding.model,
                timeout=cfg.embedding.timeout,
                num_retries=cfg.embedding.num_retries,
                api_base=cfg.embedding.api_base,
            )
        return cls(
            TaskFiles(Path(cfg.storage.dir)),
            embedder,
            threshold=cfg.search.threshold,
            limit=cfg.search.limit,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def set(self, task_id: str, task: Task, *, timeout: float | None = None) -> None:
        """Create or update *task_id*, relocating it if its done status changed.

        Args:
            task_id: Storage key; ``task.id`` is ignored.
            task: Title, description and done status to store.
            timeout: Embedding call timeout in seconds (embedder default if None).

        Raises:
            ValidationError: Invalid id, or empty title or description.
            ProviderError: The embedding call failed or timed out.
            StorageError: The file could not be written.
            StaleCopyError: The task was written but its old file remains.
        """
        context = f"set task {task_id!r}"
        try:
            check_id(task_id)
            if not task.title:
                raise ValidationError("empty task title")
            if not task.description:
                raise ValidationError("empty task description")

            vector = self._embed(task.embed_text, timeout, "get task embedding")
            record = TaskRecord(
                id=task_id,
                title=task.title,
                description=task.description,
                vector=vector,
            )
            with self._locked(task_id):
                self._files.write(record, task.done)
        except TrackerError as exc:
            raise rewrap(exc, context) from exc

    def get(self, task_id: str) -> Task:
        """Return the task stored under *task_id*.

        Raises:
            NotFoundError: No such task.
            ValidationError: Invalid id or corrupt stored content.
            StorageError: The file could not be read or decoded.
        """
        try:
            record, done = self._files.read(task_id)
        except TrackerError as exc:
            raise rewrap(exc, f"get task {task_id!r}") from exc
        return _to_task(record, done)

    def delete(self, task_id: str) -> None:
        """Remove *task_id*; deleting a missing task is not an error."""
        try:
            check_id(task_id)
            with self._locked(task_id):
                removed = self._files.delete(task_id)
        except TrackerError as exc:
            raise rewrap(exc, f"delete task {task_id!r}") from exc
        if not removed:
            logger.debug("delete task %r: nothing to remove", task_id)

    def list(self, done: bool | None = None) -> list[Task]:
        """Return stored tasks ordered by id.

        Args:
            done: True for completed tasks only, False for active only,
                None for all.
        """
        try:
            entries = self._files.list_all()
        except TrackerError as exc:
            raise rewrap(exc, "list tasks") from exc
        tasks = [_to_task(record, is_done) for record, is_done in entries
                 if done is None or is_done == done]
        tasks.sort(key=lambda t: t.id)
        return tasks

    def search(self, query: str, *, timeout: float | None = None) -> list[SearchResult]:
        """Return tasks most similar to *query*, best first.

        Scores are relative to the current corpus and are not comparable
        between calls.

        Raises:
            ValidationError: Empty query, or a stored vector whose length
                differs from the query embedding (DimensionMismatchError).
            ProviderError: The embedding call failed or timed out.
            StorageError: A task file could not be read.
        """
        try:
            if not query.strip():
                raise ValidationError("empty search query")
            vector = self._embed(query, timeout, "get query embedding")
            entries = self._files.list_all()
            corpus = [(_to_task(record, done), record.vector) for record, done in entries]
            results = rank(vector, corpus, threshold=self.threshold, limit=self.limit)
        except TrackerError as exc:
            raise rewrap(exc, "search tasks") from exc

        logger.debug("search %r: %d candidates, %d results", query, len(corpus), len(results))
        return results

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _embed(self, text: str, timeout: float | None, what: str) -> list[float]:
        try:
            return self._embedder.embed(text, timeout=timeout)
        except ProviderError as exc:
            raise ProviderError(f"{what}: {exc}") from exc
        except TrackerError:
            raise
        except Exception as exc:
            # Third-party embedders may raise anything; normalise to ProviderError.
            raise ProviderError(f"{what}: {exc}") from exc

    @contextmanager
    def _locked(self, task_id: str) -> Iterator[None]:
        """Hold the per-id lock; the entry is dropped once no caller uses it."""
        with self._locks_guard:
            entry = self._locks.get(task_id)
            if entry is None:
                entry = self._locks[task_id] = _IdLock()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._locks_guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[task_id]


class _IdLock:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


def _to_task(record: TaskRecord, done: bool) -> Task:
    return Task(
        title=record.title,
        description=record.description,
        done=done,
        id=record.id,
    )
