"""File-per-task storage with an active/done directory layout.

Layout under the base directory:

    <base>/<id>.yaml         active task
    <base>/done/<id>.yaml    completed task

Completion status is encoded only by location. TaskFiles is the single owner
of the id → path mapping; nothing else should build task paths.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from tasktracker.errors import (
    NotFoundError,
    StaleCopyError,
    StorageError,
    TrackerError,
    ValidationError,
    rewrap,
)
from tasktracker.store.codec import decode, encode
from tasktracker.store.models import TaskRecord

logger = logging.getLogger(__name__)

DONE_DIR_NAME = "done"
_EXT = ".yaml"


def check_id(task_id: str) -> None:
    """Raise ValidationError unless *task_id* is usable as a file name stem."""
    if not task_id:
        raise ValidationError("empty task id")
    if task_id in (".", "..") or "\x00" in task_id:
        raise ValidationError(f"invalid task id {task_id!r}")
    if "/" in task_id or "\\" in task_id:
        raise ValidationError(f"task id must not contain path separators: {task_id!r}")


class TaskFiles:
    """Persist TaskRecords as YAML files in an active/done directory pair."""

    def __init__(self, base_dir: Path | str) -> None:
        """Create *base_dir* and its ``done`` subdirectory if missing.

        Raises:
            StorageError: If either directory cannot be created.
        """
        self.base_dir = Path(base_dir)
        self.done_dir = self.base_dir / DONE_DIR_NAME
        try:
            self.done_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"make tasks directory {str(self.base_dir)!r}: {exc}") from exc

    def path_for(self, task_id: str, done: bool) -> Path:
        """Return the file path a task with *task_id* occupies when *done*."""
        check_id(task_id)
        return (self.done_dir if done else self.base_dir) / f"{task_id}{_EXT}"

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def write(self, record: TaskRecord, done: bool) -> None:
        """Write *record* to the location implied by *done*.

        Any copy at the opposite location (left by a status change or an
        earlier interrupted relocation) is removed after the new file is in
        place.

        Raises:
            ValidationError: If ``record.id`` is empty or not a valid file stem.
            StorageError: If the new file cannot be written.
            StaleCopyError: If the new file was written but the old copy could
                not be removed. The record is readable at its new location.
        """
        target = self.path_for(record.id, done)
        stale = self.path_for(record.id, not done)

        self._atomic_write(target, encode(record))
        logger.debug("wrote task %r to %s", record.id, target)

        try:
            stale.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            logger.warning("task %r written to %s but stale copy %s remains: %s",
                           record.id, target, stale, exc)
            raise StaleCopyError(
                f"remove stale task file {str(stale)!r}: {exc}", stale
            ) from exc
        logger.debug("relocated task %r (done=%s)", record.id, done)

    def _atomic_write(self, target: Path, text: str) -> None:
        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=target.parent, prefix=f".{target.stem}.", suffix=".tmp"
            )
        except OSError as exc:
            raise StorageError(f"create task file {str(target)!r}: {exc}") from exc

        tmp = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp, target)
        except OSError as exc:
            tmp.unlink(missing_ok=True)
            raise StorageError(f"write task file {str(target)!r}: {exc}") from exc

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def read(self, task_id: str) -> tuple[TaskRecord, bool]:
        """Return ``(record, done)`` for *task_id*.

        If a copy exists at both locations (an interrupted relocation), the
        more recently written one is returned and a warning is logged.

        Raises:
            ValidationError: If *task_id* is invalid, or the stored title or
                description is empty.
            NotFoundError: If no file exists at either location.
            StorageError: On I/O failure or undecodable content.
        """
        check_id(task_id)
        # A concurrent relocation can remove the located file before it is read.
        for _ in range(2):
            path, done = self._locate(task_id)
            try:
                text = path.read_text(encoding="utf-8")
            except FileNotFoundError:
                continue
            except OSError as exc:
                raise StorageError(f"read task file {str(path)!r}: {exc}") from exc
            return self._load(task_id, text), done

        raise NotFoundError(f"task {task_id!r} not found")

    def _locate(self, task_id: str) -> tuple[Path, bool]:
        found: list[tuple[Path, bool]] = []
        for done in (False, True):
            path = self.path_for(task_id, done)
            if self._mtime(path) is not None:
                found.append((path, done))
        if not found:
            raise NotFoundError(f"task {task_id!r} not found")
        if len(found) == 1:
            return found[0]
        return self._newer(task_id, found[0], found[1])

    def _newer(
        self, task_id: str, active: tuple[Path, bool], done: tuple[Path, bool]
    ) -> tuple[Path, bool]:
        # The relocated copy is always written before the stale one is removed,
        # so the stale copy is never the newer file. Equal times keep active.
        active_mtime = self._mtime(active[0])
        done_mtime = self._mtime(done[0])
        if active_mtime is None:
            return done
        if done_mtime is None:
            return active
        winner = done if done_mtime > active_mtime else active
        logger.warning("task %r exists in both active and done locations; "
                       "reporting newer copy %s", task_id, winner[0])
        return winner

    @staticmethod
    def _mtime(path: Path) -> int | None:
        try:
            return path.stat().st_mtime_ns
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError(f"stat task file {str(path)!r}: {exc}") from exc

    def _load(self, task_id: str, text: str) -> TaskRecord:
        record = decode(text)

        if record.id != task_id:
            if record.id:
                logger.warning("task file for %r carries id %r; using file name", task_id, record.id)
            record.id = task_id

        problems = []
        if not record.title:
            problems.append("empty task title")
        if not record.description:
            problems.append("empty task description")
        if problems:
            raise ValidationError(f"task {task_id!r}: " + "; ".join(problems))

        return record

    def list_all(self) -> list[tuple[TaskRecord, bool]]:
        """Load every stored task as ``(record, done)``.

        Active files are returned before done files, each directory in name
        order. Files without the ``.yaml`` extension are ignored. If an id is
        present in both locations only the more recently written copy is
        returned and a warning is logged.

        Raises:
            TrackerError: The first read failure, of the same kind as raised
                by read(), with the offending id in its message.
        """
        candidates: dict[str, tuple[Path, bool]] = {}
        for done, directory in ((False, self.base_dir), (True, self.done_dir)):
            for path in self._task_files(directory):
                task_id = path.stem
                active = candidates.get(task_id)
                if active is None:
                    candidates[task_id] = (path, done)
                else:
                    candidates[task_id] = self._newer(task_id, active, (path, done))

        ordered = sorted(candidates.items(), key=lambda c: (c[1][1], c[1][0].name))
        results: list[tuple[TaskRecord, bool]] = []
        for task_id, (path, done) in ordered:
            try:
                text = path.read_text(encoding="utf-8")
                record = self._load(task_id, text)
            except OSError as exc:
                raise StorageError(f"get task by id {task_id!r}: {exc}") from exc
            except TrackerError as exc:
                raise rewrap(exc, f"get task by id {task_id!r}") from exc
            results.append((record, done))

        return results

    def _task_files(self, directory: Path) -> list[Path]:
        try:
            entries = sorted(directory.iterdir())
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise StorageError(f"walk dir {str(directory)!r}: {exc}") from exc
        return [p for p in entries if p.suffix == _EXT and p.is_file()]

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete(self, task_id: str) -> bool:
        """Remove *task_id* from both locations.

        Returns:
            True if at least one file was removed, False if none existed.

        Raises:
            ValidationError: If *task_id* is invalid.
            StorageError: On any I/O failure other than a missing file.
        """
        removed = False
        for done in (False, True):
            path = self.path_for(task_id, done)
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as exc:
                raise StorageError(f"remove file {str(path)!r}: {exc}") from exc
            removed = True
            logger.debug("removed task file %s", path)
        return removed
