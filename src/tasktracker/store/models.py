"""On-disk record model for the task store."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class TaskRecord:
    """A task as persisted in a YAML file.

    Completion status is deliberately absent: it is encoded only by which
    directory holds the file (see TaskFiles).
    """

    id: str
    title: str
    description: str
    vector: list[float] = field(default_factory=list)
