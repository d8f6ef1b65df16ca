"""tasktracker storage layer — YAML record codec and the active/done file layout."""

from tasktracker.store.codec import decode, encode
from tasktracker.store.files import DONE_DIR_NAME, TaskFiles
from tasktracker.store.models import TaskRecord

__all__ = [
    "DONE_DIR_NAME",
    "TaskFiles",
    "TaskRecord",
    "decode",
    "encode",
]
