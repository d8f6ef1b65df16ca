"""Tests for the active/done file layout (TaskFiles)."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from tasktracker.errors import (
    CodecError,
    NotFoundError,
    StaleCopyError,
    StorageError,
    ValidationError,
)
from tasktracker.store.files import DONE_DIR_NAME, TaskFiles, check_id
from tasktracker.store.models import TaskRecord


def _rec(id="t1", title="Title", description="Desc", vector=None):
    return TaskRecord(id=id, title=title, description=description, vector=vector or [1.0, 2.0])


# ------------------------------------------------------------------
# Initialize
# ------------------------------------------------------------------

def test_init_creates_base_and_done_dirs(tmp_path):
    files = TaskFiles(tmp_path / "a" / "b")
    assert (tmp_path / "a" / "b").is_dir()
    assert (tmp_path / "a" / "b" / DONE_DIR_NAME).is_dir()
    assert files.done_dir == tmp_path / "a" / "b" / "done"


def test_init_existing_dir_is_fine(tmp_path):
    TaskFiles(tmp_path)
    TaskFiles(tmp_path)  # should not raise


def test_init_fails_when_base_is_a_file(tmp_path):
    blocker = tmp_path / "tasks"
    blocker.write_text("not a dir")
    with pytest.raises(StorageError, match="make tasks directory"):
        TaskFiles(blocker)


# ------------------------------------------------------------------
# Id validation
# ------------------------------------------------------------------

@pytest.mark.parametrize("bad", ["", ".", "..", "a/b", "a\\b", "x\x00y"])
def test_check_id_rejects(bad):
    with pytest.raises(ValidationError):
        check_id(bad)


def test_check_id_accepts_dotted_id():
    check_id("feature.v2-1")  # should not raise


def test_empty_id_rejected_before_io(task_files):
    with pytest.raises(ValidationError, match="empty task id"):
        task_files.read("")
    with pytest.raises(ValidationError):
        task_files.delete("")
    with pytest.raises(ValidationError):
        task_files.write(_rec(id=""), done=False)
    assert list(task_files.base_dir.iterdir()) == [task_files.done_dir]


# ------------------------------------------------------------------
# Write / read
# ------------------------------------------------------------------

def test_write_active_path(task_files):
    task_files.write(_rec(), done=False)
    assert (task_files.base_dir / "t1.yaml").is_file()
    assert not (task_files.done_dir / "t1.yaml").exists()


def test_write_done_path(task_files):
    task_files.write(_rec(), done=True)
    assert (task_files.done_dir / "t1.yaml").is_file()
    assert not (task_files.base_dir / "t1.yaml").exists()


def test_write_leaves_no_temp_files(task_files):
    task_files.write(_rec(), done=False)
    task_files.write(_rec(title="Again"), done=False)
    names = sorted(p.name for p in task_files.base_dir.iterdir())
    assert names == ["done", "t1.yaml"]


def test_read_round_trip(task_files):
    task_files.write(_rec(vector=[0.25, 0.5]), done=False)
    record, done = task_files.read("t1")
    assert record == _rec(vector=[0.25, 0.5])
    assert done is False


def test_read_done_location(task_files):
    task_files.write(_rec(), done=True)
    _, done = task_files.read("t1")
    assert done is True


def test_read_not_found(task_files):
    with pytest.raises(NotFoundError, match="'missing'"):
        task_files.read("missing")


def _age(path, seconds):
    """Push *path*'s mtime *seconds* into the past."""
    st = path.stat()
    old = st.st_mtime_ns - seconds * 1_000_000_000
    os.utime(path, ns=(old, old))


@pytest.mark.parametrize("newer_done", [False, True])
def test_read_duplicate_returns_newer_copy(task_files, newer_done, caplog):
    (task_files.base_dir / "t1.yaml").write_text("id: t1\ntitle: Active\ndescription: D\nvector: [1]\n")
    (task_files.done_dir / "t1.yaml").write_text("id: t1\ntitle: Done\ndescription: D\nvector: [1]\n")
    older = task_files.path_for("t1", not newer_done)
    _age(older, 60)

    with caplog.at_level("WARNING", logger="tasktracker.store.files"):
        record, done = task_files.read("t1")

    assert done is newer_done
    assert record.title == ("Done" if newer_done else "Active")
    assert "both active and done" in caplog.text


def test_read_duplicate_with_equal_times_returns_active(task_files):
    active = task_files.base_dir / "t1.yaml"
    done = task_files.done_dir / "t1.yaml"
    active.write_text("id: t1\ntitle: Active\ndescription: D\nvector: [1]\n")
    done.write_text("id: t1\ntitle: Done\ndescription: D\nvector: [1]\n")
    os.utime(active, ns=(10**18, 10**18))
    os.utime(done, ns=(10**18, 10**18))
    assert task_files.read("t1")[1] is False


def test_read_done_field_in_file_is_ignored(task_files):
    (task_files.base_dir / "t1.yaml").write_text(
        "id: t1\ntitle: T\ndescription: D\nvector: [1]\ndone: true\n"
    )
    _, done = task_files.read("t1")
    assert done is False


def test_read_empty_title_and_description_reported_together(task_files):
    (task_files.base_dir / "t1.yaml").write_text("id: t1\ntitle: ''\nvector: [1]\n")
    with pytest.raises(ValidationError) as exc_info:
        task_files.read("t1")
    msg = str(exc_info.value)
    assert "empty task title" in msg
    assert "empty task description" in msg


def test_read_corrupt_yaml(task_files):
    (task_files.base_dir / "t1.yaml").write_text("title: [oops\n")
    with pytest.raises(CodecError):
        task_files.read("t1")


def test_read_uses_file_name_as_id(task_files):
    (task_files.base_dir / "t1.yaml").write_text("id: other\ntitle: T\ndescription: D\nvector: [1]\n")
    record, _ = task_files.read("t1")
    assert record.id == "t1"


# ------------------------------------------------------------------
# Status transitions
# ------------------------------------------------------------------

def test_write_relocates_active_to_done(task_files):
    task_files.write(_rec(), done=False)
    task_files.write(_rec(), done=True)
    assert not (task_files.base_dir / "t1.yaml").exists()
    assert (task_files.done_dir / "t1.yaml").exists()
    assert task_files.read("t1")[1] is True


def test_write_relocates_done_to_active(task_files):
    task_files.write(_rec(), done=True)
    task_files.write(_rec(), done=False)
    assert (task_files.base_dir / "t1.yaml").exists()
    assert not (task_files.done_dir / "t1.yaml").exists()
    assert task_files.read("t1")[1] is False


def test_write_same_status_updates_in_place(task_files):
    task_files.write(_rec(title="First"), done=True)
    task_files.write(_rec(title="Second"), done=True)
    record, done = task_files.read("t1")
    assert record.title == "Second"
    assert done is True


def test_write_can_repair_corrupt_record(task_files):
    (task_files.base_dir / "t1.yaml").write_text("::: not yaml [")
    task_files.write(_rec(), done=True)
    assert task_files.read("t1")[0].title == "Title"


def test_write_stale_copy_failure_keeps_new_record(task_files, monkeypatch):
    task_files.write(_rec(), done=False)
    stale_path = task_files.base_dir / "t1.yaml"

    real_unlink = Path.unlink

    def fake_unlink(self, *args, **kwargs):
        if self == stale_path:
            raise PermissionError("read-only")
        return real_unlink(self, *args, **kwargs)

    monkeypatch.setattr(Path, "unlink", fake_unlink)

    _age(stale_path, 60)
    with pytest.raises(StaleCopyError) as exc_info:
        task_files.write(_rec(title="Moved"), done=True)

    assert exc_info.value.path == stale_path
    assert isinstance(exc_info.value, StorageError)
    assert (task_files.done_dir / "t1.yaml").exists()

    monkeypatch.undo()
    # Both copies remain; reads see the relocated record, not the stale one.
    record, done = task_files.read("t1")
    assert (record.title, done) == ("Moved", True)
    assert [(r.title, d) for r, d in task_files.list_all()] == [("Moved", True)]


def test_write_failure_cleans_temp_file(task_files, monkeypatch):
    def boom(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(os, "replace", boom)
    with pytest.raises(StorageError, match="disk full"):
        task_files.write(_rec(), done=False)
    monkeypatch.undo()
    assert [p.name for p in task_files.base_dir.iterdir()] == ["done"]


# ------------------------------------------------------------------
# Delete
# ------------------------------------------------------------------

def test_delete_active(task_files):
    task_files.write(_rec(), done=False)
    assert task_files.delete("t1") is True
    with pytest.raises(NotFoundError):
        task_files.read("t1")


def test_delete_done(task_files):
    task_files.write(_rec(), done=True)
    assert task_files.delete("t1") is True
    assert not (task_files.done_dir / "t1.yaml").exists()


def test_delete_removes_both_copies(task_files):
    (task_files.base_dir / "t1.yaml").write_text("id: t1\n")
    (task_files.done_dir / "t1.yaml").write_text("id: t1\n")
    task_files.delete("t1")
    assert not (task_files.base_dir / "t1.yaml").exists()
    assert not (task_files.done_dir / "t1.yaml").exists()


def test_delete_missing_is_idempotent(task_files):
    assert task_files.delete("nope") is False
    assert task_files.delete("nope") is False


def test_delete_surfaces_other_os_errors(task_files):
    # A directory where the file should be cannot be unlinked.
    (task_files.base_dir / "t1.yaml").mkdir()
    with pytest.raises(StorageError, match="remove file"):
        task_files.delete("t1")


# ------------------------------------------------------------------
# list_all
# ------------------------------------------------------------------

def test_list_all_empty(task_files):
    assert task_files.list_all() == []


def test_list_all_derives_done_from_location(task_files):
    task_files.write(_rec(id="a"), done=False)
    task_files.write(_rec(id="b"), done=True)
    entries = {r.id: done for r, done in task_files.list_all()}
    assert entries == {"a": False, "b": True}


def test_list_all_order_active_then_done_by_name(task_files):
    for tid, done in [("c", True), ("b", False), ("a", True), ("d", False)]:
        task_files.write(_rec(id=tid), done=done)
    assert [r.id for r, _ in task_files.list_all()] == ["b", "d", "a", "c"]


def test_list_all_ignores_foreign_files_and_dirs(task_files):
    task_files.write(_rec(id="a"), done=False)
    (task_files.base_dir / "notes.txt").write_text("hello")
    (task_files.base_dir / ".a.yaml.swp").write_text("x")
    (task_files.base_dir / "sub").mkdir()
    assert [r.id for r, _ in task_files.list_all()] == ["a"]


def test_list_all_reports_duplicate_once(task_files, caplog):
    task_files.write(_rec(id="a", title="Active"), done=False)
    (task_files.done_dir / "a.yaml").write_text("id: a\ntitle: Done\ndescription: D\nvector: [1]\n")
    _age(task_files.done_dir / "a.yaml", 60)
    with caplog.at_level("WARNING", logger="tasktracker.store.files"):
        entries = task_files.list_all()
    assert len(entries) == 1
    record, done = entries[0]
    assert record.title == "Active"
    assert done is False
    assert "both active and done" in caplog.text


def test_list_all_duplicate_newer_done_copy_wins(task_files):
    task_files.write(_rec(id="a", title="Stale"), done=False)
    task_files.write(_rec(id="b"), done=False)
    (task_files.done_dir / "a.yaml").write_text("id: a\ntitle: Moved\ndescription: D\nvector: [1]\n")
    _age(task_files.base_dir / "a.yaml", 60)

    entries = [(r.id, r.title, d) for r, d in task_files.list_all()]
    assert entries == [("b", "Title", False), ("a", "Moved", True)]


def test_list_all_fails_fast_with_offending_id(task_files):
    task_files.write(_rec(id="good"), done=False)
    (task_files.done_dir / "bad.yaml").write_text("id: bad\ntitle: T\nvector: [1]\n")
    with pytest.raises(ValidationError, match="get task by id 'bad'"):
        task_files.list_all()


def test_list_all_corrupt_yaml_keeps_kind(task_files):
    (task_files.base_dir / "bad.yaml").write_text("[")
    with pytest.raises(CodecError, match="'bad'"):
        task_files.list_all()
