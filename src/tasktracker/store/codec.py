"""YAML codec for task records.

File shape (keys always in this order, vector in flow style so a record
stays readable in a terminal):

    id: a1
    title: Write parser
    description: Parse the config file
    vector: [0.1, 0.2, 0.3]

Completion status is never written and any ``done`` key found in a file is
ignored. All reads use yaml.safe_load() — never yaml.load().
"""

from __future__ import annotations

from typing import Any

import yaml

from tasktracker.errors import CodecError
from tasktracker.store.models import TaskRecord


class _FlowList(list):
    """Marker type: dumped as an inline ``[a, b, c]`` sequence."""


class _RecordDumper(yaml.SafeDumper):
    pass


def _represent_flow_list(dumper: yaml.SafeDumper, data: _FlowList) -> yaml.Node:
    return dumper.represent_sequence("tag:yaml.org,2002:seq", data, flow_style=True)


# YAML treats these as line breaks; unescaped they are folded on reload.
_UNICODE_BREAKS = ("\x85", "\u2028", "\u2029")


def _represent_str(dumper: yaml.SafeDumper, data: str) -> yaml.Node:
    style = '"' if any(ch in data for ch in _UNICODE_BREAKS) else None
    return dumper.represent_scalar("tag:yaml.org,2002:str", data, style=style)


_RecordDumper.add_representer(_FlowList, _represent_flow_list)
_RecordDumper.add_representer(str, _represent_str)


def encode(record: TaskRecord) -> str:
    """Serialize *record* to YAML text."""
    payload = {
        "id": record.id,
        "title": record.title,
        "description": record.description,
        "vector": _FlowList(float(v) for v in record.vector),
    }
    return yaml.dump(
        payload,
        Dumper=_RecordDumper,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=4096,
    )


def decode(text: str) -> TaskRecord:
    """Parse YAML *text* into a TaskRecord.

    Missing text fields decode as empty strings and a missing vector as an
    empty list; emptiness checks belong to the caller.

    Raises:
        CodecError: If *text* is not valid YAML, is not a mapping, or the
            vector is not a flat list of numbers.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise CodecError(f"invalid task yaml: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise CodecError(f"task yaml must be a mapping, got {type(data).__name__}")

    return TaskRecord(
        id=_text(data.get("id")),
        title=_text(data.get("title")),
        description=_text(data.get("description")),
        vector=_vector(data.get("vector")),
    )


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _vector(value: Any) -> list[float]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise CodecError(f"task vector must be a list, got {type(value).__name__}")
    out: list[float] = []
    for i, item in enumerate(value):
        # bool is an int subclass; true/false in a vector is corruption
        if isinstance(item, bool) or not isinstance(item, (int, float)):
            raise CodecError(f"task vector item {i} is not a number: {item!r}")
        out.append(float(item))
    return out
