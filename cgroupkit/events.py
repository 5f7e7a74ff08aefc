"""Memory events of a cgroup in the unified hierarchy."""

from __future__ import annotations

import os
import time
from collections.abc import Iterator, Mapping
from dataclasses import dataclass

from .errors import CgroupError, InvalidFormatError
from .parsing import read_kv_stats_file

_MEMORY_EVENTS = "memory.events"
_CGROUP_EVENTS = "cgroup.events"


@dataclass
class Event:
    """Counters from memory.events."""

    low: int = 0
    high: int = 0
    max: int = 0
    oom: int = 0
    oom_kill: int = 0


def parse_memory_events(values: Mapping[str, int | str]) -> Event:
    """Build an Event from parsed memory.events; every present counter must be a number."""
    event = Event()
    for key in ("high", "low", "max", "oom", "oom_kill"):
        if key not in values:
            continue
        value = values[key]
        if not isinstance(value, int) or isinstance(value, bool):
            raise InvalidFormatError(f"cannot convert {key} to uint64: {value!r}")
        setattr(event, key, value)
    return event


def is_cgroup_empty(path: str | os.PathLike[str]) -> bool:
    """Whether the group has no processes; any doubt counts as empty."""
    try:
        values = read_kv_stats_file(path, _CGROUP_EVENTS)
    except (OSError, InvalidFormatError):
        return True
    populated = values.get("populated")
    if not isinstance(populated, int):
        return True
    return populated == 0


def _snapshot(file_path: str) -> bytes | None:
    try:
        with open(file_path, "rb") as f:
            return f.read()
    except OSError:
        return None


def watch_events(path: str | os.PathLike[str], interval: float = 0.1) -> Iterator[Event]:
    """Yield an Event each time memory.events or cgroup.events changes.

    The files are polled every interval seconds. The generator ends once the
    group is empty after an event, or when memory.events disappears.
    """
    memory_path = os.path.join(path, _MEMORY_EVENTS)
    events_path = os.path.join(path, _CGROUP_EVENTS)
    baseline = (_snapshot(memory_path), _snapshot(events_path))
    for file_path, content in zip((memory_path, events_path), baseline):
        if content is None:
            raise CgroupError(f"failed to add watch for {file_path!r}")
    while True:
        time.sleep(interval)
        current = (_snapshot(memory_path), _snapshot(events_path))
        if current == baseline:
            continue
        baseline = current
        try:
            values = read_kv_stats_file(path, _MEMORY_EVENTS)
        except (OSError, InvalidFormatError):
            # A deleted group may fail the read in several ways.
            if os.path.lexists(memory_path):
                raise
            return
        yield parse_memory_events(values)
        if is_cgroup_empty(path):
            return