"""Metrics collected from a cgroup in the unified hierarchy."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, bool):
        return not value
    if isinstance(value, (int, float, str, list, tuple, dict)):
        return not value
    return False


def _to_plain(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        out = {}
        for f in dataclasses.fields(value):
            item = getattr(value, f.name)
            if _is_empty(item):
                continue
            out[f.name] = _to_plain(item)
        return out
    if isinstance(value, (list, tuple)):
        return [_to_plain(v) for v in value]
    return value


@dataclass
class PidsStat:
    current: int = 0
    limit: int = 0


@dataclass
class CPUStat:
    usage_usec: int = 0
    user_usec: int = 0
    system_usec: int = 0
    nr_periods: int = 0
    nr_throttled: int = 0
    throttled_usec: int = 0


@dataclass
class MemoryStat:
    anon: int = 0
    file: int = 0
    kernel_stack: int = 0
    slab: int = 0
    sock: int = 0
    shmem: int = 0
    file_mapped: int = 0
    file_dirty: int = 0
    file_writeback: int = 0
    anon_thp: int = 0
    inactive_anon: int = 0
    active_anon: int = 0
    inactive_file: int = 0
    active_file: int = 0
    unevictable: int = 0
    slab_reclaimable: int = 0
    slab_unreclaimable: int = 0
    pgfault: int = 0
    pgmajfault: int = 0
    workingset_refault: int = 0
    workingset_activate: int = 0
    workingset_nodereclaim: int = 0
    pgrefill: int = 0
    pgscan: int = 0
    pgsteal: int = 0
    pgactivate: int = 0
    pgdeactivate: int = 0
    pglazyfree: int = 0
    pglazyfreed: int = 0
    thp_fault_alloc: int = 0
    thp_collapse_alloc: int = 0
    usage: int = 0
    usage_limit: int = 0
    swap_usage: int = 0
    swap_limit: int = 0


@dataclass
class MemoryEvents:
    low: int = 0
    high: int = 0
    max: int = 0
    oom: int = 0
    oom_kill: int = 0


@dataclass
class IOEntry:
    major: int = 0
    minor: int = 0
    rbytes: int = 0
    wbytes: int = 0
    rios: int = 0
    wios: int = 0


@dataclass
class IOStat:
    usage: list[IOEntry] = field(default_factory=list)


@dataclass
class RdmaEntry:
    device: str = ""
    hca_handles: int = 0
    hca_objects: int = 0


@dataclass
class RdmaStat:
    current: list[RdmaEntry] = field(default_factory=list)
    limit: list[RdmaEntry] = field(default_factory=list)


@dataclass
class HugeTlbStat:
    current: int = 0
    max: int = 0
    pagesize: str = ""


@dataclass
class Metrics:
    """All statistics of one cgroup; None marks a section that was not collected."""

    pids: PidsStat | None = None
    cpu: CPUStat | None = None
    memory: MemoryStat | None = None
    rdma: RdmaStat | None = None
    io: IOStat | None = None
    hugetlb: list[HugeTlbStat] = field(default_factory=list)
    memory_events: MemoryEvents | None = None

    def to_dict(self) -> dict[str, Any]:
        """A JSON-ready dictionary that leaves out absent sections and zero values."""
        return _to_plain(self)