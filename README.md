# cgroupkit

A library of building blocks for the Linux cgroup v2 (unified) hierarchy:
detecting how cgroups are mounted, resolving and checking group paths,
describing resource limits and writing them into a group directory,
reading and setting the freezer state, parsing statistics files, and
following memory events.

It has no dependencies outside the standard library.

## Installation

```
pip install .
```

Tests need the `test` extra:

```
pip install ".[test]"
pytest
```

## Host mode and /proc

```python
from cgroupkit.mode import CGMode, mode, running_in_user_ns, parse_cgroup_file_unified

if mode() is CGMode.UNIFIED:
    ...
legacy_paths, unified_path = parse_cgroup_file_unified("/proc/self/cgroup")
```

`mode()` returns `CGMode.UNAVAILABLE`, `LEGACY`, `HYBRID` or `UNIFIED`,
judged from the filesystems mounted at `/sys/fs/cgroup` and
`/sys/fs/cgroup/unified`; it and `running_in_user_ns()` compute their
answer once and cache it.

## Group paths

`cgroupkit.paths` has:

- `verify_group_path(g)`: raises `cgroupkit.errors.InvalidGroupPathError`
  unless `g` is a clean absolute path that does not start with
  `/sys/fs/cgroup`.
- `parse_cgroup_file(path)` / `parse_cgroup_from_reader(lines)`: the unified
  path from the `0::<path>` line of a cgroup file.
- `pid_group_path(pid)` and `nested_group_path(suffix)`: paths taken from
  `/proc/<pid>/cgroup` and `/proc/self/cgroup`.

## Resource settings

```python
from cgroupkit.resources import CPU, Memory, Pids, Resources, new_cpu_max, write_values

resources = Resources(
    cpu=CPU(weight=100, max=new_cpu_max(10000, 8000)),
    memory=Memory(max=629145600),
    pids=Pids(max=1000),
)
print(resources.enabled_controllers())  # ['cpu', 'cpuset', 'memory', 'pids']
write_values("/sys/fs/cgroup/example-group", resources.values())
```

Each controller (`CPU`, `Memory`, `Pids`, `IO`, `RDMA`, `HugeTlb`) turns
its settings into `Value` objects: a file name and what goes into it.
`write_values` writes them in order and stops at the first failure. A file
that does not exist yet is created with mode `DEFAULT_FILE_PERM` (no
permission bits); on a real cgroup filesystem the files already exist.

`to_resources(spec)` converts cgroup v1 style settings, described with the
dataclasses in `cgroupkit.spec` (`LinuxResources`, `LinuxCPU`,
`LinuxMemory`, `LinuxBlockIO`, ...), into a `Resources`: CPU shares become
a weight, quota and period become `cpu.max`, block I/O weight becomes a BFQ
weight.

## Freezer state

```python
from cgroupkit.resources import write_values
from cgroupkit.state import State, fetch_state

write_values(group_dir, State.FROZEN.values())
assert fetch_state(group_dir) is State.FROZEN
```

## Statistics

`cgroupkit.parsing` reads the files of a group directory:
`read_kv_stats_file` (`cpu.stat`, `memory.stat`, `memory.events`, ...),
`read_single_file`, `get_stat_file_content_uint64`, `read_io_stats`,
`rdma_stats`, `read_hugetlb_stats` and `parse_cgroup_procs_file`. Negative
numbers read as 0 and `max` reads as the largest 64-bit value where the
file allows it. `remove(path)` deletes a group directory, retrying with
growing delays while it is busy.

The results fill the dataclasses in `cgroupkit.stats` (`Metrics`,
`CPUStat`, `MemoryStat`, `IOEntry`, `RdmaEntry`, `HugeTlbStat`, ...);
`Metrics.to_dict()` gives a JSON-ready dictionary without empty sections
or zero values.

## Memory events

```python
from cgroupkit.events import watch_events

for event in watch_events(group_dir, interval=0.1):
    print(event.oom, event.oom_kill)
```

`watch_events` polls `memory.events` and `cgroup.events`, yields an
`Event` after each change, and ends once the group is empty or
`memory.events` disappears.

## What the package does not do

There is no command-line tool and no object that manages a group as a
whole: creating or deleting groups, enabling controllers in
`cgroup.subtree_control`, moving or killing processes, and gathering all
statistics into one `Metrics` are left to the caller, using the pieces
above. Device access rules (`cgroupkit.spec.LinuxDeviceCgroup`) can be
described but are not enforced, and groups managed through systemd are
not supported.

Most operations need a host mounted in unified mode and the privileges to
write under the cgroup mountpoint.