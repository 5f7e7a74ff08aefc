"""Building blocks for Linux cgroup v2: mode detection, paths, resources, state, statistics and events."""

__version__ = "0.1.0"