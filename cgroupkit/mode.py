"""Detection of the host cgroup mode and parsing of /proc/<pid>/cgroup."""

from __future__ import annotations

import enum
import functools
import os
import posixpath
import re
from collections.abc import Iterable

from .errors import InvalidFormatError

_UNIFIED_MOUNTPOINT = "/sys/fs/cgroup"
_MOUNTS_FILE = "/proc/self/mounts"
_UID_MAP = "/proc/self/uid_map"
_CGROUP2_FSTYPE = "cgroup2"
_FULL_UID_RANGE = 4294967295

_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")


class CGMode(enum.IntEnum):
    """The cgroups mode of the host system."""

    UNAVAILABLE = 0
    LEGACY = 1
    HYBRID = 2
    UNIFIED = 3


def _unescape(text: str) -> str:
    return _OCTAL_ESCAPE.sub(lambda m: chr(int(m.group(1), 8)), text)


def _parse_mounts(lines: Iterable[str]) -> list[tuple[str, str]]:
    mounts = []
    for line in lines:
        fields = line.split()
        if len(fields) >= 3:
            mounts.append((_unescape(fields[1]), fields[2]))
    return mounts


def _contains(mountpoint: str, path: str) -> bool:
    if mountpoint == "/":
        return path.startswith("/")
    base = mountpoint.rstrip("/")
    return path == base or path.startswith(base + "/")


def _filesystem_type(mounts: list[tuple[str, str]], path: str) -> str | None:
    """Type of the filesystem holding path: the deepest, latest mount over it."""
    best_type = None
    best_len = -1
    for mountpoint, fstype in mounts:
        if _contains(mountpoint, path) and len(mountpoint) >= best_len:
            best_type, best_len = fstype, len(mountpoint)
    return best_type


def _mode_from_mounts(lines: Iterable[str], mountpoint: str = _UNIFIED_MOUNTPOINT) -> CGMode:
    mounts = _parse_mounts(lines)
    fstype = _filesystem_type(mounts, mountpoint)
    if fstype is None:
        return CGMode.UNAVAILABLE
    if fstype == _CGROUP2_FSTYPE:
        return CGMode.UNIFIED
    if _filesystem_type(mounts, posixpath.join(mountpoint, "unified")) == _CGROUP2_FSTYPE:
        return CGMode.HYBRID
    return CGMode.LEGACY


@functools.cache
def mode() -> CGMode:
    """Return the cgroups mode of the host; the answer is computed once."""
    if not os.path.isdir(_UNIFIED_MOUNTPOINT):
        return CGMode.UNAVAILABLE
    try:
        with open(_MOUNTS_FILE, encoding="utf-8") as f:
            lines = f.read().splitlines()
    except OSError:
        return CGMode.UNAVAILABLE
    return _mode_from_mounts(lines, _UNIFIED_MOUNTPOINT)


def _in_user_ns_from_line(line: str) -> bool:
    """Whether a uid_map line describes anything but the full initial range."""
    values = [0, 0, 0]
    for position, token in enumerate(line.split()[:3]):
        try:
            values[position] = int(token)
        except ValueError:
            break
    return values != [0, 0, _FULL_UID_RANGE]


@functools.cache
def running_in_user_ns() -> bool:
    """Detect whether the current process runs in a user namespace."""
    try:
        with open(_UID_MAP, encoding="utf-8") as f:
            line = f.readline()
    except OSError:
        return False
    if not line:
        return False
    return _in_user_ns_from_line(line)


def parse_cgroup_file_unified(path: str | os.PathLike[str]) -> tuple[dict[str, str], str]:
    """Parse a /proc/<pid>/cgroup file into legacy subsystem paths and the unified path."""
    with open(path, encoding="utf-8") as f:
        return parse_cgroup_from_reader_unified(f)


def parse_cgroup_from_reader_unified(reader: Iterable[str]) -> tuple[dict[str, str], str]:
    """Parse lines of a cgroup file into legacy subsystem paths and the unified path.

    ``reader`` is a text file object or any iterable of lines.
    """
    cgroups: dict[str, str] = {}
    unified = ""
    for raw in reader:
        text = raw.removesuffix("\n").removesuffix("\r")
        parts = text.split(":", 2)
        if len(parts) < 3:
            raise InvalidFormatError(f"invalid cgroup entry: {text!r}")
        for subsystem in parts[1].split(","):
            if subsystem:
                cgroups[subsystem] = parts[2]
            else:
                unified = parts[2]
    return cgroups, unified