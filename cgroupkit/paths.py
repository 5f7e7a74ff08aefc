"""Group path helpers for the cgroup v2 unified hierarchy."""

from __future__ import annotations

import os
import posixpath
from collections.abc import Iterable

from .errors import CgroupError, InvalidFormatError, InvalidGroupPathError

_PROC_ROOT = "/proc"
_UNIFIED_PREFIX = "/sys/fs/cgroup"


def _clean(path: str) -> str:
    """Lexically clean a slash-separated path, collapsing every leading run of slashes."""
    cleaned = posixpath.normpath(path)
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


def _join(*elements: str) -> str:
    """Join non-empty elements with slashes and clean the result."""
    joined = "/".join(e for e in elements if e)
    return _clean(joined) if joined else ""


def parse_cgroup_from_reader(reader: Iterable[str]) -> str:
    """Return the unified group path ("0::<path>") from lines of a cgroup file."""
    for raw in reader:
        text = raw.removesuffix("\n").removesuffix("\r")
        parts = text.split(":", 2)
        if len(parts) < 3:
            raise InvalidFormatError(f"invalid cgroup entry: {text!r}")
        if parts[0] == "0" and parts[1] == "":
            return parts[2]
    raise CgroupError("cgroup path not found")


def parse_cgroup_file(path: str | os.PathLike[str]) -> str:
    """Return the unified group path from a /proc/<pid>/cgroup file."""
    with open(path, encoding="utf-8") as f:
        return parse_cgroup_from_reader(f)


def nested_group_path(suffix: str) -> str:
    """Group path nested inside the calling process's own cgroup."""
    path = parse_cgroup_file(posixpath.join(_PROC_ROOT, "self", "cgroup"))
    return _join(path, suffix)


def pid_group_path(pid: int) -> str:
    """Group path of an existing process."""
    return parse_cgroup_file(posixpath.join(_PROC_ROOT, str(pid), "cgroup"))


def verify_group_path(g: str) -> None:
    """Check that g is a clean absolute group path not starting with /sys/fs/cgroup.

    Raises InvalidGroupPathError otherwise. Existence is not checked.
    """
    if not g.startswith("/"):
        raise InvalidGroupPathError()
    if _clean(g) != g:
        raise InvalidGroupPathError()
    if g.startswith(_UNIFIED_PREFIX):
        raise InvalidGroupPathError()