"""Exceptions raised by cgroupkit."""

from __future__ import annotations


class CgroupError(Exception):
    """Base class for every error raised by this package."""


class InvalidFormatError(CgroupError, ValueError):
    """A cgroup file, or a line in one, does not have the expected format."""

    def __init__(self, message: str = "cgroups: parsing file with invalid format failed") -> None:
        super().__init__(message)


class InvalidGroupPathError(CgroupError, ValueError):
    """A group path is not a clean absolute path below the cgroup mountpoint."""

    def __init__(self, message: str = "cgroups: invalid group path") -> None:
        super().__init__(message)