"""Readers and parsers for the files of a cgroup v2 group directory."""

from __future__ import annotations

import logging
import os
import re
import time
from collections.abc import Iterable

from .errors import CgroupError, InvalidFormatError
from .stats import HugeTlbStat, IOEntry, RdmaEntry

log = logging.getLogger(__name__)

_MAX_UINT32 = 2**32 - 1
_MAX_UINT64 = 2**64 - 1
_UNSIGNED = re.compile(r"[0-9]+")
_SIGNED = re.compile(r"[+-][0-9]+")

_REMOVE_ATTEMPTS = 5
_REMOVE_FIRST_DELAY = 0.01


def _parse_uint_bits(s: str, bits: int) -> int:
    """Parse an unsigned decimal; any negative number, even out of range, becomes 0."""
    if _UNSIGNED.fullmatch(s):
        value = int(s)
        if value < 2**bits:
            return value
        raise InvalidFormatError(f"value out of range: {s!r}")
    if _SIGNED.fullmatch(s) and int(s) < 0:
        return 0
    raise InvalidFormatError(f"invalid unsigned integer: {s!r}")


def _strict_uint(s: str) -> int | None:
    """Parse an unsigned 64-bit decimal, or return None."""
    if _UNSIGNED.fullmatch(s):
        value = int(s)
        if value <= _MAX_UINT64:
            return value
    return None


def _lines(f: Iterable[str]) -> Iterable[str]:
    for raw in f:
        yield raw.removesuffix("\n").removesuffix("\r")


def parse_uint(s: str) -> int:
    """Parse an unsigned 64-bit decimal; negative numbers are clamped to 0."""
    return _parse_uint_bits(s, 64)


def parse_kv(raw: str) -> tuple[str, int | str]:
    """Parse a "key value" line; the value stays a string when it is not a number."""
    parts = raw.split()
    if len(parts) != 2:
        raise InvalidFormatError()
    key, text = parts
    try:
        return key, parse_uint(text)
    except InvalidFormatError:
        return key, text


def parse_cgroup_procs_file(path: str | os.PathLike[str]) -> list[int]:
    """Read the process or thread ids listed in a cgroup.procs style file."""
    pids = []
    with open(path, encoding="utf-8") as f:
        for line in _lines(f):
            if not line:
                continue
            pid = _strict_uint(line)
            if pid is None:
                raise InvalidFormatError(f"invalid pid {line!r} in {os.fspath(path)!r}")
            pids.append(pid)
    return pids


def read_kv_stats_file(path: str | os.PathLike[str], file: str) -> dict[str, int | str]:
    """Read a flat keyed file such as cpu.stat into a dictionary."""
    full = os.path.join(path, file)
    out: dict[str, int | str] = {}
    with open(full, encoding="utf-8") as f:
        for line in _lines(f):
            try:
                key, value = parse_kv(line)
            except InvalidFormatError as err:
                raise InvalidFormatError(
                    f"error while parsing {full} (line={line!r}): {err}"
                ) from err
            out[key] = value
    return out


def read_single_file(path: str | os.PathLike[str], file: str) -> int | str:
    """Read a single-value file; the value stays a string when it is not a number."""
    with open(os.path.join(path, file), encoding="utf-8") as f:
        text = f.read().strip()
    try:
        return parse_uint(text)
    except InvalidFormatError:
        return text


def get_stat_file_content_uint64(file_path: str | os.PathLike[str]) -> int:
    """Read a single number from a stat file: "max" is the largest 64-bit value, failures 0."""
    try:
        with open(file_path, encoding="utf-8") as f:
            contents = f.read()
    except OSError:
        return 0
    trimmed = contents.strip()
    if trimmed == "max":
        return _MAX_UINT64
    try:
        return parse_uint(trimmed)
    except InvalidFormatError:
        log.error("unable to parse %r as a uint from Cgroup file %r", contents, os.fspath(file_path))
        return 0


def read_io_stats(path: str | os.PathLike[str]) -> list[IOEntry]:
    """Parse io.stat in the group directory path into one entry per device."""
    usage: list[IOEntry] = []
    try:
        with open(os.path.join(path, "io.stat"), encoding="utf-8") as f:
            data = f.read()
    except OSError:
        return usage
    for line in data.split("\n"):
        parts = line.split(" ")
        if len(parts) < 2:
            continue
        majmin = parts[0].split(":")
        if len(majmin) != 2:
            continue
        major = _strict_uint(majmin[0])
        minor = _strict_uint(majmin[1])
        if major is None or minor is None:
            return usage
        entry = IOEntry(major=major, minor=minor)
        for item in parts[1:]:
            pair = item.split("=")
            if len(pair) != 2:
                continue
            value = _strict_uint(pair[1])
            if value is None:
                continue
            if pair[0] in ("rbytes", "wbytes", "rios", "wios"):
                setattr(entry, pair[0], value)
        usage.append(entry)
    return usage


def rdma_stats(file_path: str | os.PathLike[str]) -> list[RdmaEntry]:
    """Parse rdma.current or rdma.max; an unreadable file gives no entries."""
    try:
        with open(file_path, encoding="utf-8") as f:
            data = f.read()
    except OSError:
        return []
    return to_rdma_entry(data.split("\n"))


def parse_rdma_kv(raw: str, entry: RdmaEntry) -> None:
    """Apply one "hca_handle=N" or "hca_object=N" pair to entry; bad pairs are ignored."""
    parts = raw.split("=")
    if len(parts) != 2:
        return
    key, text = parts
    if text == "max":
        value = _MAX_UINT32
    else:
        try:
            value = _parse_uint_bits(text, 32)
        except InvalidFormatError:
            return
    if key == "hca_handle":
        entry.hca_handles = value
    elif key == "hca_object":
        entry.hca_objects = value


def to_rdma_entry(lines: Iterable[str]) -> list[RdmaEntry]:
    """Build entries from lines of the form "<device> hca_handle=N hca_object=N"."""
    entries = []
    for line in lines:
        parts = line.split()
        if len(parts) != 3:
            continue
        entry = RdmaEntry(device=parts[0])
        parse_rdma_kv(parts[1], entry)
        parse_rdma_kv(parts[2], entry)
        entries.append(entry)
    return entries


def read_hugetlb_stats(path: str | os.PathLike[str]) -> list[HugeTlbStat]:
    """Collect hugetlb.<size>.max and hugetlb.<size>.current values, one entry per size."""
    try:
        names = sorted(os.listdir(path))
    except OSError:
        return []
    by_size: dict[str, HugeTlbStat] = {}
    for name in names:
        if "hugetlb" not in name or not (name.endswith("max") or name.endswith("current")):
            continue
        pieces = name.split(".")
        if len(pieces) < 3:
            continue
        page_size = pieces[1]
        stat = by_size.get(page_size, HugeTlbStat())
        stat.pagesize = page_size
        try:
            with open(os.path.join(path, name), encoding="utf-8") as f:
                text = f.read().strip()
        except OSError:
            continue
        value = _MAX_UINT64 if text == "max" else _strict_uint(text)
        if value is None:
            continue
        if pieces[2] == "max":
            stat.max = value
        elif pieces[2] == "current":
            stat.current = value
        by_size[page_size] = stat
    return list(by_size.values())


def _remove_all(path: str) -> None:
    """Remove path and everything below it; a missing path is not an error."""
    try:
        if os.path.isdir(path) and not os.path.islink(path):
            os.rmdir(path)
        else:
            os.unlink(path)
        return
    except FileNotFoundError:
        return
    except OSError:
        if not (os.path.isdir(path) and not os.path.islink(path)):
            raise
    first_error: OSError | None = None
    for entry in os.scandir(path):
        try:
            _remove_all(entry.path)
        except OSError as err:
            first_error = first_error or err
    try:
        os.rmdir(path)
    except FileNotFoundError:
        return
    except OSError as err:
        raise first_error or err


def remove(path: str | os.PathLike[str]) -> None:
    """Remove a cgroup directory, retrying with growing delays while it is busy."""
    target = os.fspath(path)
    delay = _REMOVE_FIRST_DELAY
    error: OSError | None = None
    for attempt in range(_REMOVE_ATTEMPTS):
        if attempt:
            time.sleep(delay)
            delay *= 2
        try:
            _remove_all(target)
            return
        except OSError as err:
            error = err
    raise CgroupError(f"cgroups: unable to remove path {target!r}: {error}") from error


def systemd_unit_from_path(path: str) -> str:
    """The systemd unit name: the last component of a group path."""
    return path.rsplit("/", 1)[-1]