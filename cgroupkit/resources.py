"""Resource limits for the cgroup v2 unified hierarchy and the files they are written to."""

from __future__ import annotations

import enum
import os
import re
from dataclasses import dataclass, field
from typing import Union

from .errors import InvalidFormatError
from .spec import LinuxResources, LinuxThrottleDevice

# Files such as cgroup.procs already exist on a real cgroup filesystem, so
# the mode only matters when a file has to be created.
DEFAULT_FILE_PERM = 0o000

_MAX_INT64 = 2**63 - 1
_DECIMAL = re.compile(r"[+-]?[0-9]+")

ValueType = Union[int, str, bytes]


@dataclass(frozen=True)
class Value:
    """One setting: the file it lives in and the value written to it."""

    filename: str
    value: ValueType

    def _encode(self) -> bytes:
        if isinstance(self.value, bool):
            raise InvalidFormatError()
        if isinstance(self.value, int):
            return str(self.value).encode()
        if isinstance(self.value, bytes):
            return self.value
        if isinstance(self.value, str):
            return self.value.encode()
        raise InvalidFormatError()

    def write(self, path: str | os.PathLike[str], perm: int) -> None:
        """Write the value into its file below the directory path in a single write."""
        data = self._encode()
        target = os.path.join(path, self.filename)
        fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, perm)
        try:
            os.write(fd, data)
        finally:
            os.close(fd)


def write_values(path: str | os.PathLike[str], values: list[Value]) -> None:
    """Write every value below path, stopping at the first failure."""
    for value in values:
        value.write(path, DEFAULT_FILE_PERM)


def _parse_decimal(text: str) -> int:
    if not _DECIMAL.fullmatch(text):
        return 0
    return int(text)


class CPUMax(str):
    """Content of cpu.max: "<quota|max> <period>"."""

    def extract_quota_and_period(self) -> tuple[int, int]:
        """Return (quota, period); a quota of "max" becomes the largest signed 64-bit value."""
        values = self.split(" ")
        if len(values) < 2:
            raise InvalidFormatError(f"invalid cpu.max value: {str(self)!r}")
        quota = _MAX_INT64 if values[0] == "max" else _parse_decimal(values[0])
        period = _parse_decimal(values[1])
        if period < 0:
            period = 0
        return quota, period


def new_cpu_max(quota: int | None, period: int) -> CPUMax:
    """Build a cpu.max value; a quota of None means unlimited."""
    limit = "max" if quota is None else str(quota)
    return CPUMax(f"{limit} {period}")


@dataclass
class CPU:
    """CPU weight, bandwidth and cpuset placement."""

    weight: int | None = None
    max: CPUMax | str = ""
    cpus: str = ""
    mems: str = ""

    def values(self) -> list[Value]:
        out = []
        if self.weight is not None:
            out.append(Value("cpu.weight", self.weight))
        if self.max:
            out.append(Value("cpu.max", CPUMax(self.max)))
        if self.cpus:
            out.append(Value("cpuset.cpus", self.cpus))
        if self.mems:
            out.append(Value("cpuset.mems", self.mems))
        return out


@dataclass
class HugeTlbEntry:
    """Limit for huge pages of one size, e.g. "2MB"."""

    huge_page_size: str
    limit: int


@dataclass
class HugeTlb:
    """Huge page limits, one entry per page size."""

    entries: list[HugeTlbEntry] = field(default_factory=list)

    def values(self) -> list[Value]:
        return [Value(f"hugetlb.{e.huge_page_size}.max", e.limit) for e in self.entries]


class IOType(str, enum.Enum):
    """Kind of I/O throttle in io.max."""

    READ_BPS = "rbps"
    WRITE_BPS = "wbps"
    READ_IOPS = "riops"
    WRITE_IOPS = "wiops"


@dataclass
class BFQ:
    """Weight for the BFQ I/O scheduler; zero leaves it unset."""

    weight: int = 0


@dataclass
class Entry:
    """One io.max line for a device."""

    type: IOType
    major: int
    minor: int
    rate: int

    def __str__(self) -> str:
        return f"{self.major}:{self.minor} {IOType(self.type).value}={self.rate}"


@dataclass
class IO:
    """I/O weight and per-device throttles."""

    bfq: BFQ = field(default_factory=BFQ)
    max: list[Entry] = field(default_factory=list)

    def values(self) -> list[Value]:
        out = []
        if self.bfq.weight != 0:
            out.append(Value("io.bfq.weight", self.bfq.weight))
        out.extend(Value("io.max", str(e)) for e in self.max)
        return out


@dataclass
class Memory:
    """Memory limits in bytes."""

    swap: int | None = None
    min: int | None = None
    max: int | None = None
    low: int | None = None
    high: int | None = None

    def values(self) -> list[Value]:
        settings = (
            ("memory.swap.max", self.swap),
            ("memory.min", self.min),
            ("memory.max", self.max),
            ("memory.low", self.low),
            ("memory.high", self.high),
        )
        return [Value(name, v) for name, v in settings if v is not None]


@dataclass
class Pids:
    """Process count limit: zero leaves it unset, a negative value means unlimited."""

    max: int = 0

    def values(self) -> list[Value]:
        if self.max == 0:
            return []
        limit = str(self.max) if self.max > 0 else "max"
        return [Value("pids.max", limit)]


@dataclass
class RDMAEntry:
    """RDMA limits for one device."""

    device: str
    hca_handles: int
    hca_objects: int

    def __str__(self) -> str:
        return f"{self.device} hca_handle={self.hca_handles} hca_object={self.hca_objects}"


@dataclass
class RDMA:
    """RDMA limits, one entry per device."""

    limit: list[RDMAEntry] = field(default_factory=list)

    def values(self) -> list[Value]:
        return [Value("rdma.max", str(e)) for e in self.limit]


@dataclass
class Resources:
    """Resources of a cgroup in the unified hierarchy; None leaves a controller alone."""

    cpu: CPU | None = None
    memory: Memory | None = None
    pids: Pids | None = None
    io: IO | None = None
    rdma: RDMA | None = None
    hugetlb: HugeTlb | None = None
    # An empty list means devices are not controlled.
    devices: list = field(default_factory=list)

    def _controllers(self):
        return (self.cpu, self.memory, self.pids, self.io, self.rdma, self.hugetlb)

    def values(self) -> list[Value]:
        """Filenames and values to write into the group directory."""
        out: list[Value] = []
        for controller in self._controllers():
            if controller is not None:
                out.extend(controller.values())
        return out

    def enabled_controllers(self) -> list[str]:
        """Names of the controllers that have settings."""
        names = []
        if self.cpu is not None:
            names.extend(["cpu", "cpuset"])
        if self.memory is not None:
            names.append("memory")
        if self.pids is not None:
            names.append("pids")
        if self.io is not None:
            names.append("io")
        if self.rdma is not None:
            names.append("rdma")
        if self.hugetlb is not None:
            names.append("hugetlb")
        return names


def to_resources(spec: LinuxResources) -> Resources:
    """Convert cgroup v1 style resource settings into unified-hierarchy resources."""
    resources = Resources()
    cpu = spec.cpu
    if cpu is not None:
        resources.cpu = CPU(cpus=cpu.cpus, mems=cpu.mems)
        if cpu.shares is not None:
            resources.cpu.weight = 1 + ((cpu.shares - 2) * 9999) // 262142
        if cpu.period is not None:
            resources.cpu.max = new_cpu_max(cpu.quota, cpu.period)

    mem = spec.memory
    if mem is not None:
        resources.memory = Memory(swap=mem.swap, max=mem.limit, low=mem.reservation)

    if spec.hugepage_limits is not None:
        resources.hugetlb = HugeTlb(
            [HugeTlbEntry(h.pagesize, h.limit) for h in spec.hugepage_limits]
        )

    if spec.pids is not None:
        resources.pids = Pids(max=spec.pids.limit)

    block_io = spec.block_io
    if block_io is not None:
        resources.io = IO()
        if block_io.weight is not None:
            resources.io.bfq.weight = 1 + (block_io.weight - 10) * 9999 // 990
        throttles: tuple[tuple[IOType, list[LinuxThrottleDevice]], ...] = (
            (IOType.READ_BPS, block_io.throttle_read_bps_device),
            (IOType.WRITE_BPS, block_io.throttle_write_bps_device),
            (IOType.READ_IOPS, block_io.throttle_read_iops_device),
            (IOType.WRITE_IOPS, block_io.throttle_write_iops_device),
        )
        for io_type, devices in throttles:
            resources.io.max.extend(
                Entry(io_type, d.major, d.minor, d.rate) for d in devices
            )

    if spec.rdma is not None:
        resources.rdma = RDMA(
            [
                RDMAEntry(device, limit.hca_handles, limit.hca_objects)
                for device, limit in spec.rdma.items()
                if device and limit.hca_handles is not None and limit.hca_objects is not None
            ]
        )

    return resources