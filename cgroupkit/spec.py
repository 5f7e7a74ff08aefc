"""Resource descriptions in the shape of the OCI runtime specification."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class LinuxDeviceCgroup:
    """One device access rule; major/minor of None or -1 mean any."""

    allow: bool = False
    type: str = ""
    major: int | None = None
    minor: int | None = None
    access: str = ""


@dataclass
class LinuxCPU:
    """CPU limits as cgroup v1 expresses them."""

    shares: int | None = None
    quota: int | None = None
    period: int | None = None
    realtime_runtime: int | None = None
    realtime_period: int | None = None
    cpus: str = ""
    mems: str = ""


@dataclass
class LinuxMemory:
    """Memory limits in bytes."""

    limit: int | None = None
    reservation: int | None = None
    swap: int | None = None
    kernel: int | None = None
    kernel_tcp: int | None = None
    swappiness: int | None = None
    disable_oom_killer: bool | None = None


@dataclass
class LinuxHugepageLimit:
    """Limit on huge pages of one page size."""

    pagesize: str
    limit: int


@dataclass
class LinuxPids:
    """Limit on the number of processes."""

    limit: int


@dataclass
class LinuxThrottleDevice:
    """Rate limit for one block device."""

    major: int
    minor: int
    rate: int


@dataclass
class LinuxBlockIO:
    """Block I/O weights and throttles."""

    weight: int | None = None
    leaf_weight: int | None = None
    throttle_read_bps_device: list[LinuxThrottleDevice] = field(default_factory=list)
    throttle_write_bps_device: list[LinuxThrottleDevice] = field(default_factory=list)
    throttle_read_iops_device: list[LinuxThrottleDevice] = field(default_factory=list)
    throttle_write_iops_device: list[LinuxThrottleDevice] = field(default_factory=list)


@dataclass
class LinuxRdma:
    """RDMA handle and object limits for one device."""

    hca_handles: int | None = None
    hca_objects: int | None = None


@dataclass
class LinuxResources:
    """The resource section of a container configuration."""

    devices: list[LinuxDeviceCgroup] = field(default_factory=list)
    memory: LinuxMemory | None = None
    cpu: LinuxCPU | None = None
    pids: LinuxPids | None = None
    block_io: LinuxBlockIO | None = None
    hugepage_limits: list[LinuxHugepageLimit] | None = None
    rdma: dict[str, LinuxRdma] | None = None