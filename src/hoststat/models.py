"""Data models for hoststat."""

import json
from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True, frozen=True)
class CpuCounters:
    """Immutable read of the aggregate cpu line of /proc/stat.

    Every field is a cumulative tick count since boot.
    """

    user: int
    nice: int
    system: int
    idle: int
    iowait: int
    irq: int
    softirq: int
    steal: int
    guest: int
    guest_nice: int

    @property
    def total(self) -> int:
        """Sum of all ten time buckets."""
        return (
            self.user
            + self.nice
            + self.system
            + self.idle
            + self.iowait
            + self.irq
            + self.softirq
            + self.steal
            + self.guest
            + self.guest_nice
        )


@dataclass(slots=True, frozen=True)
class OsInfo:
    """OS identity and whole-host memory figures."""

    os_type: str = ""
    kernel_version: str = ""
    os_version: str = ""
    host_name: str = ""
    cpu_num: int = 0
    total_memory: int = 0
    used_memory: int = 0
    total_swap: int = 0
    used_swap: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "os_type": self.os_type,
            "kernel_version": self.kernel_version,
            "os_version": self.os_version,
            "host_name": self.host_name,
            "cpu_num": self.cpu_num,
            "total_memory": self.total_memory,
            "used_memory": self.used_memory,
            "total_swap": self.total_swap,
            "used_swap": self.used_swap,
        }


@dataclass(slots=True, frozen=True)
class DiskInfo:
    """A mounted disk partition."""

    kind: str  # 'HDD', 'SSD' or 'UNKNOWN'
    name: str
    total_space: int  # Bytes
    available_space: int  # Bytes
    mount_point: str
    is_removable: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "type_": self.kind,
            "name": self.name,
            "total_space": self.total_space,
            "available_space": self.available_space,
            "mount_point": self.mount_point,
            "is_removable": self.is_removable,
        }


@dataclass(slots=True, frozen=True)
class CpuInfo:
    """Core counts plus the most recent utilization percentage."""

    physics_core_num: int = 0
    virtual_core_num: int = 0
    usage: float = 0.0  # 0.0 - 100.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "physics_core_num": self.physics_core_num,
            "virtual_core_num": self.virtual_core_num,
            "usage": self.usage,
        }


@dataclass(slots=True, frozen=True)
class MemInfo:
    """Physical memory totals in bytes."""

    mem_total: int = 0
    mem_available: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"mem_total": self.mem_total, "mem_available": self.mem_available}


@dataclass(slots=True, frozen=True)
class SystemSnapshot:
    """Snapshot of overall system state for one tick."""

    os: OsInfo = field(default_factory=OsInfo)
    disks: tuple[DiskInfo, ...] = ()
    cpu: CpuInfo = field(default_factory=CpuInfo)
    mem: MemInfo = field(default_factory=MemInfo)
    home_dir: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Render with the wire names consumers expect."""
        return {
            "os": self.os.to_dict(),
            "diskInfo": [disk.to_dict() for disk in self.disks],
            "cpuInfo": self.cpu.to_dict(),
            "memInfo": self.mem.to_dict(),
            "homeDir": self.home_dir,
        }


@dataclass(slots=True, frozen=True)
class Report:
    """Envelope emitted once per tick."""

    code: int
    body: SystemSnapshot
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.code == 200

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "body": self.body.to_dict(), "error": self.error}

    def to_json(self, indent: int | None = None) -> str:
        return json.dumps(self.to_dict(), indent=indent)
