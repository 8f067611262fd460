"""Host lookups that feed the system snapshot.

OS identity and disks are best-effort: anything missing renders as an empty
string or zero. Core counts and memory are required and raise
CollectorLookupError when the host refuses to answer.
"""

import logging
import os
import platform
import shlex
import socket
import subprocess
from pathlib import Path

import psutil

from hoststat.errors import CollectorLookupError
from hoststat.models import DiskInfo, MemInfo, OsInfo

LOGGER = logging.getLogger(__name__)

SYS_BLOCK_PATH = Path("/sys/class/block")

# File systems whose statvfs can hang on an unreachable server
NETWORK_FSTYPES = frozenset(
    {"nfs", "nfs4", "cifs", "smb3", "smbfs", "sshfs", "fuse.sshfs", "9p", "ceph", "glusterfs", "afs"}
)

# Upper bound on the getent call so a hung NSS backend cannot stall a tick
SHELL_TIMEOUT = 1.0


def os_identity() -> OsInfo:
    """Collect OS identity, host name and memory/swap usage."""
    os_type = platform.system()
    os_version = ""
    try:
        release = platform.freedesktop_os_release()
        os_type = release.get("NAME") or os_type
        os_version = release.get("VERSION_ID", "")
    except OSError:
        LOGGER.debug("os-release not available")

    total_memory = used_memory = total_swap = used_swap = 0
    try:
        mem = psutil.virtual_memory()
        # Used is total minus available, not psutil's narrower 'used'
        total_memory, used_memory = mem.total, mem.total - mem.available
        swap = psutil.swap_memory()
        total_swap, used_swap = swap.total, swap.used
    except (OSError, psutil.Error) as exc:
        LOGGER.debug("Memory figures unavailable for OS identity: %s", exc)

    return OsInfo(
        os_type=os_type,
        kernel_version=platform.release(),
        os_version=os_version,
        host_name=socket.gethostname(),
        cpu_num=psutil.cpu_count() or 0,
        total_memory=total_memory,
        used_memory=used_memory,
        total_swap=total_swap,
        used_swap=used_swap,
    )


def _block_device_dir(device: str, sys_block: Path) -> Path | None:
    """Locate the sysfs directory of the whole disk backing a device node."""
    # /dev/mapper/<name> and /dev/disk/by-* entries are symlinks to the real node
    node = sys_block / Path(os.path.realpath(device)).name
    if not node.exists():
        return None
    resolved = node.resolve()
    # Partitions live under their parent disk in sysfs
    if (resolved / "partition").exists():
        resolved = resolved.parent
    return resolved


def _read_sys_value(path: Path) -> str | None:
    try:
        return path.read_text().strip()
    except OSError:
        return None


def disk_kind(device: str, sys_block: Path = SYS_BLOCK_PATH) -> tuple[str, bool]:
    """Return the (kind, removable) pair for a device node."""
    disk_dir = _block_device_dir(device, sys_block)
    if disk_dir is None:
        return "UNKNOWN", False

    rotational = _read_sys_value(disk_dir / "queue" / "rotational")
    kind = {"1": "HDD", "0": "SSD"}.get(rotational or "", "UNKNOWN")
    removable = _read_sys_value(disk_dir / "removable") == "1"
    return kind, removable


def enumerate_disks(sys_block: Path = SYS_BLOCK_PATH) -> list[DiskInfo]:
    """
    List mounted disk partitions in mount-table order.

    Network mounts are skipped so a dead server cannot block the tick.
    Partitions whose usage cannot be read (permissions, stale mounts) are
    skipped too.
    """
    try:
        partitions = psutil.disk_partitions(all=False)
    except (OSError, psutil.Error) as exc:
        LOGGER.warning("Unable to enumerate disk partitions: %s", exc)
        return []

    disks: list[DiskInfo] = []
    for part in partitions:
        if part.fstype in NETWORK_FSTYPES:
            LOGGER.debug("Skipping network mount %s (%s)", part.mountpoint, part.fstype)
            continue
        try:
            usage = psutil.disk_usage(part.mountpoint)
        except OSError as exc:
            LOGGER.debug("Skipping %s: %s", part.mountpoint, exc)
            continue

        kind, removable = disk_kind(part.device, sys_block)
        disks.append(
            DiskInfo(
                kind=kind,
                name=part.device,
                total_space=usage.total,
                available_space=usage.free,
                mount_point=part.mountpoint,
                is_removable=removable,
            )
        )
    return disks


def core_counts() -> tuple[int, int]:
    """
    Return (physical, logical) core counts.

    Raises:
        CollectorLookupError: If psutil cannot determine the topology.
    """
    try:
        physical = psutil.cpu_count(logical=False)
        logical = psutil.cpu_count(logical=True)
    except (OSError, psutil.Error) as exc:
        raise CollectorLookupError(f"cpu info lookup failed: {exc}") from exc
    return physical or 0, logical or 0


def memory_info() -> MemInfo:
    """
    Return total and available physical memory.

    Raises:
        CollectorLookupError: If /proc/meminfo cannot be read.
    """
    try:
        mem = psutil.virtual_memory()
    except (OSError, psutil.Error) as exc:
        raise CollectorLookupError(f"memory info lookup failed: {exc}") from exc
    return MemInfo(mem_total=mem.total, mem_available=mem.available)


def current_username() -> str:
    """Login name of the current user, or an empty string."""
    return os.environ.get("USER", "").strip()


def run_shell(command: str, timeout: float = SHELL_TIMEOUT) -> str:
    """Run a shell command and return its stdout, or '' on any failure."""
    try:
        result = subprocess.run(
            ["sh", "-c", command],
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        LOGGER.debug("Command %r failed: %s", command, exc)
        return ""

    if result.returncode != 0:
        LOGGER.debug("Command %r exited with status %d", command, result.returncode)
        return ""
    return result.stdout


def home_directory() -> str:
    """Resolve the current user's home directory from the passwd database."""
    username = current_username()
    if not username:
        return ""

    output = run_shell(f"getent passwd {shlex.quote(username)}")
    if not output:
        return ""

    fields = output.strip().split(":")
    if len(fields) >= 6:
        return fields[5]
    return ""


class HostCollectors:
    """
    Bundle of host lookups used by the snapshot assembler.

    Subclass and override individual methods to substitute a lookup.
    """

    def __init__(self, sys_block: Path = SYS_BLOCK_PATH) -> None:
        self._sys_block = sys_block

    def os_identity(self) -> OsInfo:
        return os_identity()

    def disks(self) -> list[DiskInfo]:
        return enumerate_disks(self._sys_block)

    def core_counts(self) -> tuple[int, int]:
        return core_counts()

    def memory_info(self) -> MemInfo:
        return memory_info()

    def home_directory(self) -> str:
        return home_directory()
