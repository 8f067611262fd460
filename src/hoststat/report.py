"""Snapshot assembly and the report envelope."""

import logging

from hoststat.collectors import HostCollectors
from hoststat.errors import CollectorLookupError
from hoststat.models import CpuInfo, Report, SystemSnapshot

LOGGER = logging.getLogger(__name__)

SUCCESS_CODE = 200
ERROR_CODE = 500


def success_report(snapshot: SystemSnapshot) -> Report:
    """Wrap a complete snapshot."""
    return Report(code=SUCCESS_CODE, body=snapshot, error="")


def error_report(message: str, snapshot: SystemSnapshot | None = None) -> Report:
    """Wrap a partial snapshot with an error message."""
    return Report(code=ERROR_CODE, body=snapshot or SystemSnapshot(), error=message)


def assemble_report(usage: float, collectors: HostCollectors | None = None) -> Report:
    """
    Build the report for one tick.

    Lookups run in order: OS identity, disks, core counts, memory, home
    directory. A failed core-count or memory lookup stops assembly and
    returns a code 500 report that keeps whatever was already collected.

    Args:
        usage: CPU utilization percentage to embed.
        collectors: Host lookups to use. Defaults to the live host.
    """
    collectors = collectors or HostCollectors()

    os_info = collectors.os_identity()
    disks = tuple(collectors.disks())
    partial = SystemSnapshot(os=os_info, disks=disks)

    try:
        physical, logical = collectors.core_counts()
    except CollectorLookupError as exc:
        LOGGER.warning("Partial report: %s", exc)
        return error_report(str(exc), partial)

    cpu = CpuInfo(physics_core_num=physical, virtual_core_num=logical, usage=usage)
    partial = SystemSnapshot(os=os_info, disks=disks, cpu=cpu)

    try:
        mem = collectors.memory_info()
    except CollectorLookupError as exc:
        LOGGER.warning("Partial report: %s", exc)
        return error_report(str(exc), partial)

    snapshot = SystemSnapshot(
        os=os_info,
        disks=disks,
        cpu=cpu,
        mem=mem,
        home_dir=collectors.home_directory(),
    )
    return success_report(snapshot)
