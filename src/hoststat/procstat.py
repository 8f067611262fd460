"""CPU counter reading and utilization estimation from /proc/stat.

Only the aggregate ``cpu`` line is used. Its columns are cumulative tick
counts since boot, in kernel order::

    cpu  user nice system idle iowait irq softirq steal guest guest_nice

Utilization over an interval is the share of non-idle ticks among all ticks
elapsed between two reads::

    total_delta = total(current) - total(previous)
    idle_delta = current.idle - previous.idle
    usage = (total_delta - idle_delta) / total_delta * 100
"""

import logging
from decimal import ROUND_HALF_UP, Decimal

from hoststat.errors import StatIOError, StatParseError
from hoststat.models import CpuCounters

LOGGER = logging.getLogger(__name__)

PROC_STAT_PATH = "/proc/stat"

# Positional order of the counters following the 'cpu' label
COUNTER_FIELDS = (
    "user",
    "nice",
    "system",
    "idle",
    "iowait",
    "irq",
    "softirq",
    "steal",
    "guest",
    "guest_nice",
)

_TWO_PLACES = Decimal("0.01")


def parse_proc_stat(text: str) -> CpuCounters:
    """
    Parse the aggregate cpu line out of /proc/stat content.

    Args:
        text: Full text of the statistics file.

    Raises:
        StatParseError: If there is no ``cpu`` line, it has fewer than ten
            counters, or a counter is not a non-negative integer.
    """
    for line in text.splitlines():
        tokens = line.split()
        if not tokens or tokens[0] != "cpu":
            continue

        values = tokens[1 : len(COUNTER_FIELDS) + 1]
        if len(values) < len(COUNTER_FIELDS):
            raise StatParseError(
                f"aggregate cpu line has {len(values)} counters, expected {len(COUNTER_FIELDS)}"
            )

        counters: dict[str, int] = {}
        for name, raw in zip(COUNTER_FIELDS, values):
            if not (raw.isascii() and raw.isdigit()):
                raise StatParseError(f"invalid value {raw!r} for counter '{name}'")
            counters[name] = int(raw)
        return CpuCounters(**counters)

    raise StatParseError("no aggregate cpu line found")


def read_proc_stat(path: str = PROC_STAT_PATH) -> CpuCounters:
    """
    Read and parse the kernel statistics file.

    Raises:
        StatIOError: If the file cannot be read.
        StatParseError: If the content is malformed.
    """
    try:
        with open(path, encoding="ascii", errors="replace") as f:
            text = f.read()
    except OSError as exc:
        raise StatIOError(path, exc.strerror or str(exc)) from exc
    return parse_proc_stat(text)


def round_percent(value: float) -> float:
    """Round half away from zero to two decimal places."""
    return float(Decimal(repr(value)).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


def estimate_cpu_usage(current: CpuCounters, previous: CpuCounters) -> float:
    """
    Compute CPU utilization between two counter reads.

    Returns 0.0 whenever no ticks elapsed or the counters went backwards,
    which happens when a read spans a reboot.
    """
    total_delta = current.total - previous.total
    idle_delta = current.idle - previous.idle
    used_delta = total_delta - idle_delta

    if used_delta > 0 and total_delta > 0:
        return round_percent(used_delta / total_delta * 100)
    return 0.0
