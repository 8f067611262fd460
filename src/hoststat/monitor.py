"""Periodic sampling loop for hoststat."""

import logging
import threading
from collections.abc import Callable

from hoststat.errors import StatIOError, StatParseError
from hoststat.models import CpuCounters, Report
from hoststat.procstat import PROC_STAT_PATH, estimate_cpu_usage, read_proc_stat
from hoststat.report import assemble_report

LOGGER = logging.getLogger(__name__)

MIN_INTERVAL = 0.1


class SamplingLoop:
    """
    Drives one counter read, estimate, assemble and emit cycle per tick.

    The loop owns the previous counter read. It is taken once at
    construction and replaced only after a tick has emitted its report, so
    the estimator always receives two complete reads.
    """

    def __init__(
        self,
        emit: Callable[[Report], None],
        interval: float = 1.0,
        stat_path: str = PROC_STAT_PATH,
        max_consecutive_failures: int = 3,
        assembler: Callable[[float], Report] = assemble_report,
        reader: Callable[[str], CpuCounters] = read_proc_stat,
    ) -> None:
        """
        Initialize the SamplingLoop and take the initial counter read.

        Args:
            emit: Called with each report, in tick order.
            interval: Seconds between ticks. Default 1.0s.
            stat_path: Location of the kernel statistics file.
            max_consecutive_failures: Failed ticks tolerated in a row before
                run() gives up. 0 means never give up.
            assembler: Turns a usage percentage into a report.
            reader: Reads counters from stat_path.

        Raises:
            StatIOError: If the initial read fails.
            StatParseError: If the initial read is malformed.
        """
        self._emit = emit
        self._interval = max(MIN_INTERVAL, interval)
        self._stat_path = stat_path
        self._max_failures = max(0, max_consecutive_failures)
        self._assembler = assembler
        self._reader = reader
        self._stop_event = threading.Event()
        self._previous = reader(stat_path)

    @property
    def interval(self) -> float:
        """Get the tick interval."""
        return self._interval

    @interval.setter
    def interval(self, value: float) -> None:
        """Set the tick interval."""
        self._interval = max(MIN_INTERVAL, value)

    @property
    def previous(self) -> CpuCounters:
        """The last successfully read counters."""
        return self._previous

    def tick(self) -> Report:
        """
        Run one sampling cycle immediately.

        A failed read propagates and leaves the previous counters in place.
        """
        current = self._reader(self._stat_path)
        usage = estimate_cpu_usage(current, self._previous)
        LOGGER.debug("CPU usage %.2f%%", usage)

        report = self._assembler(usage)
        self._emit(report)
        self._previous = current
        return report

    def run(self) -> None:
        """
        Tick every interval until stop() is called.

        Failed reads skip the tick. After max_consecutive_failures failures in
        a row the last error is re-raised.
        """
        failures = 0
        while not self._stop_event.wait(timeout=self._interval):
            try:
                self.tick()
            except (StatIOError, StatParseError) as exc:
                failures += 1
                LOGGER.error("Skipping tick (%d consecutive failures): %s", failures, exc)
                if self._max_failures and failures >= self._max_failures:
                    raise
                continue
            failures = 0

    def stop(self) -> None:
        """Ask run() to return before the next tick."""
        self._stop_event.set()
