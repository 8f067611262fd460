"""Tests for the SamplingLoop class."""

import sys
import time
from dataclasses import replace

import pytest

from hoststat.errors import StatIOError, StatParseError
from hoststat.models import CpuCounters, CpuInfo, Report, SystemSnapshot
from hoststat.monitor import SamplingLoop
from hoststat.report import success_report

BASE = CpuCounters(
    user=1000, nice=200, system=300, idle=5000, iowait=50, irq=10, softirq=5, steal=0, guest=0, guest_nice=0
)


def busy(counters: CpuCounters, used: int, idle: int) -> CpuCounters:
    """Advance counters by some busy and idle ticks."""
    return replace(counters, user=counters.user + used, idle=counters.idle + idle)


class ScriptedReader:
    """Returns (or raises) the given items one per read."""

    def __init__(self, *items) -> None:
        self._items = list(items)
        self.paths: list[str] = []

    def __call__(self, path: str) -> CpuCounters:
        self.paths.append(path)
        item = self._items.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def usage_only(usage: float) -> Report:
    return success_report(SystemSnapshot(cpu=CpuInfo(usage=usage)))


class TestSamplingLoop:
    """Tests for SamplingLoop."""

    def test_initial_read_at_construction(self):
        """Test the loop takes its first read before any tick."""
        reader = ScriptedReader(BASE)
        loop = SamplingLoop([].append, stat_path="/tmp/stat", assembler=usage_only, reader=reader)

        assert loop.previous == BASE
        assert reader.paths == ["/tmp/stat"]

    def test_initial_read_failure_is_fatal(self):
        """Test a failed first read propagates out of the constructor."""
        reader = ScriptedReader(StatIOError("/proc/stat", "No such file or directory"))
        with pytest.raises(StatIOError):
            SamplingLoop([].append, assembler=usage_only, reader=reader)

    def test_initial_parse_failure_is_fatal(self):
        """Test a malformed first read propagates out of the constructor."""
        reader = ScriptedReader(StatParseError("no aggregate cpu line found"))
        with pytest.raises(StatParseError):
            SamplingLoop([].append, assembler=usage_only, reader=reader)

    def test_tick_emits_and_advances(self):
        """Test a tick emits the estimate and stores the current read."""
        current = busy(BASE, used=100, idle=50)
        emitted: list[Report] = []
        loop = SamplingLoop(emitted.append, assembler=usage_only, reader=ScriptedReader(BASE, current))

        report = loop.tick()

        assert emitted == [report]
        assert report.body.cpu.usage == 66.67
        assert loop.previous == current

    def test_ticks_chain_previous(self):
        """Test each tick is measured against the one before it."""
        first = busy(BASE, used=100, idle=50)
        second = busy(first, used=25, idle=75)
        emitted: list[Report] = []
        loop = SamplingLoop(emitted.append, assembler=usage_only, reader=ScriptedReader(BASE, first, second))

        loop.tick()
        loop.tick()

        assert [r.body.cpu.usage for r in emitted] == [66.67, 25.0]

    def test_failed_tick_keeps_previous(self):
        """Test a failed read emits nothing and leaves previous untouched."""
        emitted: list[Report] = []
        reader = ScriptedReader(BASE, StatParseError("no aggregate cpu line found"))
        loop = SamplingLoop(emitted.append, assembler=usage_only, reader=reader)

        with pytest.raises(StatParseError):
            loop.tick()

        assert emitted == []
        assert loop.previous == BASE

    def test_emit_happens_before_previous_is_replaced(self):
        """Test previous still holds the older read while emitting."""
        current = busy(BASE, used=10, idle=10)
        seen: list[CpuCounters] = []
        loop = SamplingLoop(
            lambda report: seen.append(loop.previous),
            assembler=usage_only,
            reader=ScriptedReader(BASE, current),
        )

        loop.tick()

        assert seen == [BASE]
        assert loop.previous == current

    def test_default_interval(self):
        """Test the default cadence is one second."""
        loop = SamplingLoop([].append, assembler=usage_only, reader=ScriptedReader(BASE))
        assert loop.interval == 1.0

    def test_interval_minimum(self):
        """Test interval has a minimum value."""
        loop = SamplingLoop([].append, interval=0.0, assembler=usage_only, reader=ScriptedReader(BASE))
        assert loop.interval == 0.1

        loop.interval = 0.01
        assert loop.interval >= 0.1

        loop.interval = 2.5
        assert loop.interval == 2.5


class TestSamplingLoopRun:
    """Tests for SamplingLoop.run."""

    def test_run_until_stopped(self):
        """Test run ticks in order and returns once stopped."""
        reads = [busy(BASE, used=10 * i, idle=10) for i in range(1, 4)]
        emitted: list[Report] = []

        def emit(report: Report) -> None:
            emitted.append(report)
            if len(emitted) == 3:
                loop.stop()

        loop = SamplingLoop(
            emit, interval=0.1, assembler=usage_only, reader=ScriptedReader(BASE, *reads)
        )
        loop.run()

        assert len(emitted) == 3
        assert loop.previous == reads[-1]

    def test_run_waits_between_ticks(self):
        """Test ticks are spaced by the interval."""
        stamps: list[float] = []

        def emit(report: Report) -> None:
            stamps.append(time.monotonic())
            if len(stamps) == 2:
                loop.stop()

        loop = SamplingLoop(
            emit,
            interval=0.2,
            assembler=usage_only,
            reader=ScriptedReader(BASE, busy(BASE, 1, 1), busy(BASE, 2, 2)),
        )
        start = time.monotonic()
        loop.run()

        assert stamps[0] - start >= 0.15
        assert stamps[1] - stamps[0] >= 0.15

    def test_run_skips_failed_ticks(self):
        """Test a failed read is skipped and the next tick succeeds."""
        good = busy(BASE, used=100, idle=50)
        emitted: list[Report] = []

        def emit(report: Report) -> None:
            emitted.append(report)
            loop.stop()

        reader = ScriptedReader(BASE, StatIOError("/proc/stat", "Input/output error"), good)
        loop = SamplingLoop(emit, interval=0.1, assembler=usage_only, reader=reader)
        loop.run()

        assert [r.body.cpu.usage for r in emitted] == [66.67]

    def test_run_gives_up_after_consecutive_failures(self):
        """Test run re-raises once the failure bound is reached."""
        failure = StatParseError("no aggregate cpu line found")
        reader = ScriptedReader(BASE, failure, failure, failure)
        loop = SamplingLoop(
            [].append, interval=0.1, max_consecutive_failures=3, assembler=usage_only, reader=reader
        )

        with pytest.raises(StatParseError):
            loop.run()

    def test_success_resets_failure_count(self):
        """Test failures separated by a good tick do not accumulate."""
        failure = StatIOError("/proc/stat", "Input/output error")
        emitted: list[Report] = []

        def emit(report: Report) -> None:
            emitted.append(report)
            if len(emitted) == 2:
                loop.stop()

        reader = ScriptedReader(BASE, failure, busy(BASE, 1, 1), failure, busy(BASE, 2, 2))
        loop = SamplingLoop(emit, interval=0.1, max_consecutive_failures=2, assembler=usage_only, reader=reader)
        loop.run()

        assert len(emitted) == 2

    def test_stop_before_run(self):
        """Test a stopped loop returns without ticking."""
        emitted: list[Report] = []
        loop = SamplingLoop(emitted.append, interval=0.1, assembler=usage_only, reader=ScriptedReader(BASE))
        loop.stop()
        loop.run()
        assert emitted == []


@pytest.mark.skipif(not sys.platform.startswith("linux"), reason="requires /proc/stat")
class TestLiveSampling:
    """Tests against the live kernel statistics file."""

    def test_live_tick(self):
        """Test a real tick produces a full report."""
        emitted: list[Report] = []
        loop = SamplingLoop(emitted.append, interval=0.1)

        time.sleep(0.2)
        report = loop.tick()

        assert emitted == [report]
        assert 0.0 <= report.body.cpu.usage <= 100.0
        assert report.body.cpu.virtual_core_num >= 1
        assert report.code in (200, 500)
