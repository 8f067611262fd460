"""hoststat - command line entry point."""

import argparse
import math
import os
import sys
import time
from collections.abc import Callable
from pathlib import Path

from hoststat.config import MonitorConfig, load_config, normalize
from hoststat.errors import HoststatError, StatIOError, StatParseError
from hoststat.logging_setup import configure_logging
from hoststat.models import CpuInfo, Report, SystemSnapshot
from hoststat.monitor import SamplingLoop
from hoststat.report import assemble_report, success_report


def finite_float(value: str) -> float:
    """argparse type for a finite number of seconds."""
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}") from None
    if not math.isfinite(number):
        raise argparse.ArgumentTypeError(f"must be a finite number: {value!r}")
    return number


def _silence_stdout() -> None:
    """Point stdout at /dev/null so the interpreter's final flush cannot fail."""
    try:
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())
    except (OSError, ValueError):
        pass


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hoststat",
        description="Sample Linux host metrics and print one JSON report per tick.",
    )
    parser.add_argument("--config", type=Path, help="JSON settings file")
    parser.add_argument("--interval", type=finite_float, help="seconds between ticks (default 1.0)")
    parser.add_argument("--stat-path", help="kernel statistics file (default /proc/stat)")
    parser.add_argument(
        "--max-failures",
        type=int,
        help="consecutive failed ticks tolerated before exiting, 0 for unlimited",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="stderr log level",
    )
    parser.add_argument("--pretty", action="store_true", default=None, help="indent JSON output")
    parser.add_argument("--once", action="store_true", help="emit a single report and exit")
    parser.add_argument("--cpu-only", action="store_true", help="print only the CPU usage line")
    return parser


def resolve_config(args: argparse.Namespace) -> MonitorConfig:
    """Layer command line flags over the loaded settings."""
    cfg = load_config(args.config)
    overrides = {
        "interval": args.interval,
        "stat_path": args.stat_path,
        "max_consecutive_failures": args.max_failures,
        "log_level": args.log_level,
        "pretty": args.pretty,
    }
    for key, value in overrides.items():
        if value is not None:
            setattr(cfg, key, value)
    return normalize(cfg)


def cpu_only_report(usage: float) -> Report:
    """Report carrying only the usage figure, no host lookups."""
    return success_report(SystemSnapshot(cpu=CpuInfo(usage=usage)))


def json_emitter(pretty: bool = False) -> Callable[[Report], None]:
    indent = 2 if pretty else None

    def emit(report: Report) -> None:
        print(report.to_json(indent=indent), flush=True)

    return emit


def cpu_emitter(report: Report) -> None:
    print(f"CPU Usage: {report.body.cpu.usage:.2f}%", flush=True)


def main(argv: list[str] | None = None) -> int:
    """Entry point for the hoststat command."""
    args = build_parser().parse_args(argv)
    cfg = resolve_config(args)
    logger = configure_logging(cfg.log_level)

    if args.cpu_only:
        emit, assembler = cpu_emitter, cpu_only_report
    else:
        emit, assembler = json_emitter(cfg.pretty), assemble_report

    try:
        loop = SamplingLoop(
            emit,
            interval=cfg.interval,
            stat_path=cfg.stat_path,
            max_consecutive_failures=cfg.max_consecutive_failures,
            assembler=assembler,
        )
    except HoststatError as exc:
        logger.error("Initial counter read failed: %s", exc)
        return 1

    logger.info("Sampling %s every %.1fs", cfg.stat_path, loop.interval)
    try:
        if args.once:
            time.sleep(loop.interval)
            loop.tick()
        else:
            loop.run()
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")
    except BrokenPipeError:
        # Reader went away, e.g. `hoststat | head -1`
        _silence_stdout()
    except (StatIOError, StatParseError) as exc:
        logger.error("Giving up: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
