"""Runtime settings and load helpers."""

import json
import logging
import math
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

LOGGER = logging.getLogger(__name__)

ENV_PREFIX = "HOSTSTAT_"


@dataclass
class MonitorConfig:
    interval: float = 1.0
    stat_path: str = "/proc/stat"
    max_consecutive_failures: int = 3
    log_level: str = "INFO"
    pretty: bool = False


def _merge(cfg: MonitorConfig, raw: dict[str, Any]) -> None:
    known = {f.name for f in fields(MonitorConfig)}
    for key, value in raw.items():
        if key in known:
            setattr(cfg, key, value)
        else:
            LOGGER.debug("Ignoring unknown config key %r", key)


def _from_env(environ: dict[str, str]) -> dict[str, Any]:
    raw: dict[str, Any] = {}
    for f in fields(MonitorConfig):
        value = environ.get(ENV_PREFIX + f.name.upper())
        if value is not None:
            raw[f.name] = value
    return raw


def normalize(cfg: MonitorConfig) -> MonitorConfig:
    if isinstance(cfg.pretty, str):
        cfg.pretty = cfg.pretty.strip().lower() in ("1", "true", "yes", "on")
    cfg.pretty = bool(cfg.pretty)
    interval = float(cfg.interval)
    if not math.isfinite(interval):
        raise ValueError(f"interval must be finite, got {cfg.interval!r}")
    cfg.interval = max(0.1, interval)
    cfg.max_consecutive_failures = max(0, int(cfg.max_consecutive_failures))
    cfg.log_level = str(cfg.log_level).upper()
    if not isinstance(logging.getLevelName(cfg.log_level), int):
        cfg.log_level = "INFO"
    cfg.stat_path = str(cfg.stat_path)
    return cfg


def load_config(path: Path | None = None, environ: dict[str, str] | None = None) -> MonitorConfig:
    """
    Load settings from an optional JSON file, then HOSTSTAT_* variables.

    An unreadable or malformed file falls back to defaults.
    """
    cfg = MonitorConfig()

    if path is not None:
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            LOGGER.warning("Ignoring config file %s: %s", path, exc)
            raw = {}
        if isinstance(raw, dict):
            _merge(cfg, raw)

    _merge(cfg, _from_env(dict(os.environ) if environ is None else environ))

    try:
        return normalize(cfg)
    except (TypeError, ValueError) as exc:
        LOGGER.warning("Invalid config value, using defaults: %s", exc)
        return MonitorConfig()
