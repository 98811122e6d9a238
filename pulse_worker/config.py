"""Configuration file loading and defaults."""

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class BLEConfig:
    scan_timeout: float = 5.0
    connect_timeout: float = 10.0
    name_filter: str = ""


@dataclass
class MonitorConfig:
    poll_interval: float = 0.1
    stop_timeout: float = 0.0  # 0 waits for the worker indefinitely


@dataclass
class LogConfig:
    level: str = "INFO"


@dataclass
class Config:
    ble: BLEConfig = field(default_factory=BLEConfig)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    log: LogConfig = field(default_factory=LogConfig)


def config_paths() -> list[Path]:
    """Candidate config files, in priority order."""
    return [
        Path("./config.toml"),
        Path.home() / ".config" / "pulse-worker" / "config.toml",
    ]


def load_config() -> Config:
    """Load config from file, with defaults for missing values."""
    for path in config_paths():
        if path.exists():
            try:
                with open(path, "rb") as f:
                    data = tomllib.load(f)
                return _parse_config(data)
            except tomllib.TOMLDecodeError as e:
                logger.warning("Failed to parse config '%s': %s. Using defaults.", path, e)
                return Config()

    return Config()


def _parse_config(data: dict) -> Config:
    """Parse TOML dict into Config dataclass.

    Uses dataclass defaults for missing values. A poll interval above
    100ms is clamped so stop requests are still seen promptly.
    """
    config = Config(
        ble=BLEConfig(**data.get("ble", {})),
        monitor=MonitorConfig(**data.get("monitor", {})),
        log=LogConfig(**data.get("log", {})),
    )
    if config.monitor.poll_interval > 0.1:
        logger.warning("poll_interval %.3fs too large, using 0.1s", config.monitor.poll_interval)
        config.monitor.poll_interval = 0.1
    return config
