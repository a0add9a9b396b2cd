"""
Configuration data models.

This module contains the configuration structures for the sampling profiler,
the thread monitor and the storage backend, as loaded from `config.toml`.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, TYPE_CHECKING

if TYPE_CHECKING:
    from ..config.storage_config import StorageConfig

DEFAULT_SAMPLING_PERIOD_MS = 50
DEFAULT_UPDATE_PERIOD_MS = 1000
DEFAULT_EXCLUDED_THREAD_PREFIXES = ["RMI ", "JMX ", "stackmonitor-"]


@dataclass
class ProfilerConfig:
    """
    Configuration for the sampling profiler, the `[profiler]` table.
    """

    # Timer period between two sampling ticks, in milliseconds.
    sampling_period_ms: int = DEFAULT_SAMPLING_PERIOD_MS
    # Package specs whose frames are kept ("com.foo", "com.foo.*").
    profiled_packages: List[str] = field(default_factory=list)
    # Threads whose name starts with one of these are never sampled.
    excluded_thread_prefixes: List[str] = field(
        default_factory=lambda: list(DEFAULT_EXCLUDED_THREAD_PREFIXES)
    )


@dataclass
class MonitorConfig:
    """
    Configuration for the thread-state refresh, the `[monitor]` table.
    """

    # Timer period between two thread refreshes, in milliseconds.
    update_period_ms: int = DEFAULT_UPDATE_PERIOD_MS
    # Directory where exported snapshots are written.
    log_root_dir: Path = Path("logs")


@dataclass
class AppConfig:
    """
    The root configuration object that aggregates all loaded settings.
    """

    profiler: ProfilerConfig
    monitor: MonitorConfig
    storage: "StorageConfig"
