"""
Configuration validation utilities.

This module turns the raw tables of config.toml into validated configuration
objects, reporting the dotted field name of anything that is out of range.
"""

import logging
from pathlib import Path
from typing import Any, Dict

from ..models.config import (
    DEFAULT_EXCLUDED_THREAD_PREFIXES,
    DEFAULT_SAMPLING_PERIOD_MS,
    DEFAULT_UPDATE_PERIOD_MS,
    MonitorConfig,
    ProfilerConfig,
)
from ..validation import (
    ValidationError,
    validate_enum_choice,
    validate_package_specs,
    validate_positive_integer,
    validate_thread_prefixes,
)
from .storage_config import SUPPORTED_COMPRESSIONS, SUPPORTED_FORMATS, StorageConfig

logger = logging.getLogger(__name__)

MIN_SAMPLING_PERIOD_MS = 1
MAX_SAMPLING_PERIOD_MS = 60_000
MIN_UPDATE_PERIOD_MS = 100
MAX_UPDATE_PERIOD_MS = 600_000


def validate_sampling_period(value: Any, field_name: str = "profiler.sampling_period_ms") -> int:
    """Validate a sampling period in milliseconds."""
    return validate_positive_integer(
        value,
        min_value=MIN_SAMPLING_PERIOD_MS,
        max_value=MAX_SAMPLING_PERIOD_MS,
        field_name=field_name,
    )


def validate_profiler_config(profiler_data: Dict[str, Any]) -> ProfilerConfig:
    """
    Validate and create a ProfilerConfig from the `[profiler]` table.

    Raises:
        ValidationError: If validation fails
    """
    sampling_period_ms = validate_sampling_period(
        profiler_data.get("sampling_period_ms", DEFAULT_SAMPLING_PERIOD_MS)
    )

    profiled_packages = validate_package_specs(
        profiler_data.get("profiled_packages", []),
        field_name="profiler.profiled_packages",
    )
    if not profiled_packages:
        logger.warning(
            "profiler.profiled_packages is empty; no frame will be profiled "
            "until packages are set"
        )

    excluded_thread_prefixes = validate_thread_prefixes(
        profiler_data.get("excluded_thread_prefixes", DEFAULT_EXCLUDED_THREAD_PREFIXES),
        field_name="profiler.excluded_thread_prefixes",
    )

    return ProfilerConfig(
        sampling_period_ms=sampling_period_ms,
        profiled_packages=profiled_packages,
        excluded_thread_prefixes=excluded_thread_prefixes,
    )


def validate_monitor_config(monitor_data: Dict[str, Any]) -> MonitorConfig:
    """
    Validate and create a MonitorConfig from the `[monitor]` table.

    Raises:
        ValidationError: If validation fails
    """
    update_period_ms = validate_positive_integer(
        monitor_data.get("update_period_ms", DEFAULT_UPDATE_PERIOD_MS),
        min_value=MIN_UPDATE_PERIOD_MS,
        max_value=MAX_UPDATE_PERIOD_MS,
        field_name="monitor.update_period_ms",
    )

    log_root_dir_str = monitor_data.get("log_root_dir", "logs")
    if not isinstance(log_root_dir_str, str) or not log_root_dir_str.strip():
        raise ValidationError(
            "monitor.log_root_dir must be a non-empty string",
            field_name="monitor.log_root_dir",
            value=log_root_dir_str,
        )

    return MonitorConfig(
        update_period_ms=update_period_ms,
        log_root_dir=Path(log_root_dir_str),
    )


def validate_storage_config(storage_data: Dict[str, Any]) -> StorageConfig:
    """
    Validate and create a StorageConfig from the `[storage]` table.

    Raises:
        ValidationError: If validation fails
    """
    format_type = validate_enum_choice(
        storage_data.get("format", "parquet"),
        valid_choices=list(SUPPORTED_FORMATS),
        field_name="storage.format",
    )
    compression = validate_enum_choice(
        storage_data.get("compression", "snappy"),
        valid_choices=list(SUPPORTED_COMPRESSIONS),
        field_name="storage.compression",
    )
    return StorageConfig.from_dict({"format": format_type, "compression": compression})
