"""
Process-wide configuration.

The configuration is read from config.toml on first access and cached until
``clear_config_cache()`` or ``set_config_path()``. The CLI points it at an
alternative file with ``--config``.
"""

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional

from ..models.config import AppConfig
from ..validation import ErrorSeverity, ValidationError, handle_config_error
from .loader import load_main_config
from .validators import validate_monitor_config, validate_profiler_config, validate_storage_config

logger = logging.getLogger(__name__)

_CONFIG: Optional[AppConfig] = None

# <repo>/conf/config.toml
_CONFIG_FILE_PATH = Path(__file__).parent.parent.parent.parent / "conf" / "config.toml"


def set_config_path(config_path: Path) -> None:
    """Use another config.toml; the next get_config() reloads."""
    global _CONFIG_FILE_PATH, _CONFIG
    _CONFIG_FILE_PATH = Path(config_path)
    _CONFIG = None
    logger.info(f"Configuration path set to: {config_path}")


def clear_config_cache() -> None:
    global _CONFIG
    _CONFIG = None
    logger.debug("Configuration cache cleared")


def _load_config(config_path: Path) -> AppConfig:
    try:
        tables = load_main_config(config_path)
        app_config = AppConfig(
            profiler=validate_profiler_config(tables["profiler"]),
            monitor=validate_monitor_config(tables["monitor"]),
            storage=validate_storage_config(tables["storage"]),
        )
    except (FileNotFoundError, ValidationError, tomllib.TOMLDecodeError) as e:
        handle_config_error(
            error=e,
            context=f"loading {config_path}",
            severity=ErrorSeverity.CRITICAL,
            logger=logger,
        )
        raise

    profiler = app_config.profiler
    logger.info(
        f"Configuration loaded: sampling every {profiler.sampling_period_ms}ms, "
        f"packages [{', '.join(profiler.profiled_packages)}], "
        f"thread refresh every {app_config.monitor.update_period_ms}ms, "
        f"{app_config.storage.format} export"
    )
    return app_config


def get_config() -> AppConfig:
    """
    The application configuration, loaded on first use.

    Raises:
        FileNotFoundError: If the configuration file is missing
        ValidationError: If a setting is invalid
        tomllib.TOMLDecodeError: If the TOML file is malformed
    """
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = _load_config(_CONFIG_FILE_PATH)
    return _CONFIG


def is_config_loaded() -> bool:
    return _CONFIG is not None


def get_config_info() -> Dict[str, Any]:
    """Summary of the configuration state, for diagnostics."""
    info: Dict[str, Any] = {
        "config_loaded": is_config_loaded(),
        "config_path": str(_CONFIG_FILE_PATH),
        "sampling_period_ms": None,
        "profiled_packages": [],
        "update_period_ms": None,
        "storage_format": None,
    }
    if _CONFIG is not None:
        info.update(
            sampling_period_ms=_CONFIG.profiler.sampling_period_ms,
            profiled_packages=list(_CONFIG.profiler.profiled_packages),
            update_period_ms=_CONFIG.monitor.update_period_ms,
            storage_format=_CONFIG.storage.format,
        )
    return info
