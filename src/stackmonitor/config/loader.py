"""
Reading of config.toml.

The file holds three tables, ``[profiler]``, ``[monitor]`` and ``[storage]``.
Each may be omitted; its settings then take their defaults.
"""

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict

from ..validation import ErrorSeverity, ValidationError, handle_config_error

logger = logging.getLogger(__name__)

CONFIG_TABLES = ("profiler", "monitor", "storage")


def load_toml_file(file_path: Path, description: str = "configuration file") -> Dict[str, Any]:
    """
    Parse a TOML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the file is malformed
    """
    file_path = Path(file_path)
    logger.info(f"Loading {description} from: {file_path}")

    if not file_path.is_file():
        raise FileNotFoundError(f"{description} not found: {file_path}")

    try:
        with open(file_path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        handle_config_error(
            error=e,
            context=f"parsing {description} {file_path.name}",
            severity=ErrorSeverity.CRITICAL,
            logger=logger,
        )
        raise


def load_main_config(config_path: Path) -> Dict[str, Dict[str, Any]]:
    """
    Load config.toml and return its tables by name.

    Missing tables come back empty. Unknown top-level keys are ignored with a
    warning.

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the file is malformed
        ValidationError: If a known key is not a table
    """
    data = load_toml_file(config_path, "main configuration file")

    unknown = sorted(set(data) - set(CONFIG_TABLES))
    if unknown:
        logger.warning(f"Ignoring unknown configuration tables: {', '.join(unknown)}")

    tables: Dict[str, Dict[str, Any]] = {}
    for name in CONFIG_TABLES:
        table = data.get(name, {})
        if not isinstance(table, dict):
            raise ValidationError(
                f"[{name}] must be a table, got {type(table).__name__}",
                field_name=name,
                value=table,
            )
        tables[name] = table
    return tables
