"""
Tabular export of profile snapshots and thread records.

DataStorageManager flattens the published models into Polars DataFrames and
persists them with the configured storage backend:

- hot_spots: one row per (thread, method)
- call_tree: one row per call-tree node, identified by its path
- threads: one row per thread record, with its dependency annotations
- metadata.json: snapshot version, timestamp and per-thread totals
"""

import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import polars as pl

from ..config import StorageConfig, get_config
from ..models.snapshot import ProfileSnapshot
from ..models.threads import ThreadElement
from .factory import create_storage

logger = logging.getLogger(__name__)

PATH_SEPARATOR = " > "

HOT_SPOTS_SCHEMA = {
    "thread": pl.Utf8,
    "method": pl.Utf8,
    "total_time_ms": pl.Int64,
    "invocation_count": pl.Int64,
    "thread_total_time_ms": pl.Int64,
}

CALL_TREE_SCHEMA = {
    "thread": pl.Utf8,
    "path": pl.Utf8,
    "parent_path": pl.Utf8,
    "depth": pl.Int64,
    "method": pl.Utf8,
    "total_time_ms": pl.Int64,
    "self_time_ms": pl.Int64,
    "invocation_count": pl.Int64,
}

THREADS_SCHEMA = {
    "thread": pl.Utf8,
    "thread_id": pl.Int64,
    "state": pl.Utf8,
    "cpu_usage": pl.Float64,
    "deadlocked": pl.Boolean,
    "waited_resource": pl.Utf8,
    "held_resources": pl.List(pl.Utf8),
    "owner_status": pl.Utf8,
    "owner": pl.Utf8,
}


def _columns(schema: Mapping[str, Any]) -> Dict[str, List[Any]]:
    return {name: [] for name in schema}


def hot_spots_frame(snapshot: ProfileSnapshot) -> pl.DataFrame:
    """Hot-spot table of a snapshot, sorted by thread then descending time."""
    data = _columns(HOT_SPOTS_SCHEMA)
    for thread_name, root in snapshot.hot_spot_threads.items():
        for method in root.children.values():
            data["thread"].append(thread_name)
            data["method"].append(method.name)
            data["total_time_ms"].append(method.total_time)
            data["invocation_count"].append(method.invocation_count)
            data["thread_total_time_ms"].append(root.total_time)
    df = pl.DataFrame(data, schema=HOT_SPOTS_SCHEMA)
    return df.sort(["thread", "total_time_ms"], descending=[False, True])


def call_tree_frame(snapshot: ProfileSnapshot) -> pl.DataFrame:
    """Call-tree table of a snapshot, depth-first per thread."""
    data = _columns(CALL_TREE_SCHEMA)
    for thread_name, root in snapshot.call_tree_threads.items():
        for top in root.children.values():
            for node in top.iter_nodes():
                path = node.path()
                data["thread"].append(thread_name)
                data["path"].append(PATH_SEPARATOR.join(path))
                data["parent_path"].append(PATH_SEPARATOR.join(path[:-1]) or None)
                data["depth"].append(len(path) - 1)
                data["method"].append(node.name)
                data["total_time_ms"].append(node.total_time)
                data["self_time_ms"].append(node.self_time)
                data["invocation_count"].append(node.invocation_count)
    return pl.DataFrame(data, schema=CALL_TREE_SCHEMA)


def threads_frame(threads: Mapping[str, ThreadElement]) -> pl.DataFrame:
    """Thread records with their dependency annotations."""
    data = _columns(THREADS_SCHEMA)
    for thread_name, element in threads.items():
        data["thread"].append(thread_name)
        data["thread_id"].append(element.thread_id)
        data["state"].append(element.state)
        data["cpu_usage"].append(float(element.cpu_usage))
        data["deadlocked"].append(element.deadlocked)
        data["waited_resource"].append(element.waited_resource)
        data["held_resources"].append(list(element.held_resources))
        data["owner_status"].append(element.owner.status.value if element.owner else None)
        data["owner"].append(element.owner.describe() if element.owner else None)
    return pl.DataFrame(data, schema=THREADS_SCHEMA)


class DataStorageManager:
    """
    Writes and reads exported monitoring tables in one output directory.
    """

    TABLES = ("hot_spots", "call_tree", "threads")

    def __init__(self, output_dir: Path, storage_config: Optional[StorageConfig] = None):
        """
        Args:
            output_dir: Directory where tables are written
            storage_config: Backend settings, defaults to the ``[storage]``
                table of the loaded configuration
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

        if storage_config is None:
            storage_config = get_config().storage
        self.storage_format = storage_config.format
        self.compression = storage_config.compression
        self.storage = create_storage(self.storage_format, self.compression)

        logger.debug(f"Initialized DataStorageManager with format: {self.storage_format}")

    def table_path(self, table: str) -> Path:
        return self.output_dir / f"{table}.{self.storage.extension}"

    def save_profile(self, snapshot: ProfileSnapshot, metadata: Optional[Dict[str, Any]] = None) -> None:
        """
        Save the hot-spot and call-tree tables of a snapshot plus its metadata.

        Args:
            snapshot: Snapshot to export
            metadata: Extra entries merged into metadata.json
        """
        if snapshot.is_empty():
            logger.warning("Profile snapshot is empty, nothing profiled was sampled")

        try:
            self.storage.save_dataframe(hot_spots_frame(snapshot), str(self.table_path("hot_spots")))
            self.storage.save_dataframe(call_tree_frame(snapshot), str(self.table_path("call_tree")))
            self._save_metadata(snapshot, metadata or {})
        except Exception as e:
            logger.error(f"Error saving profile snapshot: {e}", exc_info=True)
            raise

        logger.info(f"Saved profile snapshot {snapshot.version} to: {self.output_dir}")

    def save_threads(self, threads: Mapping[str, ThreadElement]) -> None:
        """Save the thread records table."""
        path = self.table_path("threads")
        self.storage.save_dataframe(threads_frame(threads), str(path))
        logger.info(f"Saved {len(threads)} thread records to: {path}")

    def _save_metadata(self, snapshot: ProfileSnapshot, extra: Dict[str, Any]) -> None:
        metadata: Dict[str, Any] = {
            "version": snapshot.version,
            "timestamp": snapshot.timestamp,
            "exported_at": time.strftime("%Y-%m-%d %H:%M:%S"),
            "storage_format": self.storage_format,
            "threads": {
                name: {
                    "total_time_ms": root.total_time,
                    "cpu_time_ms": root.cpu_time,
                    "methods": len(root.children),
                }
                for name, root in snapshot.hot_spot_threads.items()
            },
        }
        metadata.update(extra)
        self.storage.save_dict(metadata, str(self.output_dir / "metadata.json"))

    def load_table(self, table: str, columns: Optional[List[str]] = None) -> pl.DataFrame:
        """
        Load an exported table.

        Raises:
            FileNotFoundError: If the table has not been written
        """
        path = self.table_path(table)
        if not self.storage.file_exists(str(path)):
            raise FileNotFoundError(f"No {table} table found in {self.output_dir}")
        return self.storage.load_dataframe(str(path), columns)

    def load_metadata(self) -> Dict[str, Any]:
        return self.storage.load_dict(str(self.output_dir / "metadata.json"))

    def get_storage_info(self) -> Dict[str, Any]:
        """Storage settings and the size of every table present."""
        info: Dict[str, Any] = {
            "storage_format": self.storage_format,
            "compression": self.compression,
            "output_dir": str(self.output_dir),
            "files": {},
        }
        for table in self.TABLES:
            path = self.table_path(table)
            if path.exists():
                info["files"][path.name] = {
                    "size_bytes": self.storage.get_file_size(str(path)),
                    "exists": True,
                }
        return info
