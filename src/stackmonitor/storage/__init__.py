"""
Storage of exported monitoring data.

Profile snapshots and thread records are flattened into Polars DataFrames and
written as Parquet (compressed, columnar) or JSON rows, with JSON metadata
next to them.
"""

from .base import DataStorage
from .data_manager import (
    DataStorageManager,
    call_tree_frame,
    hot_spots_frame,
    threads_frame,
)
from .factory import create_storage
from .parquet_storage import JsonStorage, ParquetStorage

__all__ = [
    "DataStorage",
    "DataStorageManager",
    "JsonStorage",
    "ParquetStorage",
    "call_tree_frame",
    "create_storage",
    "hot_spots_frame",
    "threads_frame",
]
