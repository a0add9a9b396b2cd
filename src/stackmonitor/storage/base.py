"""
Abstract base class for snapshot storage backends.

A backend persists the tables exported from a profile snapshot (hot spots,
call tree, thread records) as Polars DataFrames, and small metadata
dictionaries next to them. The DataStorageManager only talks to this
interface, so the table format is chosen by configuration.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import polars as pl


class DataStorage(ABC):
    """Abstract base class for storage backends."""

    # File extension of the tables written by this backend, without the dot.
    extension: str = ""

    @abstractmethod
    def save_dataframe(self, df: pl.DataFrame, path: str) -> None:
        """
        Save a table to the specified path, creating parent directories.

        Args:
            df: Table to save
            path: File path to save to
        """
        pass

    @abstractmethod
    def load_dataframe(self, path: str, columns: Optional[List[str]] = None) -> pl.DataFrame:
        """
        Load a table from the specified path.

        Args:
            path: File path to load from
            columns: Optional list of columns to load

        Returns:
            The loaded table
        """
        pass

    @abstractmethod
    def save_dict(self, data: Dict[str, Any], path: str) -> None:
        """Save metadata to the specified path."""
        pass

    @abstractmethod
    def load_dict(self, path: str) -> Dict[str, Any]:
        """Load metadata from the specified path."""
        pass

    @abstractmethod
    def file_exists(self, path: str) -> bool:
        pass

    @abstractmethod
    def get_file_size(self, path: str) -> int:
        """Size of a file in bytes, 0 if it does not exist."""
        pass
