"""
File storage backends built on Polars: Parquet tables, or JSON rows for
profiles small enough to be read by hand. Metadata is always JSON.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import polars as pl

from .base import DataStorage

logger = logging.getLogger(__name__)


class ParquetStorage(DataStorage):
    """
    Parquet storage for exported profile tables.

    Tables are written column-compressed; ``load_dataframe`` supports column
    pruning, which matters for large call trees.
    """

    extension = "parquet"

    def __init__(self, compression: Literal["snappy", "gzip", "brotli", "lz4", "zstd"] = "snappy"):
        self.compression = compression
        logger.debug(f"Initialized ParquetStorage with compression: {compression}")

    def save_dataframe(self, df: pl.DataFrame, path: str) -> None:
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            df.write_parquet(path, compression=self.compression)
            logger.debug(f"Saved table with {len(df)} rows to {path}")
        except Exception as e:
            logger.error(f"Failed to save table to {path}: {e}")
            raise

    def load_dataframe(self, path: str, columns: Optional[List[str]] = None) -> pl.DataFrame:
        try:
            if columns:
                df = pl.read_parquet(path, columns=columns)
            else:
                df = pl.read_parquet(path)
            logger.debug(f"Loaded table with {len(df)} rows from {path}")
            return df
        except Exception as e:
            logger.error(f"Failed to load table from {path}: {e}")
            raise

    def save_dict(self, data: Dict[str, Any], path: str) -> None:
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            logger.debug(f"Saved metadata to {path}")
        except Exception as e:
            logger.error(f"Failed to save metadata to {path}: {e}")
            raise

    def load_dict(self, path: str) -> Dict[str, Any]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except Exception as e:
            logger.error(f"Failed to load metadata from {path}: {e}")
            raise

    def file_exists(self, path: str) -> bool:
        return Path(path).exists()

    def get_file_size(self, path: str) -> int:
        try:
            return Path(path).stat().st_size
        except FileNotFoundError:
            return 0


class JsonStorage(ParquetStorage):
    """Writes tables as JSON arrays of row objects."""

    extension = "json"

    def __init__(self):
        super().__init__()

    def save_dataframe(self, df: pl.DataFrame, path: str) -> None:
        self.save_dict({"rows": df.to_dicts()}, path)
        logger.debug(f"Saved table with {len(df)} rows to {path}")

    def load_dataframe(self, path: str, columns: Optional[List[str]] = None) -> pl.DataFrame:
        df = pl.DataFrame(self.load_dict(path).get("rows", []))
        if columns and len(df):
            df = df.select(columns)
        return df
