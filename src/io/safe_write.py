#!/usr/bin/env python3
"""
Safe Write Operations with Atomic Writes and Checksums

Engine outputs are written to a temporary file next to the destination,
checksummed, and renamed into place.
"""

import hashlib
import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

import pandas as pd

from src.utils.json_safety import to_json_safe
from src.utils.logger import get_logger


def compute_file_checksum(file_path: Path, algorithm: str = 'md5') -> str:
    """
    Compute checksum for a file.

    Args:
        file_path: Path to the file
        algorithm: Hash algorithm ('md5', 'sha1', 'sha256')

    Returns:
        Hexadecimal checksum string
    """
    hash_obj = hashlib.new(algorithm)

    with open(file_path, 'rb') as f:
        for chunk in iter(lambda: f.read(4096), b""):
            hash_obj.update(chunk)

    return hash_obj.hexdigest()


def _atomic_write(path: Union[str, Path], fmt: str, writer: Callable[[Path], None],
                  logger: Optional[logging.Logger]) -> Dict[str, Any]:
    if logger is None:
        logger = get_logger(__name__)

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_suffix(path.suffix + '.tmp')

    try:
        writer(temp_path)

        checksum = compute_file_checksum(temp_path)
        size_bytes = temp_path.stat().st_size

        temp_path.replace(path)

        logger.info(f"Wrote {fmt.upper()}: {path} ({size_bytes:,} bytes, MD5: {checksum})")
        return {
            "path": path,
            "checksum": checksum,
            "size_bytes": size_bytes,
            "format": fmt
        }

    except Exception as e:
        if temp_path.exists():
            temp_path.unlink()
        logger.error(f"Failed to write {fmt.upper()} to {path}: {e}")
        raise


def safe_write_csv(df: pd.DataFrame, path: Union[str, Path],
                   logger: Optional[logging.Logger] = None) -> Dict[str, Any]:
    """Atomically write a DataFrame as CSV and return path/checksum/size."""
    return _atomic_write(path, 'csv', lambda p: df.to_csv(p, index=False), logger)


def safe_write_parquet(df: pd.DataFrame, path: Union[str, Path],
                       logger: Optional[logging.Logger] = None) -> Dict[str, Any]:
    """Atomically write a DataFrame as Parquet and return path/checksum/size."""
    return _atomic_write(path, 'parquet', lambda p: df.to_parquet(p, index=False), logger)


def safe_write_json(data: Any, path: Union[str, Path],
                    logger: Optional[logging.Logger] = None) -> Dict[str, Any]:
    """Atomically write JSON (timestamps, numpy scalars and paths converted)."""
    def _dump(p: Path) -> None:
        with open(p, 'w', encoding='utf-8') as f:
            json.dump(to_json_safe(data), f, indent=2, ensure_ascii=False)

    return _atomic_write(path, 'json', _dump, logger)


def verify_file_integrity(file_path: Path, expected_checksum: str,
                          algorithm: str = 'md5') -> bool:
    """True when ``file_path`` exists and matches ``expected_checksum``."""
    if not file_path.exists():
        return False
    return compute_file_checksum(file_path, algorithm) == expected_checksum
