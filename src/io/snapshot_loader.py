#!/usr/bin/env python3
"""
Snapshot loading for the ranking batch job.

A snapshot directory holds one export per table (players, progress,
submissions and optionally videos) as JSON, CSV or Parquet. When several
exports of a table exist, the latest by file name wins, e.g.
``submissions_20250101_0900.json``.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Optional

import pandas as pd

logger = logging.getLogger(__name__)

REQUIRED_TABLES = ('players', 'progress', 'submissions')
OPTIONAL_TABLES = ('videos',)
SUPPORTED_SUFFIXES = ('.json', '.csv', '.parquet')


def _latest_table_file(snapshot_dir: Path, table: str) -> Optional[Path]:
    candidates = [
        p for p in snapshot_dir.iterdir()
        if p.is_file() and p.suffix in SUPPORTED_SUFFIXES
        and (p.stem == table or p.stem.startswith(f"{table}_"))
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda p: p.name)


def read_table(path: Path) -> pd.DataFrame:
    """
    Read one snapshot table.

    JSON files hold a list of records (nested lists such as achievements are
    kept as Python objects). CSV files are flat; list-valued columns are
    expected to be exported as counts.
    """
    if path.suffix == '.json':
        with open(path, 'r', encoding='utf-8') as f:
            records = json.load(f)
        if isinstance(records, dict):
            records = list(records.values())
        return pd.DataFrame(records)
    if path.suffix == '.parquet':
        return pd.read_parquet(path)
    return pd.read_csv(path)


def load_snapshot(snapshot_dir: Path) -> Dict[str, Optional[pd.DataFrame]]:
    """
    Load the latest export of every snapshot table.

    Args:
        snapshot_dir: Directory holding the table exports

    Returns:
        Mapping of table name to DataFrame; ``videos`` is None when absent

    Raises:
        FileNotFoundError: If the directory or a required table is missing
    """
    snapshot_dir = Path(snapshot_dir)
    if not snapshot_dir.exists():
        raise FileNotFoundError(f"Snapshot directory not found: {snapshot_dir}")

    snapshot: Dict[str, Optional[pd.DataFrame]] = {}

    for table in REQUIRED_TABLES + OPTIONAL_TABLES:
        table_file = _latest_table_file(snapshot_dir, table)
        if table_file is None:
            if table in REQUIRED_TABLES:
                raise FileNotFoundError(f"No '{table}' table found in {snapshot_dir}")
            logger.info(f"No '{table}' table in snapshot, continuing without it")
            snapshot[table] = None
            continue

        df = read_table(table_file)
        logger.info(f"Loaded {len(df)} {table} records from {table_file.name}")
        snapshot[table] = df

    return snapshot
