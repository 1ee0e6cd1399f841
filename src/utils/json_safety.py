#!/usr/bin/env python3
"""
JSON Safety Utilities - Convert engine outputs into JSON-serializable data.

Rankings summaries and tuning reports carry pandas timestamps, numpy
scalars, NaN values and Path objects that ``json.dump`` rejects.
"""

import math
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd


def to_json_safe(obj: Any) -> Any:
    """
    Recursively convert an object into plain JSON types.

    - Path -> POSIX string
    - datetime / Timestamp -> ISO 8601 string (NaT -> None)
    - numpy scalars -> Python scalars
    - NaN -> None
    - dataclasses -> dicts; DataFrames -> list of records
    """
    if obj is None or isinstance(obj, (str, bool)):
        return obj
    if isinstance(obj, Path):
        return obj.as_posix()
    if obj is pd.NaT:
        return None
    if isinstance(obj, (pd.Timestamp, datetime, date)):
        return obj.isoformat()
    if isinstance(obj, np.generic):
        return to_json_safe(obj.item())
    if isinstance(obj, float):
        return None if math.isnan(obj) else obj
    if isinstance(obj, int):
        return obj
    if is_dataclass(obj) and not isinstance(obj, type):
        return to_json_safe(asdict(obj))
    if isinstance(obj, pd.DataFrame):
        return to_json_safe(obj.to_dict(orient='records'))
    if isinstance(obj, dict):
        return {str(k): to_json_safe(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set)):
        return [to_json_safe(x) for x in obj]
    return str(obj)
