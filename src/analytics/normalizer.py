#!/usr/bin/env python3
"""
Snapshot normalization for the ranking engine.

Turns the raw tables handed over by the persistence layer (lists of dicts,
dataclasses or DataFrames, camelCase or snake_case) into canonical
DataFrames. Missing columns are filled with defaults rather than rejected:
the engine always produces a result.
"""

import logging
from dataclasses import asdict, is_dataclass
from typing import Any, Dict, Iterable, List, Optional, Union

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

Records = Union[pd.DataFrame, Iterable[Any], None]

SUBMISSION_COLUMN_MAPPING = {
    'playerId': 'player_id',
    'userId': 'player_id',
    'challengeId': 'challenge_id',
    'totalScore': 'total_score',
    'overallRating': 'overall_rating',
    'submittedAt': 'submitted_at',
    'adminScore': 'admin_score',
    'videoId': 'video_id',
}

PLAYER_COLUMN_MAPPING = {
    'uid': 'player_id',
    'playerId': 'player_id',
    'type': 'role',
    'displayName': 'display_name',
    'firstName': 'first_name',
    'lastName': 'last_name',
}

PROGRESS_COLUMN_MAPPING = {
    'playerId': 'player_id',
    'completedVideos': 'completed_videos',
    'completedSeries': 'completed_series',
    'lastActivity': 'last_activity',
    'currentLevel': 'current_level',
}

VIDEO_COLUMN_MAPPING = {
    'videoId': 'video_id',
    'id': 'video_id',
}

SUBMISSION_COLUMNS = ['id', 'player_id', 'challenge_id', 'total_score', 'overall_rating',
                      'submitted_at', 'status', 'admin_score', 'video_id']
PLAYER_COLUMNS = ['player_id', 'role', 'player_name', 'email', 'position', 'age']
PROGRESS_COLUMNS = ['player_id', 'completed_videos', 'completed_series', 'achievements',
                    'achievement_points', 'last_activity', 'current_level']


def to_frame(records: Records) -> pd.DataFrame:
    """Build a DataFrame from a DataFrame, list of dicts or list of dataclasses."""
    if records is None:
        return pd.DataFrame()
    if isinstance(records, pd.DataFrame):
        return records.copy()
    rows = [asdict(r) if is_dataclass(r) else dict(r) for r in records]
    return pd.DataFrame(rows)


def _rename(df: pd.DataFrame, mapping: Dict[str, str]) -> pd.DataFrame:
    for old_col, new_col in mapping.items():
        if old_col in df.columns and new_col not in df.columns:
            df = df.rename(columns={old_col: new_col})
    return df


def _ensure_columns(df: pd.DataFrame, defaults: Dict[str, Any]) -> pd.DataFrame:
    for col, default in defaults.items():
        if col not in df.columns:
            df[col] = default
    return df


def _count(value: Any) -> int:
    """Length of a list-like field; plain numbers are taken as counts."""
    if isinstance(value, (list, tuple, set, np.ndarray)):
        return len(value)
    if value is None or (isinstance(value, float) and np.isnan(value)):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _achievement_points(value: Any) -> int:
    if not isinstance(value, (list, tuple, np.ndarray)):
        return 0
    total = 0
    for achievement in value:
        if is_dataclass(achievement):
            achievement = asdict(achievement)
        if isinstance(achievement, dict):
            points = pd.to_numeric(achievement.get('points', 0), errors='coerce')
            total += 0 if pd.isna(points) else int(points)
    return total


def _utc(series: pd.Series) -> pd.Series:
    return pd.to_datetime(series, errors='coerce', utc=True)


def normalize_submissions(records: Records) -> pd.DataFrame:
    """
    Canonical submission table.

    Returns:
        DataFrame with SUBMISSION_COLUMNS (extra columns are kept)
    """
    df = _rename(to_frame(records), SUBMISSION_COLUMN_MAPPING)
    df = _ensure_columns(df, {
        'id': None, 'player_id': None, 'challenge_id': None, 'total_score': 0.0,
        'overall_rating': 'poor', 'submitted_at': pd.NaT, 'status': 'pending',
        'admin_score': np.nan, 'video_id': None,
    })

    df['total_score'] = pd.to_numeric(df['total_score'], errors='coerce').fillna(0.0)
    df['admin_score'] = pd.to_numeric(df['admin_score'], errors='coerce')
    df['submitted_at'] = _utc(df['submitted_at'])
    df['player_id'] = df['player_id'].astype(object)
    df['status'] = df['status'].fillna('pending')

    return df


def normalize_players(records: Records) -> pd.DataFrame:
    """Canonical player roster with display name, position and age defaults."""
    df = _rename(to_frame(records), PLAYER_COLUMN_MAPPING)
    df = _ensure_columns(df, {
        'player_id': None, 'role': None, 'display_name': None, 'first_name': '',
        'last_name': '', 'email': '', 'position': None, 'age': 0,
    })

    if 'player_name' not in df.columns:
        full_name = (df['first_name'].fillna('').astype(str) + ' ' +
                     df['last_name'].fillna('').astype(str)).str.strip()
        df['player_name'] = df['display_name'].where(
            df['display_name'].notna() & (df['display_name'] != ''), full_name)

    df['position'] = df['position'].fillna('unknown')
    df['age'] = pd.to_numeric(df['age'], errors='coerce').fillna(0).astype(int)
    df['email'] = df['email'].fillna('')

    duplicated = df['player_id'].duplicated(keep='first')
    if duplicated.any():
        logger.warning(f"Dropped {int(duplicated.sum())} duplicate player records")
        df = df[~duplicated]

    return df


def normalize_progress(records: Records) -> pd.DataFrame:
    """
    Canonical progress table with list fields reduced to counts.

    Achievement point values are summed into ``achievement_points`` before
    the achievement list is reduced to its length.
    """
    df = _rename(to_frame(records), PROGRESS_COLUMN_MAPPING)
    df = _ensure_columns(df, {
        'player_id': None, 'completed_videos': 0, 'completed_series': 0,
        'achievements': 0, 'last_activity': pd.NaT, 'current_level': 1,
    })

    if 'achievement_points' not in df.columns:
        df['achievement_points'] = df['achievements'].apply(_achievement_points)
    df['achievement_points'] = pd.to_numeric(df['achievement_points'], errors='coerce').fillna(0).astype(int)

    for col in ('completed_videos', 'completed_series', 'achievements'):
        df[col] = df[col].apply(_count).astype(int)

    df['last_activity'] = _utc(df['last_activity'])
    df['current_level'] = pd.to_numeric(df['current_level'], errors='coerce').fillna(1).astype(int)

    duplicated = df['player_id'].duplicated(keep='first')
    if duplicated.any():
        logger.warning(f"Dropped {int(duplicated.sum())} duplicate progress records")
        df = df[~duplicated]

    return df


def normalize_videos(records: Records) -> Optional[pd.DataFrame]:
    """Canonical video catalogue, or None when no catalogue was supplied."""
    if records is None:
        return None
    df = _rename(to_frame(records), VIDEO_COLUMN_MAPPING)
    return _ensure_columns(df, {'video_id': None})


def catalogue_ids(videos: Optional[pd.DataFrame]) -> Optional[List[str]]:
    if videos is None:
        return None
    return videos['video_id'].dropna().astype(str).tolist()
