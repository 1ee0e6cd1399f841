#!/usr/bin/env python3
"""
Per-challenge statistics for a player.

Reduces a player's submissions for one challenge to best score, rounded
average, attempt count, trend and most recent attempt. The statistics are
recomputed from the submission set on every call and never stored as truth.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

import pandas as pd

from src.analytics.config import resolve_config
from src.analytics.models import PlayerChallengeStats, Submission
from src.analytics.normalizer import normalize_submissions
from src.analytics.trend import classify_trend
from src.analytics.utils_stats import round_half_up

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _as_submission(record: Union[Submission, Dict[str, Any]]) -> Submission:
    if isinstance(record, Submission):
        return record
    return Submission.from_dict(record)


def _submitted_key(submission: Submission) -> datetime:
    return submission.submitted_at or _EPOCH


def aggregate_challenge_stats(challenge_id: str,
                              submissions: Iterable[Union[Submission, Dict[str, Any]]],
                              config: Optional[Dict[str, Any]] = None) -> PlayerChallengeStats:
    """
    Aggregate one player's submissions for a challenge.

    Args:
        challenge_id: Challenge to aggregate
        submissions: The player's submissions (any challenge)
        config: Scoring rule set (trend thresholds)

    Returns:
        PlayerChallengeStats; zeroed with a stable trend when nothing matches
    """
    matching: List[Submission] = [
        s for s in (_as_submission(r) for r in submissions) if s.challenge_id == challenge_id
    ]

    if not matching:
        return PlayerChallengeStats()

    chronological = sorted(matching, key=_submitted_key)
    scores = [s.total_score for s in chronological]

    return PlayerChallengeStats(
        best_score=max(scores),
        average_score=round_half_up(sum(scores) / len(scores)),
        total_attempts=len(scores),
        trend=classify_trend(scores, config),
        last_submission=max(chronological, key=_submitted_key),
    )


def challenge_stats_table(submissions: Any, config: Optional[Dict[str, Any]] = None) -> pd.DataFrame:
    """
    Statistics for every (player, challenge) pair in a submission table.

    Args:
        submissions: Submission records or DataFrame
        config: Scoring rule set

    Returns:
        DataFrame with player_id, challenge_id, best_score, average_score,
        total_attempts, trend, last_submission_id, last_submitted_at
    """
    cfg = resolve_config(config)
    df = normalize_submissions(submissions)
    columns = ['player_id', 'challenge_id', 'best_score', 'average_score',
               'total_attempts', 'trend', 'last_submission_id', 'last_submitted_at']

    if df.empty:
        return pd.DataFrame(columns=columns)

    df = df.sort_values('submitted_at', kind='mergesort', na_position='first')

    rows = []
    for (player_id, challenge_id), group in df.groupby(['player_id', 'challenge_id'], sort=True):
        scores = group['total_score'].tolist()
        last = group.iloc[-1]
        rows.append({
            'player_id': player_id,
            'challenge_id': challenge_id,
            'best_score': max(scores),
            'average_score': round_half_up(sum(scores) / len(scores)),
            'total_attempts': len(scores),
            'trend': classify_trend(scores, cfg),
            'last_submission_id': last['id'],
            'last_submitted_at': last['submitted_at'],
        })

    logger.info(f"Computed challenge statistics for {len(rows)} player/challenge pairs")
    return pd.DataFrame(rows, columns=columns)
