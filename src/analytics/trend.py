#!/usr/bin/env python3
"""
Trend analysis over chronological score series.

Two separate measures live here and serve different consumers:

- ``classify_trend``: a textual label (improving / stable / declining) from
  the least-squares slope of the most recent scores. Used for per-challenge
  statistics.
- ``improvement_score``: a bounded 0..100 number comparing the recent mean
  with the mean of everything before it. Used as a ranking component.

The two can disagree on the same series.
"""

import logging
from typing import Any, Dict, Optional, Sequence

from src.analytics.config import resolve_config
from src.analytics.utils_stats import clamp, mean_or_zero, ols_slope

logger = logging.getLogger(__name__)


def classify_trend(ordered_scores: Sequence[float],
                   config: Optional[Dict[str, Any]] = None) -> str:
    """
    Classify the trajectory of chronologically ordered scores.

    Only the last TREND_WINDOW points are used. A slope above
    TREND_SLOPE_THRESHOLD is improving, below its negative is declining.

    Args:
        ordered_scores: Scores, oldest first
        config: Scoring rule set

    Returns:
        'improving', 'stable' or 'declining'
    """
    cfg = resolve_config(config)
    scores = list(ordered_scores)
    if len(scores) < 2:
        return 'stable'

    window = scores[-cfg['TREND_WINDOW']:]
    slope = ols_slope(window)
    limit = cfg['TREND_SLOPE_THRESHOLD']

    if slope > limit:
        return 'improving'
    if slope < -limit:
        return 'declining'
    return 'stable'


def improvement_score(ordered_scores: Sequence[float],
                      config: Optional[Dict[str, Any]] = None) -> float:
    """
    Score recent progress on a 0..100 scale with 50 as neutral.

    The mean of the last IMPROVEMENT_RECENT_WINDOW scores is compared with
    the mean of all earlier scores as a percentage change, then shifted by
    50 and clamped.

    Args:
        ordered_scores: Scores, oldest first
        config: Scoring rule set

    Returns:
        Improvement score in [0, 100]
    """
    cfg = resolve_config(config)
    neutral = float(cfg['IMPROVEMENT_NEUTRAL'])
    scores = list(ordered_scores)
    window = cfg['IMPROVEMENT_RECENT_WINDOW']

    if len(scores) < 2:
        return neutral

    recent = scores[-window:]
    older = scores[:-window]
    if not older:
        return neutral

    older_avg = mean_or_zero(older)
    if older_avg == 0:
        logger.debug("Older score average is zero, improvement left neutral")
        return neutral

    recent_avg = mean_or_zero(recent)
    improvement = (recent_avg - older_avg) / older_avg * 100
    return clamp(neutral + improvement, 0.0, 100.0)
