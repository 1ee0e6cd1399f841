#!/usr/bin/env python3
"""
Metric Scorer

Grades one raw metric value against its threshold ladder. The ladder is
evaluated from the top cut point down and the first satisfied rung wins.
"""

import logging
from typing import Any, Dict, Optional

from src.analytics.config import resolve_config
from src.analytics.models import Metric, ScoreResult, Threshold, is_missing

logger = logging.getLogger(__name__)

# Top rung first
LADDER = ('outstanding', 'excellent', 'good', 'fair')


def _clears(value: float, cut: float, lower_is_better: bool) -> bool:
    if lower_is_better:
        return value <= cut
    return value >= cut


def score_metric(metric: Metric, value: Optional[float], threshold: Threshold,
                 config: Optional[Dict[str, Any]] = None) -> ScoreResult:
    """
    Rate a single metric value.

    A missing value (None or NaN) is treated as 0 for higher-is-better
    metrics. For lower-is-better metrics (elapsed time and similar) a missing
    value rates poor. No range checking is done here; out-of-range values run
    through the same ladder.

    Args:
        metric: Metric definition (supplies the comparison direction)
        value: Raw value submitted by the player
        threshold: Cut points for this metric at the challenge level
        config: Scoring rule set (METRIC_POINTS)

    Returns:
        ScoreResult with rating, points and the threshold's level
    """
    cfg = resolve_config(config)
    points = cfg['METRIC_POINTS']
    lower_is_better = metric.lower_is_better

    missing = is_missing(value)
    if missing and lower_is_better:
        return ScoreResult(rating='poor', points=points['poor'], level=threshold.level)

    numeric_value = 0.0 if missing else float(value)

    for rating in LADDER:
        if _clears(numeric_value, getattr(threshold, rating), lower_is_better):
            return ScoreResult(rating=rating, points=points[rating], level=threshold.level)

    return ScoreResult(rating='poor', points=points['poor'], level=threshold.level)
