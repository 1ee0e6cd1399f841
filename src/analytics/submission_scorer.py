#!/usr/bin/env python3
"""
Submission Scorer

Combines the per-metric ratings of one challenge attempt into a weighted
overall score. Required metrics weigh double. The overall rating uses its
own bands on the weighted average, which are stricter than the per-metric
ladder and are not derived from it.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

from src.analytics.config import resolve_config
from src.analytics.metric_scorer import score_metric
from src.analytics.models import (
    RATINGS, Challenge, MetricScore, OverallScore, Submission, is_missing
)
from src.analytics.utils_stats import round_half_up

logger = logging.getLogger(__name__)


def as_challenge(challenge: Union[Challenge, Dict[str, Any]]) -> Challenge:
    if isinstance(challenge, Challenge):
        return challenge
    return Challenge.from_dict(challenge)


def overall_rating_for(average_score: float, config: Optional[Dict[str, Any]] = None) -> str:
    """Band a weighted average (0..100) into an overall rating."""
    bands = resolve_config(config)['OVERALL_RATING_BANDS']
    for rating in ('outstanding', 'excellent', 'good', 'fair'):
        if average_score >= bands[rating]:
            return rating
    return 'poor'


def score_submission(challenge: Union[Challenge, Dict[str, Any]],
                     metric_values: Dict[str, Optional[float]],
                     config: Optional[Dict[str, Any]] = None) -> OverallScore:
    """
    Score every thresholded metric of a challenge and weight the results.

    Metrics without a matching threshold contribute nothing; their ids are
    returned in ``skipped_metrics``.

    Args:
        challenge: Challenge definition with metrics and thresholds
        metric_values: Raw values keyed by metric id (missing -> 0)
        config: Scoring rule set

    Returns:
        OverallScore with rounded total points and average score
    """
    cfg = resolve_config(config)
    challenge = as_challenge(challenge)

    metric_scores: List[MetricScore] = []
    skipped: List[str] = []
    total_points = 0.0
    total_weight = 0

    for metric in challenge.metrics:
        threshold = challenge.threshold_for(metric.id)
        if threshold is None:
            skipped.append(metric.id)
            continue

        value = metric_values.get(metric.id)
        score = score_metric(metric, value, threshold, cfg)
        weight = cfg['REQUIRED_METRIC_WEIGHT'] if metric.required else cfg['OPTIONAL_METRIC_WEIGHT']

        metric_scores.append(MetricScore(
            metric_id=metric.id,
            value=0.0 if is_missing(value) else float(value),
            score=score,
            weight=weight,
        ))
        total_points += score.points * weight
        total_weight += weight

    if skipped:
        logger.warning(f"Challenge {challenge.id}: no threshold for metrics {skipped}, skipped")

    average_score = total_points / total_weight if total_weight > 0 else 0.0

    return OverallScore(
        total_points=round_half_up(total_points),
        average_score=round_half_up(average_score),
        overall_rating=overall_rating_for(average_score, cfg),
        metric_scores=metric_scores,
        skipped_metrics=skipped,
    )


def create_submission(player_id: str, challenge: Union[Challenge, Dict[str, Any]],
                      metric_values: Dict[str, Optional[float]],
                      video_id: Optional[str] = None,
                      submitted_at: Optional[datetime] = None,
                      config: Optional[Dict[str, Any]] = None) -> Submission:
    """
    Build a new pending Submission with its scores computed once.

    Re-scoring an attempt means creating another Submission.
    """
    challenge = as_challenge(challenge)
    overall = score_submission(challenge, metric_values, config)

    scores = {
        ms.metric_id: {
            'value': ms.value,
            'level': ms.score.level,
            'rating': ms.score.rating,
            'points': ms.score.points,
        }
        for ms in overall.metric_scores
    }

    submission = Submission(
        id=f"submission-{uuid.uuid4().hex[:12]}",
        player_id=player_id,
        challenge_id=challenge.id,
        metric_values=dict(metric_values),
        scores=scores,
        total_score=overall.average_score,
        overall_rating=overall.overall_rating,
        submitted_at=submitted_at or datetime.now(timezone.utc),
        status='pending',
        video_id=video_id,
    )
    logger.debug(f"Created {submission.id} for player {player_id}: "
                 f"{submission.total_score} ({submission.overall_rating})")
    return submission


def score_distribution(submissions: Iterable[Submission]) -> Dict[str, int]:
    """Count submissions per overall rating; every rating key is present."""
    distribution = {rating: 0 for rating in RATINGS}
    for submission in submissions:
        if submission.overall_rating in distribution:
            distribution[submission.overall_rating] += 1
        else:
            logger.warning(f"Submission {submission.id} has unknown rating "
                           f"'{submission.overall_rating}'")
    return distribution
