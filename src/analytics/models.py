#!/usr/bin/env python3
"""
Domain types for challenge scoring and player ranking.

Records arrive from the persistence layer as plain dictionaries (camelCase
or snake_case keys); each type offers ``from_dict`` to build itself from
such a record. Derived types (ScoreResult, OverallScore,
PlayerChallengeStats, LevelProgression) are pure projections and are never
patched in place.
"""

import logging
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Dict, List, Optional

import pandas as pd

logger = logging.getLogger(__name__)

RATINGS = ('poor', 'fair', 'good', 'excellent', 'outstanding')
SUBMISSION_STATUSES = ('pending', 'approved', 'rejected', 'needs_improvement')
DIRECTIONS = ('higher', 'lower')
DIRECTION_ALIASES = {
    'higher-is-better': 'higher',
    'lower-is-better': 'lower',
}


def _get(record: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present key of ``record`` (camelCase/snake_case aliases)."""
    for key in keys:
        if key in record and record[key] is not None:
            return record[key]
    return default


def is_missing(value: Any) -> bool:
    """True for None and scalar NaN/NA values."""
    return value is None or (pd.api.types.is_scalar(value) and bool(pd.isna(value)))


def to_utc_datetime(value: Any) -> Optional[datetime]:
    """
    Normalize a timestamp-like value to a timezone-aware UTC datetime.

    Naive values are assumed to already be UTC. Unparseable values map to None.
    """
    if value is None:
        return None
    ts = pd.to_datetime(value, errors='coerce')
    if ts is None or pd.isna(ts):
        return None
    if ts.tzinfo is None:
        ts = ts.tz_localize('UTC')
    else:
        ts = ts.tz_convert('UTC')
    return ts.to_pydatetime()


def normalize_direction(value: Any, metric_id: str = '') -> str:
    """
    Canonical comparison direction for a metric.

    Accepts 'higher'/'lower' and the long forms 'higher-is-better' and
    'lower-is-better' (any case). Anything else falls back to 'higher'.
    """
    if value is None:
        return 'higher'
    direction = str(value).strip().lower()
    direction = DIRECTION_ALIASES.get(direction, direction)
    if direction not in DIRECTIONS:
        logger.warning(f"Metric {metric_id}: unknown direction '{value}', using 'higher'")
        return 'higher'
    return direction


@dataclass
class Metric:
    id: str
    name: str = ''
    unit: str = ''
    required: bool = False
    value_type: str = 'numeric'
    direction: str = 'higher'

    def __post_init__(self):
        self.direction = normalize_direction(self.direction, self.id)

    @classmethod
    def from_dict(cls, record: Dict[str, Any]) -> 'Metric':
        return cls(
            id=str(_get(record, 'id', 'metricId', 'metric_id', default='')),
            name=_get(record, 'name', default=''),
            unit=_get(record, 'unit', default=''),
            required=bool(_get(record, 'required', default=False)),
            value_type=_get(record, 'valueType', 'value_type', 'type', default='numeric'),
            direction=_get(record, 'direction', default='higher'),
        )

    @property
    def lower_is_better(self) -> bool:
        return self.direction == 'lower'


@dataclass
class Threshold:
    """Four cut points for one metric at one difficulty level."""
    metric_id: str
    level: int = 1
    fair: float = 0.0
    good: float = 0.0
    excellent: float = 0.0
    outstanding: float = 0.0

    @classmethod
    def from_dict(cls, record: Dict[str, Any]) -> 'Threshold':
        cuts = _get(record, 'thresholds', default=record)
        return cls(
            metric_id=str(_get(record, 'metricId', 'metric_id', default='')),
            level=int(_get(record, 'level', default=1)),
            fair=float(_get(cuts, 'fair', default=0)),
            good=float(_get(cuts, 'good', default=0)),
            excellent=float(_get(cuts, 'excellent', default=0)),
            outstanding=float(_get(cuts, 'outstanding', default=0)),
        )


@dataclass
class Challenge:
    id: str
    metrics: List[Metric] = field(default_factory=list)
    thresholds: List[Threshold] = field(default_factory=list)
    difficulty: Any = None
    level: int = 1
    points: int = 0

    @classmethod
    def from_dict(cls, record: Dict[str, Any]) -> 'Challenge':
        return cls(
            id=str(_get(record, 'id', default='')),
            metrics=[m if isinstance(m, Metric) else Metric.from_dict(m)
                     for m in _get(record, 'metrics', default=[])],
            thresholds=[t if isinstance(t, Threshold) else Threshold.from_dict(t)
                        for t in _get(record, 'thresholds', default=[])],
            difficulty=_get(record, 'difficulty'),
            level=int(_get(record, 'level', default=1)),
            points=int(_get(record, 'points', default=0)),
        )

    def threshold_for(self, metric_id: str) -> Optional[Threshold]:
        """First threshold record matching ``metric_id``, or None."""
        for threshold in self.thresholds:
            if threshold.metric_id == metric_id:
                return threshold
        return None


@dataclass
class ScoreResult:
    rating: str
    points: int
    level: int


@dataclass
class MetricScore:
    metric_id: str
    value: float
    score: ScoreResult
    weight: int = 1


@dataclass
class OverallScore:
    total_points: int
    average_score: int
    overall_rating: str
    metric_scores: List[MetricScore] = field(default_factory=list)
    skipped_metrics: List[str] = field(default_factory=list)


@dataclass
class Submission:
    id: str
    player_id: str
    challenge_id: str
    metric_values: Dict[str, float] = field(default_factory=dict)
    scores: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    total_score: float = 0.0
    overall_rating: str = 'poor'
    submitted_at: Optional[datetime] = None
    status: str = 'pending'
    admin_score: Optional[float] = None
    video_id: Optional[str] = None

    @classmethod
    def from_dict(cls, record: Dict[str, Any]) -> 'Submission':
        return cls(
            id=str(_get(record, 'id', default='')),
            player_id=str(_get(record, 'playerId', 'player_id', 'userId', default='')),
            challenge_id=str(_get(record, 'challengeId', 'challenge_id', default='')),
            metric_values=dict(_get(record, 'metricValues', 'metric_values', 'metrics', default={})),
            scores=dict(_get(record, 'scores', 'perMetricScores', default={})),
            total_score=float(_get(record, 'totalScore', 'total_score', default=0)),
            overall_rating=_get(record, 'overallRating', 'overall_rating', default='poor'),
            submitted_at=to_utc_datetime(_get(record, 'submittedAt', 'submitted_at')),
            status=_get(record, 'status', default='pending'),
            admin_score=_get(record, 'adminScore', 'admin_score'),
            video_id=_get(record, 'videoId', 'video_id'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PlayerChallengeStats:
    best_score: float = 0
    average_score: int = 0
    total_attempts: int = 0
    trend: str = 'stable'
    last_submission: Optional[Submission] = None


@dataclass
class Achievement:
    id: str = ''
    points: int = 0

    @classmethod
    def from_dict(cls, record: Dict[str, Any]) -> 'Achievement':
        return cls(id=str(_get(record, 'id', default='')),
                   points=int(_get(record, 'points', default=0)))


@dataclass
class PlayerProgress:
    player_id: str
    completed_videos: List[str] = field(default_factory=list)
    completed_series: List[str] = field(default_factory=list)
    achievements: List[Achievement] = field(default_factory=list)
    last_activity: Optional[datetime] = None
    current_level: int = 1

    @classmethod
    def from_dict(cls, record: Dict[str, Any]) -> 'PlayerProgress':
        return cls(
            player_id=str(_get(record, 'playerId', 'player_id', default='')),
            completed_videos=list(_get(record, 'completedVideos', 'completed_videos', default=[])),
            completed_series=list(_get(record, 'completedSeries', 'completed_series', default=[])),
            achievements=[a if isinstance(a, Achievement) else Achievement.from_dict(a)
                          for a in _get(record, 'achievements', default=[])],
            last_activity=to_utc_datetime(_get(record, 'lastActivity', 'last_activity')),
            current_level=int(_get(record, 'currentLevel', 'current_level', default=1)),
        )


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)


@dataclass
class LevelProgression:
    """Statistics a level gate consumes, plus the gate's verdict."""
    current_level: int
    can_advance: bool = False
    next_level: Optional[int] = None
    completed_challenges: int = 0
    total_challenges: int = 0
    average_score: float = 0.0
    progress_percentage: int = 0
    passing_score: float = 0.0
    missing_challenges: List[str] = field(default_factory=list)
    below_threshold_challenges: List[str] = field(default_factory=list)
