"""
Analytics module for the challenge scoring and player ranking engine.

This module grades challenge submissions against metric thresholds,
aggregates per-challenge statistics and trends, builds the global player
leaderboard, and evaluates level advancement.
"""

from .config import DEFAULT_CONFIG, load_config, apply_overrides
from .metric_scorer import score_metric
from .submission_scorer import score_submission, create_submission, score_distribution
from .validation import validate_metrics
from .trend import classify_trend, improvement_score
from .challenge_stats import aggregate_challenge_stats, challenge_stats_table
from .ranking_engine import generate_rankings, filter_rankings, ranking_stats, rerank
from .level_gate import (
    build_level_progress, check_eligibility, apply_level_unlock,
    calculate_initial_level, passing_score_for_level
)

__all__ = [
    'DEFAULT_CONFIG',
    'load_config',
    'apply_overrides',
    'score_metric',
    'score_submission',
    'create_submission',
    'score_distribution',
    'validate_metrics',
    'classify_trend',
    'improvement_score',
    'aggregate_challenge_stats',
    'challenge_stats_table',
    'generate_rankings',
    'filter_rankings',
    'ranking_stats',
    'rerank',
    'build_level_progress',
    'check_eligibility',
    'apply_level_unlock',
    'calculate_initial_level',
    'passing_score_for_level',
]
