#!/usr/bin/env python3
"""
Scoring Rule Set Configuration

Holds every constant of the point model (metric ladder points, weights,
rating bands, trend thresholds, ranking bonuses, level tiers and level
gates) as one plain dictionary. Engine functions accept the dictionary as
an argument so alternative rule sets can be evaluated without code changes.
"""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "scoring_config.yaml"

DEFAULT_CONFIG: Dict[str, Any] = {
    # Metric ladder
    'METRIC_POINTS': {
        'outstanding': 100,
        'excellent': 80,
        'good': 60,
        'fair': 40,
        'poor': 20,
    },
    'REQUIRED_METRIC_WEIGHT': 2,
    'OPTIONAL_METRIC_WEIGHT': 1,
    # Overall rating is banded on the weighted average, stricter than the ladder
    'OVERALL_RATING_BANDS': {
        'outstanding': 90,
        'excellent': 70,
        'good': 50,
        'fair': 30,
    },

    # Trend classification
    'TREND_WINDOW': 5,
    'TREND_SLOPE_THRESHOLD': 2.0,

    # Improvement score
    'IMPROVEMENT_RECENT_WINDOW': 5,
    'IMPROVEMENT_NEUTRAL': 50,

    # Ranking point model
    'RANKED_ROLE': 'player',
    'POINTS_PER_APPROVED_SUBMISSION': 10,
    'ADMIN_SCORE_MULTIPLIER': 2,
    'SERIES_COMPLETION_POINTS': 50,
    'ACTIVE_PLAYER_BONUS': 20,
    'ACTIVE_WINDOW_DAYS': 7,
    'ACTIVITY_DECAY_PER_DAY': 5,
    'LEVEL_TIERS': [
        {'name': 'advanced', 'min_series': 5, 'min_videos': 20, 'multiplier': 1.5},
        {'name': 'intermediate', 'min_series': 2, 'min_videos': 10, 'multiplier': 1.2},
    ],
    'BASE_LEVEL': 'beginner',
    'BASE_MULTIPLIER': 1.0,

    # Level gate
    'PASSING_SCORE_BANDS': [
        {'max_level': 10, 'score': 60},
        {'max_level': 25, 'score': 70},
        {'max_level': 40, 'score': 80},
    ],
    'PASSING_SCORE_DEFAULT': 85,
    'LEVEL_COMPLETION_THRESHOLD': 70,
    'MAX_LEVEL': None,
    'INITIAL_LEVEL_BANDS': [
        {'min_score': 90, 'level': 5},
        {'min_score': 80, 'level': 4},
        {'min_score': 70, 'level': 3},
        {'min_score': 60, 'level': 2},
    ],
    'INITIAL_LEVEL_DEFAULT': 1,
}


def apply_overrides(base_cfg: Dict[str, Any], overrides: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Apply parameter overrides to a base configuration.

    Nested dictionaries (e.g. METRIC_POINTS) are merged one level deep so a
    scenario can change a single band without restating the others.

    Args:
        base_cfg: Base configuration dictionary
        overrides: Override parameters

    Returns:
        New configuration with overrides applied
    """
    config = copy.deepcopy(base_cfg)
    for key, value in (overrides or {}).items():
        if isinstance(value, dict) and isinstance(config.get(key), dict):
            merged = dict(config[key])
            merged.update(value)
            config[key] = merged
        else:
            config[key] = copy.deepcopy(value)
    return config


def load_config(path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Load a YAML rule set layered over the built-in defaults.

    Args:
        path: YAML file path (default: the packaged scoring_config.yaml)

    Returns:
        Configuration dictionary
    """
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH

    if not config_path.exists():
        if path is not None:
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        logger.warning(f"Default configuration missing at {config_path}, using built-in defaults")
        return copy.deepcopy(DEFAULT_CONFIG)

    with open(config_path, 'r', encoding='utf-8') as f:
        loaded = yaml.safe_load(f) or {}

    logger.debug(f"Loaded {len(loaded)} configuration keys from {config_path}")
    return apply_overrides(DEFAULT_CONFIG, loaded)


def resolve_config(config: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Return ``config`` with any missing keys filled from the defaults."""
    if config is None:
        return DEFAULT_CONFIG
    if all(key in config for key in DEFAULT_CONFIG):
        return config
    return apply_overrides(DEFAULT_CONFIG, config)
