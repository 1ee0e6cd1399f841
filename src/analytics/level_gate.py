#!/usr/bin/env python3
"""
Level Gate

Exposes the statistics a level-advancement decision needs (completed
required challenges, average score, progress percentage) and applies the
gate: every required challenge passed and the average at or above the
completion threshold. Unlocking only moves the player's current level
marker; already computed scores are untouched.
"""

import logging
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional, Union

from src.analytics.config import resolve_config
from src.analytics.models import LevelProgression, PlayerProgress, Submission
from src.analytics.utils_stats import mean_or_zero, round_half_up

logger = logging.getLogger(__name__)


def passing_score_for_level(level: int, config: Optional[Dict[str, Any]] = None) -> float:
    """Minimum best score for a challenge to count as completed at ``level``."""
    cfg = resolve_config(config)
    for band in cfg['PASSING_SCORE_BANDS']:
        if level <= band['max_level']:
            return float(band['score'])
    return float(cfg['PASSING_SCORE_DEFAULT'])


def calculate_initial_level(assessment_score: float, config: Optional[Dict[str, Any]] = None) -> int:
    """Starting level from an onboarding assessment score."""
    cfg = resolve_config(config)
    for band in cfg['INITIAL_LEVEL_BANDS']:
        if assessment_score >= band['min_score']:
            return int(band['level'])
    return int(cfg['INITIAL_LEVEL_DEFAULT'])


def _best_by_challenge(submissions: Iterable[Union[Submission, Dict[str, Any]]]) -> Dict[str, Submission]:
    best: Dict[str, Submission] = {}
    for record in submissions:
        submission = record if isinstance(record, Submission) else Submission.from_dict(record)
        current = best.get(submission.challenge_id)
        if current is None or submission.total_score > current.total_score:
            best[submission.challenge_id] = submission
    return best


def build_level_progress(current_level: int, required_challenge_ids: List[str],
                         submissions: Iterable[Union[Submission, Dict[str, Any]]],
                         config: Optional[Dict[str, Any]] = None) -> LevelProgression:
    """
    Gather the level statistics from a player's submissions.

    Each required challenge is judged on the player's best attempt.

    Args:
        current_level: Player's current level
        required_challenge_ids: Challenges required at this level
        submissions: The player's submissions
        config: Scoring rule set (passing score bands)

    Returns:
        LevelProgression with statistics filled in and the verdict unset
    """
    passing_score = passing_score_for_level(current_level, config)
    best = _best_by_challenge(submissions)

    completed, missing, below = [], [], []
    for challenge_id in required_challenge_ids:
        submission = best.get(challenge_id)
        if submission is None:
            missing.append(challenge_id)
        elif submission.total_score < passing_score:
            below.append(challenge_id)
        else:
            completed.append(challenge_id)

    required_count = len(required_challenge_ids)
    progress_percentage = round_half_up(len(completed) / required_count * 100) if required_count else 0
    best_scores = [best[c].total_score for c in required_challenge_ids if c in best]

    return LevelProgression(
        current_level=current_level,
        completed_challenges=len(completed),
        total_challenges=required_count,
        average_score=mean_or_zero(best_scores),
        progress_percentage=progress_percentage,
        passing_score=passing_score,
        missing_challenges=missing,
        below_threshold_challenges=below,
    )


def check_eligibility(progression: LevelProgression,
                      config: Optional[Dict[str, Any]] = None) -> LevelProgression:
    """
    Apply the advancement predicate to gathered level statistics.

    Returns:
        Copy of ``progression`` with can_advance and next_level set
    """
    cfg = resolve_config(config)

    can_advance = (
        not progression.missing_challenges
        and not progression.below_threshold_challenges
        and progression.completed_challenges >= progression.total_challenges
        and progression.average_score >= cfg['LEVEL_COMPLETION_THRESHOLD']
    )

    max_level = cfg['MAX_LEVEL']
    if can_advance and max_level is not None and progression.current_level >= max_level:
        logger.info(f"Player already at max level {max_level}")
        can_advance = False

    next_level = progression.current_level + 1 if can_advance else None
    return replace(progression, can_advance=can_advance, next_level=next_level)


def apply_level_unlock(progress: PlayerProgress, progression: LevelProgression) -> bool:
    """
    Move the player's current level marker to the unlocked level.

    Idempotent: applying the same verdict twice changes nothing the second
    time. Only ``current_level`` is touched.

    Returns:
        True when the marker changed
    """
    if not progression.can_advance or progression.next_level is None:
        return False

    if progress.current_level >= progression.next_level:
        logger.debug(f"Player {progress.player_id} already at level {progress.current_level}")
        return False

    if progress.current_level != progression.current_level:
        logger.warning(f"Player {progress.player_id} is at level {progress.current_level}, "
                       f"verdict was computed for level {progression.current_level}; not applied")
        return False

    progress.current_level = progression.next_level
    logger.info(f"Player {progress.player_id} advanced to level {progress.current_level}")
    return True
