#!/usr/bin/env python3
"""
Player Ranking Engine

Builds the global leaderboard from a full snapshot of players, progress,
submissions and (optionally) the approved video catalogue. Every run is a
complete recomputation; rankings are never patched incrementally.

Point model per player:
- base points per approved submission
- bonus per admin score point on approved submissions
- series completion and achievement points
- active-player bonus for recent activity
- level multiplier on the running total, floored to an integer

Consistency and improvement are reported alongside the points. Ranks are
dense and 1-based, ordered by total points with player id as tie-break.
"""

import argparse
import logging
import math
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import pandas as pd

from src.analytics.config import load_config, resolve_config
from src.analytics.models import to_utc_datetime
from src.analytics.normalizer import (
    catalogue_ids, normalize_players, normalize_progress, normalize_submissions, normalize_videos
)
from src.analytics.trend import improvement_score
from src.analytics.utils_stats import round_half_up, round_to

logger = logging.getLogger(__name__)

RANKING_COLUMNS = [
    'rank', 'player_id', 'player_name', 'player_email', 'total_points', 'level',
    'position', 'age', 'completed_videos', 'completed_series', 'average_score',
    'last_activity', 'achievements', 'consistency', 'improvement',
]

_AGE_RANGE = re.compile(r'^\s*(\d+)\s*-\s*(\d+)\s*$')
_AGE_MIN = re.compile(r'^\s*(\d+)\s*\+\s*$')


def _resolve_now(now: Any = None) -> pd.Timestamp:
    if now is None:
        return pd.Timestamp.now(tz='UTC')
    return pd.Timestamp(to_utc_datetime(now))


def days_since(last_activity: Any, now: Any = None) -> Optional[int]:
    """
    Whole days elapsed since ``last_activity`` (floored, never negative).

    Returns None when the activity timestamp is missing.
    """
    last = to_utc_datetime(last_activity)
    if last is None:
        return None
    elapsed = _resolve_now(now) - pd.Timestamp(last)
    return max(0, int(math.floor(elapsed.total_seconds() / 86400)))


def level_tier(completed_series: int, completed_videos: int,
               config: Optional[Dict[str, Any]] = None) -> Tuple[str, float]:
    """
    Level label and point multiplier from completed content.

    Label and multiplier come from the same tier.

    Returns:
        (level name, multiplier)
    """
    cfg = resolve_config(config)
    for tier in cfg['LEVEL_TIERS']:
        if completed_series >= tier['min_series'] and completed_videos >= tier['min_videos']:
            return tier['name'], float(tier['multiplier'])
    return cfg['BASE_LEVEL'], float(cfg['BASE_MULTIPLIER'])


def _approved(submissions: pd.DataFrame) -> pd.DataFrame:
    return submissions[submissions['status'] == 'approved']


def _has_admin_score(submissions: pd.DataFrame) -> pd.Series:
    # A zero admin score counts as no score
    return submissions['admin_score'].notna() & (submissions['admin_score'] != 0)


def calculate_player_points(progress: Mapping[str, Any], submissions: pd.DataFrame,
                            config: Optional[Dict[str, Any]] = None, now: Any = None) -> int:
    """
    Composite point total for one player.

    Args:
        progress: Normalized progress row (counts and achievement_points)
        submissions: The player's normalized submissions
        config: Scoring rule set
        now: Reference time for the activity bonus

    Returns:
        Floored point total after the level multiplier
    """
    cfg = resolve_config(config)
    approved = _approved(submissions)

    total = len(approved) * cfg['POINTS_PER_APPROVED_SUBMISSION']
    scored = approved[_has_admin_score(approved)]
    total += float(scored['admin_score'].sum()) * cfg['ADMIN_SCORE_MULTIPLIER']
    total += int(progress['completed_series']) * cfg['SERIES_COMPLETION_POINTS']
    total += int(progress['achievement_points'])

    idle_days = days_since(progress['last_activity'], now)
    if idle_days is not None and idle_days <= cfg['ACTIVE_WINDOW_DAYS']:
        total += cfg['ACTIVE_PLAYER_BONUS']

    _, multiplier = level_tier(int(progress['completed_series']),
                               int(progress['completed_videos']), cfg)
    return int(math.floor(total * multiplier))


def calculate_consistency(progress: Mapping[str, Any], submissions: pd.DataFrame,
                          config: Optional[Dict[str, Any]] = None, now: Any = None) -> int:
    """Blend of approval rate and activity recency, 0..100; 0 without submissions."""
    cfg = resolve_config(config)
    if len(submissions) == 0:
        return 0

    approval_rate = len(_approved(submissions)) / len(submissions) * 100

    idle_days = days_since(progress['last_activity'], now)
    if idle_days is None:
        activity_score = 0
    else:
        activity_score = max(0, 100 - idle_days * cfg['ACTIVITY_DECAY_PER_DAY'])

    return round_half_up((approval_rate + activity_score) / 2)


def calculate_improvement(submissions: pd.DataFrame,
                          config: Optional[Dict[str, Any]] = None) -> float:
    """Improvement score over the player's approved, admin-scored submissions."""
    cfg = resolve_config(config)
    if len(submissions) < 2:
        return float(cfg['IMPROVEMENT_NEUTRAL'])

    approved = _approved(submissions)
    approved = approved[_has_admin_score(approved)]
    approved = approved.sort_values('submitted_at', kind='mergesort', na_position='first')

    return improvement_score(approved['admin_score'].tolist(), cfg)


def _average_admin_score(submissions: pd.DataFrame) -> float:
    if len(submissions) == 0:
        return 0.0
    scored = submissions[_has_admin_score(submissions)]
    return round_to(float(scored['admin_score'].sum()) / len(submissions), 1)


def _empty_rankings() -> pd.DataFrame:
    return pd.DataFrame(columns=RANKING_COLUMNS)


def sort_and_rank(rankings: pd.DataFrame) -> pd.DataFrame:
    """Order by points (desc) then player id (asc) and assign dense ranks."""
    if rankings.empty:
        return rankings.reindex(columns=RANKING_COLUMNS)

    ordered = rankings.assign(_tiebreak=rankings['player_id'].astype(str))
    ordered = ordered.sort_values(['total_points', '_tiebreak'], ascending=[False, True],
                                  kind='mergesort')
    ordered = ordered.drop(columns='_tiebreak').reset_index(drop=True)
    ordered['rank'] = range(1, len(ordered) + 1)

    other_cols = [c for c in ordered.columns if c not in RANKING_COLUMNS]
    return ordered[RANKING_COLUMNS + other_cols]


def generate_rankings(players: Any, progress: Any, submissions: Any, videos: Any = None,
                      config: Optional[Dict[str, Any]] = None, now: Any = None) -> pd.DataFrame:
    """
    Compute the full leaderboard from a snapshot.

    Only players with the ranked role and a progress record are ranked.

    Args:
        players: Player roster records
        progress: Player progress records
        submissions: Submission records for all players
        videos: Optional approved video catalogue; submissions referencing a
            video outside it are ignored
        config: Scoring rule set
        now: Reference time for activity terms (default: current UTC time)

    Returns:
        Rankings DataFrame with RANKING_COLUMNS, sorted and ranked
    """
    cfg = resolve_config(config)
    now_ts = _resolve_now(now)

    # Layer 1: Normalize snapshot
    logger.info("Layer 1: Normalizing ranking snapshot")
    players_df = normalize_players(players)
    progress_df = normalize_progress(progress)
    submissions_df = normalize_submissions(submissions)

    known_videos = catalogue_ids(normalize_videos(videos))
    if known_videos is not None:
        referenced = submissions_df['video_id'].notna()
        unknown = referenced & ~submissions_df['video_id'].astype(str).isin(known_videos)
        if unknown.any():
            logger.warning(f"Ignoring {int(unknown.sum())} submissions for videos outside the catalogue")
            submissions_df = submissions_df[~unknown]

    ranked_players = players_df[players_df['role'] == cfg['RANKED_ROLE']]
    logger.info(f"Ranking {len(ranked_players)} of {len(players_df)} accounts, "
                f"{len(submissions_df)} submissions")

    if ranked_players.empty:
        logger.warning("No rankable players in snapshot")
        return _empty_rankings()

    # Layer 2: Per-player point model
    logger.info("Layer 2: Computing per-player points")
    progress_by_player = {row['player_id']: row for _, row in progress_df.iterrows()}
    submissions_by_player = {pid: group for pid, group in submissions_df.groupby('player_id', sort=False)}
    no_submissions = submissions_df.iloc[0:0]

    rows = []
    for _, player in ranked_players.iterrows():
        player_id = player['player_id']
        player_progress = progress_by_player.get(player_id)
        if player_progress is None:
            logger.debug(f"No progress record for player {player_id}, skipped")
            continue

        player_subs = submissions_by_player.get(player_id, no_submissions)
        level, _ = level_tier(int(player_progress['completed_series']),
                              int(player_progress['completed_videos']), cfg)

        rows.append({
            'rank': 0,
            'player_id': player_id,
            'player_name': player['player_name'],
            'player_email': player['email'],
            'total_points': calculate_player_points(player_progress, player_subs, cfg, now_ts),
            'level': level,
            'position': player['position'],
            'age': int(player['age']),
            'completed_videos': int(player_progress['completed_videos']),
            'completed_series': int(player_progress['completed_series']),
            'average_score': _average_admin_score(player_subs),
            'last_activity': player_progress['last_activity'],
            'achievements': int(player_progress['achievements']),
            'consistency': calculate_consistency(player_progress, player_subs, cfg, now_ts),
            'improvement': calculate_improvement(player_subs, cfg),
        })

    if not rows:
        logger.warning("No ranked player has a progress record")
        return _empty_rankings()

    # Layer 3: Global sort and dense ranks
    logger.info("Layer 3: Sorting and assigning ranks")
    result_df = sort_and_rank(pd.DataFrame(rows))

    logger.info(f"Ranking complete: {len(result_df)} players ranked")
    return result_df


def rerank(rankings: pd.DataFrame) -> pd.DataFrame:
    """Re-sort an edited rankings table and reassign ranks."""
    return sort_and_rank(rankings.copy())


def _filter_value(filters: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = filters.get(key)
        if value is not None and value != '':
            return value
    return None


def _age_mask(ages: pd.Series, age_filter: str) -> Optional[pd.Series]:
    match = _AGE_MIN.match(str(age_filter))
    if match:
        return ages >= int(match.group(1))

    match = _AGE_RANGE.match(str(age_filter))
    if match:
        return ages.between(int(match.group(1)), int(match.group(2)))

    logger.warning(f"Unrecognized age filter '{age_filter}', ignored")
    return None


def filter_rankings(rankings: pd.DataFrame, filters: Optional[Mapping[str, Any]] = None) -> pd.DataFrame:
    """
    Filter a rankings table; every supplied filter must pass.

    Supported keys: ``age`` ("20+" or "min-max"), ``position``, ``level``,
    ``min_points``/``minPoints``, ``max_points``/``maxPoints``. Absent keys
    do not constrain. Ranks are left as computed on the full population.
    """
    filters = filters or {}
    mask = pd.Series(True, index=rankings.index)

    age = _filter_value(filters, 'age')
    if age is not None:
        age_mask = _age_mask(rankings['age'], age)
        if age_mask is not None:
            mask &= age_mask

    position = _filter_value(filters, 'position')
    if position is not None:
        mask &= rankings['position'] == position

    level = _filter_value(filters, 'level')
    if level is not None:
        mask &= rankings['level'] == level

    min_points = _filter_value(filters, 'min_points', 'minPoints')
    if min_points is not None:
        mask &= rankings['total_points'] >= min_points

    max_points = _filter_value(filters, 'max_points', 'maxPoints')
    if max_points is not None:
        mask &= rankings['total_points'] <= max_points

    return rankings[mask].copy()


def ranking_stats(rankings: pd.DataFrame, config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Leaderboard summary: size, mean points, top score and level counts."""
    cfg = resolve_config(config)
    levels = [tier['name'] for tier in reversed(cfg['LEVEL_TIERS'])]
    distribution = {cfg['BASE_LEVEL']: 0}
    distribution.update({name: 0 for name in levels})

    if rankings.empty:
        return {
            'total_players': 0,
            'average_points': 0,
            'top_score': 0,
            'level_distribution': distribution,
        }

    for level, count in rankings['level'].value_counts().items():
        distribution[level] = int(count)

    return {
        'total_players': len(rankings),
        'average_points': round_half_up(rankings['total_points'].sum() / len(rankings)),
        'top_score': int(rankings['total_points'].max()),
        'level_distribution': distribution,
    }


def main():
    """CLI entry point for the ranking batch job."""
    from src.io.safe_write import safe_write_csv, safe_write_json
    from src.io.snapshot_loader import load_snapshot
    from src.schema.ranking_schema import validate_rankings

    parser = argparse.ArgumentParser(description="Challenge Player Ranking Engine")
    parser.add_argument("--snapshot-dir", type=str, default="data/snapshot",
                        help="Directory holding players/progress/submissions/videos tables")
    parser.add_argument("--config", type=str, default=None,
                        help="Rule set YAML (default: packaged scoring_config.yaml)")
    parser.add_argument("--output-root", type=str, default="data/rankings",
                        help="Output directory")
    parser.add_argument("--now", type=str, default=None,
                        help="Reference time (ISO 8601) for activity terms")
    parser.add_argument("--position", type=str, default=None,
                        help="Only emit players in this position")
    parser.add_argument("--level", type=str, default=None,
                        help="Only emit players at this level")

    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

    try:
        config = load_config(args.config)
        snapshot = load_snapshot(Path(args.snapshot_dir))

        result_df = generate_rankings(
            snapshot['players'], snapshot['progress'], snapshot['submissions'],
            snapshot.get('videos'), config=config, now=args.now
        )

        if result_df.empty:
            logger.warning("No rankings generated")
            return

        validate_rankings(result_df, config=config)
        result_df = filter_rankings(result_df, {'position': args.position, 'level': args.level})

        timestamp = datetime.now().strftime("%Y%m%d_%H%M")
        output_dir = Path(args.output_root)

        rankings_file = output_dir / f"rankings_{timestamp}.csv"
        safe_write_csv(result_df, rankings_file)

        summary = {
            'timestamp': timestamp,
            'snapshot_dir': Path(args.snapshot_dir),
            'reference_time': args.now,
            'stats': ranking_stats(result_df, config),
            'config': config,
        }
        safe_write_json(summary, output_dir / f"summary_{timestamp}.json")

        print(f"Ranking complete! {len(result_df)} players ranked")

    except Exception as e:
        logger.error(f"Ranking failed: {e}")
        raise


if __name__ == "__main__":
    main()
