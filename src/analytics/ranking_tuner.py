#!/usr/bin/env python3
"""
Rule Set Comparison Harness

Runs the ranking engine over one snapshot under a baseline rule set and a
number of override scenarios, then measures how much each scenario moves
the leaderboard.
"""

import argparse
import logging
from pathlib import Path
from typing import Any, Dict

import numpy as np
import pandas as pd
import yaml
from scipy.stats import kendalltau, spearmanr

from src.analytics.config import apply_overrides, load_config
from src.analytics.ranking_engine import generate_rankings

logger = logging.getLogger(__name__)

EMPTY_METRICS = {
    'spearman_correlation': 0.0,
    'kendall_correlation': 0.0,
    'top5_overlap': 0.0,
    'top10_overlap': 0.0,
    'median_rank_delta': 0.0,
    'p90_rank_delta': 0.0,
    'max_rank_delta': 0.0,
    'players_compared': 0,
}


def load_yaml(path: Path) -> Dict[str, Any]:
    with open(path, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f) or {}


def _top_k_overlap(merged: pd.DataFrame, k: int) -> float:
    if k == 0:
        return 0.0
    base_top = set(merged.nsmallest(k, 'rank_base')['player_id'])
    test_top = set(merged.nsmallest(k, 'rank_test')['player_id'])
    return len(base_top & test_top) / k


def compare_rankings(df_base: pd.DataFrame, df_test: pd.DataFrame) -> Dict[str, float]:
    """
    Compare two rankings tables of the same population.

    Args:
        df_base: Baseline rankings
        df_test: Scenario rankings

    Returns:
        Rank correlations, top-k overlaps and rank-delta quantiles
    """
    if df_base.empty or df_test.empty:
        return dict(EMPTY_METRICS)

    merged = pd.merge(
        df_base[['player_id', 'rank']],
        df_test[['player_id', 'rank']],
        on='player_id',
        suffixes=('_base', '_test')
    )
    if merged.empty:
        return dict(EMPTY_METRICS)

    if len(merged) > 1:
        spearman_corr, _ = spearmanr(merged['rank_base'], merged['rank_test'])
        kendall_corr, _ = kendalltau(merged['rank_base'], merged['rank_test'])
    else:
        spearman_corr, kendall_corr = 1.0, 1.0

    rank_deltas = np.abs(merged['rank_test'] - merged['rank_base'])

    return {
        'spearman_correlation': float(spearman_corr),
        'kendall_correlation': float(kendall_corr),
        'top5_overlap': _top_k_overlap(merged, min(5, len(merged))),
        'top10_overlap': _top_k_overlap(merged, min(10, len(merged))),
        'median_rank_delta': float(rank_deltas.median()),
        'p90_rank_delta': float(rank_deltas.quantile(0.9)),
        'max_rank_delta': float(rank_deltas.max()),
        'players_compared': len(merged),
    }


def rank_deltas(df_base: pd.DataFrame, df_test: pd.DataFrame) -> pd.DataFrame:
    """Per-player rank and point movement between two rankings tables."""
    merged = pd.merge(
        df_base[['player_id', 'player_name', 'rank', 'total_points', 'level']],
        df_test[['player_id', 'rank', 'total_points', 'level']],
        on='player_id',
        suffixes=('_base', '_test')
    )
    merged['rank_delta'] = merged['rank_test'] - merged['rank_base']
    merged['abs_rank_delta'] = np.abs(merged['rank_delta'])
    merged['points_delta'] = merged['total_points_test'] - merged['total_points_base']
    return merged.sort_values('abs_rank_delta', ascending=False, kind='mergesort')


def run_scenarios(snapshot: Dict[str, Any], base_config: Dict[str, Any],
                  scenarios: Dict[str, Dict[str, Any]], now: Any = None) -> Dict[str, Dict[str, Any]]:
    """
    Rank the snapshot under each scenario and compare against the baseline.

    The ``baseline`` scenario (if present) is applied to the base config
    first; every other scenario layers its overrides on the base config.

    Returns:
        Mapping of scenario name to {'metrics': ..., 'rankings': ..., 'deltas': ...}
    """
    def _rank(cfg):
        return generate_rankings(snapshot['players'], snapshot['progress'],
                                 snapshot['submissions'], snapshot.get('videos'),
                                 config=cfg, now=now)

    baseline_config = apply_overrides(base_config, scenarios.get('baseline'))
    df_baseline = _rank(baseline_config)
    logger.info(f"Baseline ranking complete: {len(df_baseline)} players")

    results = {}
    for name, overrides in scenarios.items():
        if name == 'baseline':
            continue

        logger.info(f"Running scenario: {name}")
        df_scenario = _rank(apply_overrides(base_config, overrides))
        metrics = compare_rankings(df_baseline, df_scenario)

        results[name] = {
            'metrics': metrics,
            'rankings': df_scenario,
            'deltas': rank_deltas(df_baseline, df_scenario) if not df_scenario.empty else pd.DataFrame(),
        }
        logger.info(f"  Spearman correlation: {metrics['spearman_correlation']:.3f}, "
                    f"median rank delta: {metrics['median_rank_delta']:.1f}")

    return results


def save_report(name: str, result: Dict[str, Any], output_dir: Path) -> None:
    from src.io.safe_write import safe_write_csv, safe_write_json

    scenario_dir = output_dir / name
    safe_write_json(result['metrics'], scenario_dir / "metrics.json")
    if not result['deltas'].empty:
        safe_write_csv(result['deltas'], scenario_dir / "rank_deltas.csv")
    logger.info(f"Saved tuning report for {name} to {scenario_dir}")


def main():
    """CLI entry point for the rule set tuner."""
    from src.io.safe_write import safe_write_json
    from src.io.snapshot_loader import load_snapshot

    parser = argparse.ArgumentParser(description="Ranking Rule Set Tuner")
    parser.add_argument("--snapshot-dir", type=str, default="data/snapshot",
                        help="Directory holding the snapshot tables")
    parser.add_argument("--output-root", type=str, default="data/rankings/tuning",
                        help="Output directory for tuning results")
    parser.add_argument("--scenarios", type=str,
                        default=str(Path(__file__).parent / "tuning_scenarios.yaml"),
                        help="Tuning scenarios file")
    parser.add_argument("--config", type=str, default=None,
                        help="Base rule set YAML")
    parser.add_argument("--now", type=str, default=None,
                        help="Reference time (ISO 8601)")

    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

    try:
        base_config = load_config(args.config)
        scenarios = load_yaml(Path(args.scenarios))
        snapshot = load_snapshot(Path(args.snapshot_dir))
        output_dir = Path(args.output_root)

        results = run_scenarios(snapshot, base_config, scenarios, now=args.now)
        for name, result in results.items():
            save_report(name, result, output_dir)

        summary = {
            'timestamp': pd.Timestamp.now().isoformat(),
            'scenarios_run': len(results),
            'scenario_results': {name: r['metrics'] for name, r in results.items()},
        }
        safe_write_json(summary, output_dir / "tuning_summary.json")

        print("\n" + "=" * 70)
        print("TUNING RESULTS SUMMARY")
        print("=" * 70)
        print(f"{'Scenario':<24} {'Spearman':<10} {'Kendall':<10} {'Top-10':<10} {'Med delta':<10}")
        print("-" * 70)
        for name, result in results.items():
            m = result['metrics']
            print(f"{name:<24} {m['spearman_correlation']:<10.3f} "
                  f"{m['kendall_correlation']:<10.3f} "
                  f"{m['top10_overlap']:<10.3f} "
                  f"{m['median_rank_delta']:<10.1f}")
        print("=" * 70)

    except Exception as e:
        logger.error(f"Tuning failed: {e}")
        raise


if __name__ == "__main__":
    main()
