#!/usr/bin/env python3
"""
Test suite for the rule set comparison harness
"""

import json
import pytest
import pandas as pd
from pathlib import Path
import sys

# Add project root to path
sys.path.append(str(Path(__file__).parent.parent))

from src.analytics.config import DEFAULT_CONFIG
from src.analytics.ranking_engine import generate_rankings
from src.analytics.ranking_tuner import (
    compare_rankings, load_yaml, rank_deltas, run_scenarios, save_report
)


@pytest.fixture
def snapshot(sample_players, sample_progress, sample_submissions):
    return {'players': sample_players, 'progress': sample_progress,
            'submissions': sample_submissions, 'videos': None}


class TestCompareRankings:
    """Test cases for compare_rankings"""

    def test_identical_rankings(self, snapshot, now):
        """Test that a ranking compared with itself shows no movement"""
        df = generate_rankings(snapshot['players'], snapshot['progress'],
                               snapshot['submissions'], now=now)

        metrics = compare_rankings(df, df)

        assert metrics['spearman_correlation'] == pytest.approx(1.0)
        assert metrics['kendall_correlation'] == pytest.approx(1.0)
        assert metrics['top5_overlap'] == 1.0
        assert metrics['max_rank_delta'] == 0.0
        assert metrics['players_compared'] == 3

    def test_swapped_leaders(self):
        """Test correlations when the top two trade places"""
        base = pd.DataFrame({'player_id': ['a', 'b', 'c'], 'rank': [1, 2, 3]})
        test = pd.DataFrame({'player_id': ['b', 'a', 'c'], 'rank': [1, 2, 3]})

        metrics = compare_rankings(base, test)

        assert metrics['spearman_correlation'] == pytest.approx(0.5)
        assert metrics['kendall_correlation'] == pytest.approx(1 / 3)
        assert metrics['median_rank_delta'] == 1.0
        assert metrics['max_rank_delta'] == 1.0

    def test_empty_input(self):
        """Test that empty tables give zeroed metrics"""
        empty = pd.DataFrame(columns=['player_id', 'rank'])

        assert compare_rankings(empty, empty)['players_compared'] == 0


class TestRunScenarios:
    """Test cases for run_scenarios"""

    def test_packaged_scenarios_load(self):
        """Test that the shipped scenario file parses"""
        scenarios = load_yaml(Path(__file__).parent.parent / "src" / "analytics" / "tuning_scenarios.yaml")

        assert 'baseline' in scenarios
        assert scenarios['flat_multiplier'] == {'LEVEL_TIERS': []}

    def test_flat_multiplier_reorders_leaders(self, snapshot, now):
        """Test that removing level multipliers lets p2 overtake p1"""
        scenarios = {'baseline': {}, 'flat_multiplier': {'LEVEL_TIERS': []}}

        results = run_scenarios(snapshot, DEFAULT_CONFIG, scenarios, now=now)

        assert list(results) == ['flat_multiplier']
        flat = results['flat_multiplier']
        assert list(flat['rankings']['player_id']) == ['p2', 'p1', 'p3']
        assert flat['metrics']['spearman_correlation'] == pytest.approx(0.5)

        deltas = flat['deltas'].set_index('player_id')
        assert deltas.loc['p1', 'points_delta'] == 830 - 1245
        assert deltas.loc['p1', 'rank_delta'] == 1

    def test_save_report(self, snapshot, now, tmp_path):
        """Test that each scenario gets metrics and rank delta files"""
        results = run_scenarios(snapshot, DEFAULT_CONFIG,
                                {'heavy_admin_scores': {'ADMIN_SCORE_MULTIPLIER': 3}}, now=now)

        save_report('heavy_admin_scores', results['heavy_admin_scores'], tmp_path)

        with open(tmp_path / "heavy_admin_scores" / "metrics.json", 'r', encoding='utf-8') as f:
            metrics = json.load(f)
        assert metrics['players_compared'] == 3
        assert (tmp_path / "heavy_admin_scores" / "rank_deltas.csv").exists()


class TestRankDeltas:
    """Test cases for rank_deltas"""

    def test_sorted_by_absolute_movement(self):
        """Test that the biggest movers come first"""
        base = pd.DataFrame({'player_id': ['a', 'b', 'c'], 'player_name': ['A', 'B', 'C'],
                             'rank': [1, 2, 3], 'total_points': [30, 20, 10],
                             'level': ['beginner'] * 3})
        test = pd.DataFrame({'player_id': ['c', 'b', 'a'], 'rank': [1, 2, 3],
                             'total_points': [40, 20, 5], 'level': ['beginner'] * 3})

        deltas = rank_deltas(base, test)

        assert list(deltas['abs_rank_delta'])[:2] == [2, 2]
        assert deltas.iloc[-1]['player_id'] == 'b'
