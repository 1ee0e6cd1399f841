#!/usr/bin/env python3
"""
Test suite for trend classification and improvement scoring
"""

import pytest
from pathlib import Path
import sys

# Add project root to path
sys.path.append(str(Path(__file__).parent.parent))

from src.analytics.config import DEFAULT_CONFIG, apply_overrides
from src.analytics.trend import classify_trend, improvement_score
from src.analytics.utils_stats import ols_slope, round_half_up, round_to


class TestStatsHelpers:
    """Test cases for the numeric helpers"""

    def test_ols_slope(self):
        """Test closed-form slope on a straight line"""
        assert ols_slope([50, 55, 60, 65, 70]) == pytest.approx(5.0)
        assert ols_slope([60, 61, 59, 60, 60]) == pytest.approx(-0.1)

    def test_ols_slope_degenerate(self):
        """Test that fewer than two points give a zero slope"""
        assert ols_slope([]) == 0.0
        assert ols_slope([42]) == 0.0

    @pytest.mark.parametrize("value,expected", [
        (81.5, 82), (81.49, 81), (80.5, 81), (0.5, 1), (0, 0), (99.99, 100),
    ])
    def test_round_half_up(self, value, expected):
        """Test that halves always round up"""
        assert round_half_up(value) == expected

    def test_round_to(self):
        """Test one-decimal half-up rounding"""
        assert round_to(55.714, 1) == pytest.approx(55.7)
        assert round_to(0.25, 1) == pytest.approx(0.3)


class TestClassifyTrend:
    """Test cases for classify_trend"""

    def test_improving(self):
        """Test steadily rising scores"""
        assert classify_trend([50, 55, 60, 65, 70]) == 'improving'

    def test_declining(self):
        """Test steadily falling scores"""
        assert classify_trend([70, 65, 60, 55, 50]) == 'declining'

    def test_stable(self):
        """Test noise around a constant"""
        assert classify_trend([60, 61, 59, 60, 60]) == 'stable'

    def test_short_series_is_stable(self):
        """Test that fewer than two scores are stable"""
        assert classify_trend([]) == 'stable'
        assert classify_trend([90]) == 'stable'

    def test_threshold_is_strict(self):
        """Test that a slope exactly at the threshold is stable"""
        assert classify_trend([0, 2, 4]) == 'stable'
        assert classify_trend([0, 3, 6]) == 'improving'

    def test_only_recent_window_counts(self):
        """Test that older history outside the window is ignored"""
        assert classify_trend([10, 20, 30, 40, 50, 50, 50, 50, 50]) == 'stable'

    def test_configurable_window(self):
        """Test that a wider window sees the earlier rise"""
        config = apply_overrides(DEFAULT_CONFIG, {'TREND_WINDOW': 9})

        assert classify_trend([10, 20, 30, 40, 50, 50, 50, 50, 50], config) == 'improving'


class TestImprovementScore:
    """Test cases for improvement_score"""

    def test_neutral_cases(self):
        """Test that insufficient history is neutral"""
        assert improvement_score([]) == 50
        assert improvement_score([80]) == 50
        assert improvement_score([60, 60, 60, 60, 60]) == 50

    def test_zero_older_average_is_neutral(self):
        """Test that a zero baseline does not divide by zero"""
        assert improvement_score([0, 70, 70, 70, 70, 70]) == 50

    def test_percentage_change(self):
        """Test a 10% rise maps to 60"""
        assert improvement_score([80, 88, 88, 88, 88, 88]) == pytest.approx(60.0)

    def test_clamped(self):
        """Test that large changes stay within 0..100"""
        assert improvement_score([40, 50, 60, 70, 80, 90]) == 100.0
        assert improvement_score([100, 50, 50, 50, 50, 50]) == 0.0

    def test_disagrees_with_trend(self):
        """Test that a flat recent window can still show improvement"""
        scores = [40, 40, 80, 80, 80, 80, 80]

        assert classify_trend(scores) == 'stable'
        assert improvement_score(scores) == 100.0
