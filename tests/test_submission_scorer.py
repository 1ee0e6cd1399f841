#!/usr/bin/env python3
"""
Test suite for weighted submission scoring
"""

import pytest
from datetime import datetime, timezone
from pathlib import Path
import sys

# Add project root to path
sys.path.append(str(Path(__file__).parent.parent))

from src.analytics.config import DEFAULT_CONFIG, apply_overrides
from src.analytics.models import Challenge, Submission
from src.analytics.submission_scorer import (
    create_submission, overall_rating_for, score_distribution, score_submission
)


class TestScoreSubmission:
    """Test cases for score_submission"""

    def test_weighted_average(self, passing_challenge):
        """Test that a required metric weighs double"""
        result = score_submission(passing_challenge, {'accuracy': 7, 'reps': 80})

        assert result.total_points == 240
        assert result.average_score == 80
        assert result.overall_rating == 'excellent'
        assert [ms.weight for ms in result.metric_scores] == [2, 1]

    def test_required_metric_dominates(self, passing_challenge):
        """Test mixed ratings across required and optional metrics"""
        result = score_submission(passing_challenge, {'accuracy': 9, 'reps': 10})

        assert result.total_points == 220
        assert result.average_score == 73
        assert result.overall_rating == 'excellent'

    def test_missing_values_score_poor(self, passing_challenge):
        """Test that missing metric values are graded as zero"""
        result = score_submission(passing_challenge, {})

        assert result.total_points == 60
        assert result.average_score == 20
        assert result.overall_rating == 'poor'
        assert all(ms.value == 0.0 for ms in result.metric_scores)

    def test_unthresholded_metric_is_skipped(self, passing_challenge):
        """Test that a metric without a threshold contributes nothing"""
        passing_challenge['metrics'].append({'id': 'form', 'name': 'Form', 'required': True})

        result = score_submission(passing_challenge, {'accuracy': 7, 'reps': 80, 'form': 1})

        assert result.skipped_metrics == ['form']
        assert result.average_score == 80
        assert len(result.metric_scores) == 2

    def test_no_thresholds_gives_zero(self):
        """Test that zero total weight yields a zero average"""
        challenge = Challenge(id='empty', metrics=[])

        result = score_submission(challenge, {'anything': 5})

        assert result.total_points == 0
        assert result.average_score == 0
        assert result.overall_rating == 'poor'

    def test_rating_uses_unrounded_average(self, passing_challenge):
        """Test that 69.6 is displayed as 70 but rated good"""
        config = apply_overrides(DEFAULT_CONFIG, {'METRIC_POINTS': {'excellent': 69.6}})

        result = score_submission(passing_challenge, {'accuracy': 7, 'reps': 80}, config)

        assert result.average_score == 70
        assert result.overall_rating == 'good'

    def test_accepts_challenge_object(self, passing_challenge):
        """Test that dict and dataclass challenges score the same"""
        values = {'accuracy': 5, 'reps': 60}

        from_dict = score_submission(passing_challenge, values)
        from_obj = score_submission(Challenge.from_dict(passing_challenge), values)

        assert from_dict == from_obj


class TestOverallRating:
    """Test cases for overall rating bands"""

    @pytest.mark.parametrize("average,rating", [
        (100, 'outstanding'),
        (90, 'outstanding'),
        (89.99, 'excellent'),
        (70, 'excellent'),
        (69.9, 'good'),
        (50, 'good'),
        (30, 'fair'),
        (29.9, 'poor'),
        (0, 'poor'),
    ])
    def test_bands(self, average, rating):
        """Test band edges are inclusive"""
        assert overall_rating_for(average) == rating

    def test_bands_are_stricter_than_ladder(self):
        """Test that a uniformly 'good' attempt (60) only rates good overall"""
        assert overall_rating_for(60) == 'good'
        assert overall_rating_for(80) == 'excellent'


class TestCreateSubmission:
    """Test cases for create_submission"""

    def test_creates_pending_scored_submission(self, passing_challenge):
        """Test that scores are computed at creation and status is pending"""
        submitted_at = datetime(2025, 6, 1, 9, 30, tzinfo=timezone.utc)

        submission = create_submission('p1', passing_challenge, {'accuracy': 7, 'reps': 80},
                                       video_id='vid-a', submitted_at=submitted_at)

        assert submission.id.startswith('submission-')
        assert submission.player_id == 'p1'
        assert submission.challenge_id == 'passing-101'
        assert submission.status == 'pending'
        assert submission.admin_score is None
        assert submission.total_score == 80
        assert submission.overall_rating == 'excellent'
        assert submission.submitted_at == submitted_at
        assert submission.video_id == 'vid-a'
        assert submission.scores['accuracy'] == {'value': 7.0, 'level': 1,
                                                 'rating': 'excellent', 'points': 80}

    def test_ids_are_unique(self, passing_challenge):
        """Test that each attempt gets its own id"""
        ids = {create_submission('p1', passing_challenge, {'accuracy': 1}).id for _ in range(20)}

        assert len(ids) == 20

    def test_default_timestamp_is_utc(self, passing_challenge):
        """Test that a missing submitted_at defaults to an aware UTC time"""
        submission = create_submission('p1', passing_challenge, {'accuracy': 1})

        assert submission.submitted_at.tzinfo is not None


class TestScoreDistribution:
    """Test cases for score_distribution"""

    def test_counts_every_rating(self):
        """Test that all five rating keys are present"""
        submissions = [
            Submission(id='a', player_id='p1', challenge_id='c1', overall_rating='good'),
            Submission(id='b', player_id='p1', challenge_id='c1', overall_rating='good'),
            Submission(id='c', player_id='p2', challenge_id='c1', overall_rating='outstanding'),
        ]

        distribution = score_distribution(submissions)

        assert distribution == {'poor': 0, 'fair': 0, 'good': 2, 'excellent': 0, 'outstanding': 1}

    def test_empty(self):
        """Test that no submissions gives all zeros"""
        assert sum(score_distribution([]).values()) == 0
