#!/usr/bin/env python3
"""
Pytest configuration and fixtures
"""

import json
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add project root to path
sys.path.append(str(Path(__file__).parent.parent))

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    """Fixed reference time for activity-dependent terms"""
    return NOW


@pytest.fixture
def passing_challenge():
    """Challenge with one required and one optional thresholded metric"""
    return {
        'id': 'passing-101',
        'difficulty': 'beginner',
        'level': 1,
        'points': 50,
        'metrics': [
            {'id': 'accuracy', 'name': 'Accurate passes', 'unit': 'passes',
             'required': True, 'valueType': 'count'},
            {'id': 'reps', 'name': 'Repetitions', 'unit': 'reps',
             'required': False, 'valueType': 'count'},
        ],
        'thresholds': [
            {'metricId': 'accuracy', 'level': 1,
             'thresholds': {'fair': 3, 'good': 5, 'excellent': 7, 'outstanding': 9}},
            {'metricId': 'reps', 'level': 1,
             'thresholds': {'fair': 40, 'good': 60, 'excellent': 80, 'outstanding': 100}},
        ],
    }


@pytest.fixture
def sample_players():
    """Roster with three ranked players, one scout and one player without progress"""
    return [
        {'uid': 'p1', 'type': 'player', 'displayName': 'Alice Mora', 'email': 'alice@example.com',
         'position': 'midfielder', 'age': 17},
        {'uid': 'p2', 'type': 'player', 'firstName': 'Ben', 'lastName': 'Okafor',
         'email': 'ben@example.com', 'position': 'striker', 'age': 22},
        {'uid': 'p3', 'type': 'player', 'displayName': 'Cara Lind', 'email': 'cara@example.com',
         'position': 'defender', 'age': 15},
        {'uid': 's1', 'type': 'scout', 'displayName': 'Sam Scout', 'email': 'sam@example.com'},
        {'uid': 'p4', 'type': 'player', 'displayName': 'No Progress', 'email': 'np@example.com',
         'position': 'goalkeeper', 'age': 19},
    ]


@pytest.fixture
def sample_progress():
    """Progress records: p1 advanced, p2 intermediate, p3 beginner"""
    return [
        {'playerId': 'p1',
         'completedVideos': [f'v{i}' for i in range(22)],
         'completedSeries': [f's{i}' for i in range(5)],
         'achievements': [{'id': 'a1', 'points': 30}, {'id': 'a2', 'points': 20}],
         'lastActivity': '2025-06-13T12:00:00Z'},
        {'playerId': 'p2',
         'completedVideos': [f'v{i}' for i in range(12)],
         'completedSeries': ['s0', 's1'],
         'achievements': [{'id': 'a9', 'points': 3}],
         'lastActivity': '2025-06-01T12:00:00Z'},
        {'playerId': 'p3',
         'completedVideos': ['v0', 'v1', 'v2'],
         'completedSeries': [],
         'achievements': [{'id': 'a1', 'points': 10}],
         'lastActivity': '2025-06-15T08:00:00Z'},
        {'playerId': 's1',
         'completedVideos': [], 'completedSeries': [], 'achievements': [],
         'lastActivity': '2025-06-15T08:00:00Z'},
    ]


@pytest.fixture
def sample_submissions():
    """Submission history for p1, p2 and p3"""
    records = [
        {'id': 'p1-1', 'playerId': 'p1', 'challengeId': 'c1', 'totalScore': 70,
         'overallRating': 'excellent', 'submittedAt': '2025-05-01T10:00:00Z',
         'status': 'approved', 'adminScore': 70, 'videoId': 'vid-a'},
        {'id': 'p1-2', 'playerId': 'p1', 'challengeId': 'c1', 'totalScore': 80,
         'overallRating': 'excellent', 'submittedAt': '2025-05-10T10:00:00Z',
         'status': 'approved', 'adminScore': 80, 'videoId': 'vid-b'},
        {'id': 'p1-3', 'playerId': 'p1', 'challengeId': 'c2', 'totalScore': 90,
         'overallRating': 'outstanding', 'submittedAt': '2025-05-20T10:00:00Z',
         'status': 'approved', 'adminScore': 90, 'videoId': 'vid-c'},
        {'id': 'p1-4', 'playerId': 'p1', 'challengeId': 'c2', 'totalScore': 20,
         'overallRating': 'poor', 'submittedAt': '2025-05-25T10:00:00Z',
         'status': 'rejected'},
        {'id': 'p3-1', 'playerId': 'p3', 'challengeId': 'c1', 'totalScore': 40,
         'overallRating': 'fair', 'submittedAt': '2025-06-14T10:00:00Z',
         'status': 'pending'},
        {'id': 'p2-pending', 'playerId': 'p2', 'challengeId': 'c3', 'totalScore': 60,
         'overallRating': 'good', 'submittedAt': '2025-06-01T09:00:00Z',
         'status': 'pending'},
    ]
    # p2: six approved reviews, oldest first, admin scores 40..90
    for i, score in enumerate([40, 50, 60, 70, 80, 90]):
        records.append({
            'id': f'p2-{i}', 'playerId': 'p2', 'challengeId': 'c1', 'totalScore': score,
            'overallRating': 'good', 'submittedAt': f'2025-0{i + 1}-01T08:00:00Z',
            'status': 'approved', 'adminScore': score,
        })
    return records


@pytest.fixture
def snapshot_dir(tmp_path, sample_players, sample_progress, sample_submissions):
    """Snapshot directory with JSON exports of every table"""
    tables = {
        'players_20250615_1200.json': sample_players,
        'progress_20250615_1200.json': sample_progress,
        'submissions_20250615_1200.json': sample_submissions,
    }
    for name, records in tables.items():
        with open(tmp_path / name, 'w', encoding='utf-8') as f:
            json.dump(records, f)
    return tmp_path
