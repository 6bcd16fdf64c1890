import os
import sys
from datetime import datetime, timezone

import pytest

# Add src to path for import
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))
sys.path.insert(0, os.path.dirname(__file__))

from fakes import FakeTable  # noqa: E402

FIXED_NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def tasks_table():
    return FakeTable('Tasks', hash_key='taskId')


@pytest.fixture
def analytics_table():
    return FakeTable('UserAnalytics', hash_key='userId')


@pytest.fixture
def leaderboard_table():
    return FakeTable('LeaderboardCache', hash_key='cacheType', range_key='lastUpdated')


@pytest.fixture
def profiles_table():
    return FakeTable('UserProfiles', hash_key='username')
