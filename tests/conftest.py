"""Global test fixtures and utilities for ruang-tenang tests"""
import pytest
from unittest.mock import AsyncMock, MagicMock
from datetime import datetime, timezone

from ruang_tenang.gamification.activities import ActivityRegistry
from ruang_tenang.gamification.engine import GamificationEngine
from ruang_tenang.gamification.memory_store import InMemoryGamificationStore
from ruang_tenang.models.gamification import LevelConfig
from ruang_tenang.utils.datetime_helpers import get_activity_timezone


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def mock_db_cursor():
    """Mock database cursor with standard query results"""
    cursor = AsyncMock()
    cursor.fetchone = AsyncMock(return_value=None)
    cursor.fetchall = AsyncMock(return_value=[])
    cursor.execute = AsyncMock()
    cursor.rowcount = 0
    return cursor


@pytest.fixture
def mock_db_connection(mock_db_cursor):
    """Mock connection whose cursor() yields mock_db_cursor"""
    conn = MagicMock()
    conn.cursor.return_value.__aenter__.return_value = mock_db_cursor
    conn.commit = AsyncMock()
    conn.rollback = AsyncMock()
    return conn


# ============================================================================
# User Fixtures
# ============================================================================

@pytest.fixture
def test_user_id():
    """Standard test user ID"""
    return 42


@pytest.fixture
def test_api_key():
    """Standard test API key"""
    return "test_api_key_12345"


# ============================================================================
# Gamification Fixtures
# ============================================================================

@pytest.fixture
def wib():
    """Activity-day timezone (Asia/Jakarta)"""
    return get_activity_timezone("Asia/Jakarta")


@pytest.fixture
def fixed_now():
    """2024-01-15 03:00 UTC = 10:00 WIB on 2024-01-15"""
    return datetime(2024, 1, 15, 3, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def level_configs():
    """Three-level ladder used across level tests"""
    return [
        LevelConfig(id=1, level=1, min_exp=0, badge_name="Beginner", badge_icon="🌱"),
        LevelConfig(id=2, level=2, min_exp=100, badge_name="Explorer", badge_icon="🌿"),
        LevelConfig(id=3, level=3, min_exp=300, badge_name="Learner", badge_icon="📚"),
    ]


@pytest.fixture
def memory_store(test_user_id, level_configs):
    """In-memory store with one user at 0 EXP"""
    return InMemoryGamificationStore(balances={test_user_id: 0}, level_configs=level_configs)


@pytest.fixture
def engine(memory_store, wib, fixed_now):
    """Engine over the in-memory store with a pinned clock"""
    return GamificationEngine(
        memory_store,
        activities=ActivityRegistry.default(),
        tz=wib,
        clock=lambda: fixed_now
    )
