"""Unit tests for the EXP award engine (ruang_tenang/gamification/engine.py)"""
import asyncio
import pytest
from datetime import date, datetime, timezone
from unittest.mock import patch

from ruang_tenang.exceptions import (
    ActivityConfigError,
    AwardFailedError,
    UnknownActivityError,
    UserNotFoundError,
)
from ruang_tenang.gamification.activities import ActivityRegistry
from ruang_tenang.gamification.engine import GamificationEngine
from ruang_tenang.gamification.memory_store import InMemoryAwardUnitOfWork, InMemoryGamificationStore
from ruang_tenang.models.gamification import ActivityType


# ============================================================================
# Award Tests
# ============================================================================

@pytest.mark.asyncio
async def test_award_uncapped_activity(engine, memory_store, test_user_id):
    """Test a single article upload"""
    result = await engine.award_exp(test_user_id, ActivityType.UPLOAD_ARTICLE)

    assert result.awarded is True
    assert result.points == 20
    assert result.new_total_exp == 20
    assert result.daily_count is None
    assert result.daily_limit is None
    assert result.history_id is not None
    assert memory_store.balances[test_user_id] == 20

    history = memory_store.history_for(test_user_id)
    assert len(history) == 1
    assert history[0].activity_type == "upload_article"
    assert history[0].points == 20
    assert history[0].description == "Mengunggah artikel baru"


@pytest.mark.asyncio
async def test_chat_ai_awarded_once_per_day(engine, memory_store, test_user_id):
    """Second chat on the same day is a silent no-op"""
    first = await engine.award_exp(test_user_id, "chat_ai")
    second = await engine.award_exp(test_user_id, "chat_ai")

    assert first.awarded is True
    assert first.daily_count == 1
    assert second.awarded is False
    assert second.points == 0
    assert second.new_total_exp is None

    assert memory_store.balances[test_user_id] == 10
    assert await memory_store.get_daily_count(test_user_id, "chat_ai", date(2024, 1, 15)) == 1
    assert len(memory_store.history_for(test_user_id, "chat_ai")) == 1


@pytest.mark.asyncio
async def test_forum_comment_cap(engine, memory_store, test_user_id):
    """Only the first five comments of the day earn EXP"""
    results = [await engine.award_exp(test_user_id, "forum_comment") for _ in range(7)]

    assert [r.awarded for r in results] == [True] * 5 + [False] * 2
    assert [r.daily_count for r in results[:5]] == [1, 2, 3, 4, 5]
    assert memory_store.balances[test_user_id] == 25
    assert len(memory_store.history_for(test_user_id, "forum_comment")) == 5


@pytest.mark.asyncio
async def test_concurrent_capped_awards_respect_limit(engine, memory_store, test_user_id):
    """Ten simultaneous comments still award exactly five"""
    results = await asyncio.gather(*[
        engine.award_exp(test_user_id, ActivityType.FORUM_COMMENT) for _ in range(10)
    ])

    assert sum(1 for r in results if r.awarded) == 5
    assert memory_store.balances[test_user_id] == 25
    assert await memory_store.get_daily_count(
        test_user_id, "forum_comment", date(2024, 1, 15)
    ) == 5
    assert len(memory_store.history_for(test_user_id)) == 5


@pytest.mark.asyncio
async def test_concurrent_uncapped_awards_all_apply(engine, memory_store, test_user_id):
    await asyncio.gather(*[
        engine.award_exp(test_user_id, ActivityType.UPLOAD_ARTICLE) for _ in range(10)
    ])

    assert memory_store.balances[test_user_id] == 200
    assert len(memory_store.history_for(test_user_id)) == 10


@pytest.mark.asyncio
async def test_balance_equals_history_sum(engine, memory_store, test_user_id):
    for activity in ["chat_ai", "chat_ai", "forum_comment", "upload_article", "forum_comment"]:
        await engine.award_exp(test_user_id, activity)

    history_total = sum(h.points for h in memory_store.history_for(test_user_id))
    assert memory_store.balances[test_user_id] == history_total == 40


@pytest.mark.asyncio
async def test_caps_are_per_user(engine, memory_store, test_user_id):
    memory_store.add_user(7)

    await engine.award_exp(test_user_id, "chat_ai")
    other = await engine.award_exp(7, "chat_ai")

    assert other.awarded is True
    assert memory_store.balances[7] == 10


@pytest.mark.asyncio
async def test_caps_are_per_activity(engine, memory_store, test_user_id):
    await engine.award_exp(test_user_id, "chat_ai")
    comment = await engine.award_exp(test_user_id, "forum_comment")

    assert comment.awarded is True
    assert memory_store.balances[test_user_id] == 15


@pytest.mark.asyncio
async def test_explicit_points_must_match_rule(engine, memory_store, test_user_id):
    result = await engine.award_exp(test_user_id, "forum_comment", points=5)
    assert result.points == 5

    with pytest.raises(ActivityConfigError):
        await engine.award_exp(test_user_id, "forum_comment", points=100)

    assert memory_store.balances[test_user_id] == 5


# ============================================================================
# Activity Day Tests
# ============================================================================

@pytest.mark.asyncio
async def test_cap_resets_on_next_activity_day(memory_store, wib, test_user_id):
    """Day boundary is midnight WIB, i.e. 17:00 UTC"""
    moments = iter([
        datetime(2024, 1, 15, 16, 59, tzinfo=timezone.utc),  # 23:59 WIB, Jan 15
        datetime(2024, 1, 15, 17, 0, tzinfo=timezone.utc),   # 00:00 WIB, Jan 16
    ])
    engine = GamificationEngine(memory_store, tz=wib, clock=lambda: next(moments))

    first = await engine.award_exp(test_user_id, "chat_ai")
    second = await engine.award_exp(test_user_id, "chat_ai")

    assert first.day == date(2024, 1, 15)
    assert second.day == date(2024, 1, 16)
    assert second.awarded is True
    assert memory_store.balances[test_user_id] == 20


@pytest.mark.asyncio
async def test_history_timestamp_is_award_instant(engine, memory_store, test_user_id, fixed_now):
    await engine.award_exp(test_user_id, "upload_article")

    assert memory_store.history_for(test_user_id)[0].created_at == fixed_now


# ============================================================================
# Failure Tests
# ============================================================================

@pytest.mark.asyncio
async def test_unknown_activity_fails_before_any_write(engine, memory_store, test_user_id):
    with pytest.raises(UnknownActivityError):
        await engine.award_exp(test_user_id, "daily_login")

    assert memory_store.balances[test_user_id] == 0
    assert memory_store.daily_counts == {}
    assert memory_store.history == []


@pytest.mark.asyncio
async def test_unregistered_activity_fails(memory_store, wib, test_user_id):
    registry = ActivityRegistry({"chat_ai": {"points": 10, "daily_limit": 1}})
    engine = GamificationEngine(memory_store, activities=registry, tz=wib)

    with pytest.raises(UnknownActivityError):
        await engine.award_exp(test_user_id, "upload_article")


@pytest.mark.asyncio
async def test_missing_user_rolls_back_counter(engine, memory_store):
    """Counter increment is discarded when the balance update finds no user"""
    with pytest.raises(UserNotFoundError):
        await engine.award_exp(999, "forum_comment")

    assert memory_store.daily_counts == {}
    assert memory_store.history == []


@pytest.mark.asyncio
async def test_history_failure_rolls_back_everything(engine, memory_store, test_user_id):
    with patch.object(
        InMemoryAwardUnitOfWork,
        "append_history",
        side_effect=RuntimeError("disk full")
    ):
        with pytest.raises(AwardFailedError) as exc_info:
            await engine.award_exp(test_user_id, "forum_comment")

    assert isinstance(exc_info.value.cause, RuntimeError)
    assert exc_info.value.activity_type == "forum_comment"
    assert memory_store.balances[test_user_id] == 0
    assert memory_store.daily_counts == {}
    assert memory_store.history == []

    # Next attempt is unaffected by the failed one
    result = await engine.award_exp(test_user_id, "forum_comment")
    assert result.awarded is True
    assert result.daily_count == 1


@pytest.mark.asyncio
async def test_failed_award_is_recorded(engine, test_user_id):
    with patch("ruang_tenang.gamification.engine.record_award_outcome") as mock_record, \
            patch.object(InMemoryAwardUnitOfWork, "add_exp", side_effect=RuntimeError("boom")):
        with pytest.raises(AwardFailedError):
            await engine.award_exp(test_user_id, "upload_article")

    mock_record.assert_called_once_with("upload_article", "failed")


@pytest.mark.asyncio
async def test_outcomes_are_recorded(engine, test_user_id):
    with patch("ruang_tenang.gamification.engine.record_award_outcome") as mock_record:
        await engine.award_exp(test_user_id, "chat_ai")
        await engine.award_exp(test_user_id, "chat_ai")

    assert [c.args for c in mock_record.call_args_list] == [
        ("chat_ai", "awarded", 10),
        ("chat_ai", "capped"),
    ]


@pytest.mark.asyncio
async def test_engine_defaults(test_user_id):
    """Default registry and timezone come from the deployment settings"""
    store = InMemoryGamificationStore(balances={test_user_id: 0})
    engine = GamificationEngine(store)

    assert engine.tz.key == "Asia/Jakarta"
    result = await engine.award_exp(test_user_id, "upload_article")
    assert result.new_total_exp == 20
