"""Unit tests for activity rules (ruang_tenang/gamification/activities.py)"""
import pytest
from pydantic import ValidationError as PydanticValidationError

from ruang_tenang.exceptions import ActivityConfigError, UnknownActivityError
from ruang_tenang.gamification.activities import (
    ActivityRegistry,
    DEFAULT_ACTIVITY_RULES,
    parse_activity_type,
)
from ruang_tenang.models.gamification import ActivityRule, ActivityType


def test_default_rules_match_deployment_table():
    """Test the shipped point values and daily caps"""
    registry = ActivityRegistry.default()

    chat = registry.rule(ActivityType.CHAT_AI)
    assert chat.points == 10
    assert chat.daily_limit == 1

    article = registry.rule("upload_article")
    assert article.points == 20
    assert article.is_capped is False

    comment = registry.rule(ActivityType.FORUM_COMMENT)
    assert comment.points == 5
    assert comment.daily_limit == 5
    assert comment.description == "Berkomentar di forum"


def test_parse_activity_type_accepts_enum_and_string():
    assert parse_activity_type(ActivityType.CHAT_AI) is ActivityType.CHAT_AI
    assert parse_activity_type("forum_comment") is ActivityType.FORUM_COMMENT


def test_parse_activity_type_rejects_unknown():
    with pytest.raises(UnknownActivityError) as exc_info:
        parse_activity_type("daily_login")

    assert exc_info.value.activity_type == "daily_login"


def test_rule_for_unregistered_activity_fails_fast():
    """Known enum value without a configured rule is still an unknown activity"""
    registry = ActivityRegistry({ActivityType.CHAT_AI: DEFAULT_ACTIVITY_RULES[ActivityType.CHAT_AI]})

    with pytest.raises(UnknownActivityError):
        registry.rule(ActivityType.UPLOAD_ARTICLE)


def test_registry_accepts_plain_dict_rules():
    """Rules can be injected from config-style mappings"""
    registry = ActivityRegistry({
        "chat_ai": {"points": 15, "daily_limit": 2, "description": "Chat"},
    })

    rule = registry.rule("chat_ai")
    assert isinstance(rule, ActivityRule)
    assert rule.points == 15
    assert rule.daily_limit == 2


def test_registry_rejects_unknown_keys():
    with pytest.raises(UnknownActivityError):
        ActivityRegistry({"daily_login": {"points": 1}})


def test_points_for_uses_configured_value():
    registry = ActivityRegistry.default()

    assert registry.points_for("upload_article") == 20
    assert registry.points_for("upload_article", 20) == 20


def test_points_for_rejects_mismatched_points():
    """Same activity always carries the same points within one deployment"""
    registry = ActivityRegistry.default()

    with pytest.raises(ActivityConfigError) as exc_info:
        registry.points_for(ActivityType.FORUM_COMMENT, 50)

    assert exc_info.value.activity_type == "forum_comment"


def test_contains():
    registry = ActivityRegistry.default()

    assert "chat_ai" in registry
    assert ActivityType.FORUM_COMMENT in registry
    assert "daily_login" not in registry


def test_zero_daily_limit_means_uncapped():
    rule = ActivityRule(points=5, daily_limit=0)

    assert rule.is_capped is False


def test_rule_validation():
    """Points must be positive and limits non-negative"""
    with pytest.raises(PydanticValidationError):
        ActivityRule(points=0)

    with pytest.raises(PydanticValidationError):
        ActivityRule(points=5, daily_limit=-1)
