"""
Activity rules for EXP awards

Each activity type carries a fixed point value and an optional daily cap:

| Activity         | EXP | Daily cap |
|------------------|-----|-----------|
| chat_ai          | 10  | 1         |
| upload_article   | 20  | none      |
| forum_comment    | 5   | 5         |

The table is injected into the engine as an ActivityRegistry so tests and
deployments can swap it without touching module state.
"""

import logging
from typing import Dict, Mapping, Optional, Union

from ruang_tenang.exceptions import ActivityConfigError, UnknownActivityError
from ruang_tenang.models.gamification import ActivityRule, ActivityType

logger = logging.getLogger(__name__)


DEFAULT_ACTIVITY_RULES: Dict[ActivityType, ActivityRule] = {
    ActivityType.CHAT_AI: ActivityRule(
        points=10, daily_limit=1, description="Melakukan chat dengan AI"
    ),
    ActivityType.UPLOAD_ARTICLE: ActivityRule(
        points=20, daily_limit=None, description="Mengunggah artikel baru"
    ),
    ActivityType.FORUM_COMMENT: ActivityRule(
        points=5, daily_limit=5, description="Berkomentar di forum"
    ),
}


def parse_activity_type(value: Union[str, ActivityType]) -> ActivityType:
    """
    Coerce a raw value into the closed ActivityType enumeration

    Raises:
        UnknownActivityError: value is not a known activity type
    """
    if isinstance(value, ActivityType):
        return value
    try:
        return ActivityType(value)
    except ValueError:
        raise UnknownActivityError(value) from None


class ActivityRegistry:
    """Read-only mapping of activity type to its award rule"""

    def __init__(self, rules: Mapping[Union[str, ActivityType], Union[ActivityRule, dict]]):
        self._rules: Dict[ActivityType, ActivityRule] = {}
        for key, rule in rules.items():
            activity = parse_activity_type(key)
            if isinstance(rule, dict):
                rule = ActivityRule(**rule)
            self._rules[activity] = rule

        logger.debug(f"ActivityRegistry loaded {len(self._rules)} activity rules")

    @classmethod
    def default(cls) -> "ActivityRegistry":
        return cls(DEFAULT_ACTIVITY_RULES)

    def rule(self, activity: Union[str, ActivityType]) -> ActivityRule:
        """
        Get the rule for an activity type

        Raises:
            UnknownActivityError: activity is unknown or has no configured rule
        """
        activity = parse_activity_type(activity)
        rule = self._rules.get(activity)
        if rule is None:
            raise UnknownActivityError(activity.value)
        return rule

    def points_for(self, activity: Union[str, ActivityType], points: Optional[int] = None) -> int:
        """
        Resolve the point value for an award

        A caller-supplied value must match the configured one, so the same
        activity always carries the same points within one deployment.

        Raises:
            UnknownActivityError: activity has no rule
            ActivityConfigError: caller points disagree with the rule
        """
        rule = self.rule(activity)
        if points is None:
            return rule.points
        if points != rule.points:
            activity = parse_activity_type(activity)
            raise ActivityConfigError(
                message=(
                    f"Points for {activity.value} must be {rule.points}, got {points}"
                ),
                activity_type=activity.value,
            )
        return points

    def __contains__(self, activity: object) -> bool:
        try:
            return ActivityType(activity) in self._rules
        except ValueError:
            return False
