"""
EXP award engine

One award is one unit of work against the store:
1. Capped activity: count it toward today's cap. If the cap is already
   reached the award is a no-op: no points, no history, no counter change.
2. Add the activity's points to the user's EXP balance.
3. Append one EXP history row.

All three writes commit together or not at all. Reaching the cap is a
normal outcome (`AwardResult.awarded is False`), not an error.
"""

import logging
from datetime import datetime
from typing import Callable, Optional, Union
from zoneinfo import ZoneInfo

from ruang_tenang.exceptions import AwardFailedError, UserNotFoundError
from ruang_tenang.gamification.activities import ActivityRegistry, parse_activity_type
from ruang_tenang.models.gamification import ActivityType, AwardResult
from ruang_tenang.monitoring import record_award_outcome, track_award
from ruang_tenang.utils.datetime_helpers import activity_day, get_activity_timezone, now_utc

logger = logging.getLogger(__name__)


class GamificationEngine:
    """
    Awards EXP under per-activity daily caps

    Args:
        store: Gamification store (PostgresGamificationStore or InMemoryGamificationStore)
        activities: Activity rules; defaults to the deployment table
        tz: Timezone that defines an activity day; defaults to ACTIVITY_TIMEZONE
        clock: Returns the current aware datetime; defaults to now_utc
    """

    def __init__(
        self,
        store,
        activities: Optional[ActivityRegistry] = None,
        tz: Optional[ZoneInfo] = None,
        clock: Callable[[], datetime] = now_utc
    ):
        self.store = store
        self.activities = activities or ActivityRegistry.default()
        self.tz = tz or get_activity_timezone()
        self.clock = clock
        logger.debug(f"GamificationEngine initialized (activity day timezone: {self.tz.key})")

    async def award_exp(
        self,
        user_id: int,
        activity_type: Union[str, ActivityType],
        points: Optional[int] = None
    ) -> AwardResult:
        """
        Award EXP for one occurrence of an activity

        Args:
            user_id: ID of an existing user
            activity_type: One of ActivityType
            points: Optional; must equal the configured points for the activity

        Returns:
            AwardResult with `awarded=False` when the daily cap was already reached

        Raises:
            UnknownActivityError: activity type has no rule (fails before any write)
            ActivityConfigError: points disagree with the configured value
            UserNotFoundError: user has no row; the award is rolled back
            AwardFailedError: storage failure; the award is rolled back
        """
        activity = parse_activity_type(activity_type)
        rule = self.activities.rule(activity)
        points = self.activities.points_for(activity, points)

        now = self.clock()
        day = activity_day(now, self.tz)

        try:
            with track_award(activity.value):
                result = await self._award(user_id, activity, rule, points, now, day)
        except UserNotFoundError:
            record_award_outcome(activity.value, "failed")
            raise
        except Exception as e:
            record_award_outcome(activity.value, "failed")
            raise AwardFailedError(
                message=f"EXP award failed for user {user_id} ({activity.value}): {e}",
                activity_type=activity.value,
                user_id=user_id,
                operation="award_exp",
                cause=e,
            ) from e

        if result.awarded:
            record_award_outcome(activity.value, "awarded", result.points)
            logger.info(
                f"Awarded {result.points} EXP to user {user_id} for {activity.value}. "
                f"Total: {result.new_total_exp} EXP"
                + (f", today {result.daily_count}/{result.daily_limit}" if rule.is_capped else "")
            )
        else:
            record_award_outcome(activity.value, "capped")
            logger.debug(
                f"Daily limit {rule.daily_limit} reached for user {user_id} "
                f"({activity.value}) on {day}, no EXP awarded"
            )

        return result

    async def _award(self, user_id, activity, rule, points, now, day) -> AwardResult:
        async with self.store.unit_of_work() as uow:
            daily_count = None
            if rule.is_capped:
                daily_count = await uow.increment_daily_count(
                    user_id, activity.value, day, rule.daily_limit
                )
                if daily_count is None:
                    return AwardResult(
                        user_id=user_id,
                        activity_type=activity,
                        day=day,
                        awarded=False,
                        daily_count=rule.daily_limit,
                        daily_limit=rule.daily_limit,
                    )

            new_total = await uow.add_exp(user_id, points)
            if new_total is None:
                raise UserNotFoundError(user_id, operation="award_exp")

            history_id = await uow.append_history(
                user_id, activity.value, points, rule.description, now
            )

        return AwardResult(
            user_id=user_id,
            activity_type=activity,
            day=day,
            awarded=True,
            points=points,
            daily_count=daily_count,
            daily_limit=rule.daily_limit if rule.is_capped else None,
            new_total_exp=new_total,
            history_id=history_id,
        )
