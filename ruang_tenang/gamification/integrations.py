"""
Gamification Integration Hooks

Feature code (chat, forum, articles) awards EXP *after* its own work has
committed. The award runs as a background task so it never adds latency to
the response, and a failed award is logged instead of failing the request.

Usage:
    from ruang_tenang.services.container import get_container

    # After the forum comment is saved
    get_container().exp_dispatcher.forum_comment_created(user_id)
"""

import asyncio
import logging
from typing import Optional, Set, Union

from ruang_tenang.config import AWARD_MAX_RETRIES
from ruang_tenang.gamification.activities import parse_activity_type
from ruang_tenang.gamification.engine import GamificationEngine
from ruang_tenang.models.gamification import ActivityType, AwardResult
from ruang_tenang.monitoring import record_award_retry
from ruang_tenang.resilience.retry import retry_with_backoff

logger = logging.getLogger(__name__)


class ExpAwardDispatcher:
    """Runs EXP awards in the background with retry and explicit error logging"""

    def __init__(self, engine: GamificationEngine, max_retries: int = AWARD_MAX_RETRIES):
        self.engine = engine
        self.max_retries = max_retries
        self._tasks: Set[asyncio.Task] = set()

    def dispatch(
        self,
        user_id: int,
        activity_type: Union[str, ActivityType]
    ) -> asyncio.Task:
        """
        Schedule an award and return immediately

        An unknown activity type raises here, in the caller, since it is a
        programming error rather than a runtime failure.

        Returns:
            The background task (resolves to AwardResult, or None on failure)
        """
        activity = parse_activity_type(activity_type)
        task = asyncio.create_task(self._award(user_id, activity))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _award(self, user_id: int, activity: ActivityType) -> Optional[AwardResult]:
        def on_retry(attempt: int, error: BaseException) -> None:
            record_award_retry(activity.value)

        try:
            return await retry_with_backoff(
                self.engine.award_exp,
                user_id,
                activity,
                max_retries=self.max_retries,
                on_retry=on_retry,
            )
        except Exception as e:
            # The triggering action already committed; the award is best-effort.
            logger.error(
                f"[GAMIFICATION] EXP award for user {user_id} ({activity.value}) "
                f"failed and was not applied: {e}",
                exc_info=True,
            )
            return None

    async def drain(self) -> None:
        """Wait for all in-flight awards (shutdown and tests)"""
        if self._tasks:
            logger.info(f"Waiting for {len(self._tasks)} pending EXP awards")
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    # Feature hooks

    def chat_completed(self, user_id: int) -> asyncio.Task:
        """AI chat reply delivered"""
        return self.dispatch(user_id, ActivityType.CHAT_AI)

    def article_uploaded(self, user_id: int) -> asyncio.Task:
        """Article published"""
        return self.dispatch(user_id, ActivityType.UPLOAD_ARTICLE)

    def forum_comment_created(self, user_id: int) -> asyncio.Task:
        """Forum reply posted"""
        return self.dispatch(user_id, ActivityType.FORUM_COMMENT)
