"""
GamificationService - Gamification Business Logic

Presentation-facing gamification features built on the engine and the
level ladder: user level views, EXP history, leaderboard and level
configuration management.
"""

import logging
import math
from typing import Any, Dict, List, Optional, Union

import psycopg
from psycopg.errors import UniqueViolation

from ruang_tenang.config import LEADERBOARD_DEFAULT_LIMIT, LEADERBOARD_MAX_LIMIT
from ruang_tenang.exceptions import (
    LevelConfigError,
    LevelExistsError,
    RecordNotFoundError,
    ValidationError,
    wrap_database_exception,
)
from ruang_tenang.gamification.engine import GamificationEngine
from ruang_tenang.gamification.levels import LevelResolver, find_level_table_problems
from ruang_tenang.models.gamification import (
    ActivityType,
    AwardResult,
    ExpHistoryFilter,
    ExpHistoryPage,
    LeaderboardEntry,
    LevelConfig,
    LevelView,
)

logger = logging.getLogger(__name__)

HISTORY_DEFAULT_LIMIT = 10
HISTORY_MAX_LIMIT = 100


class GamificationService:
    """
    Service for gamification features.

    Responsibilities:
    - Awarding EXP synchronously (most callers use ExpAwardDispatcher instead)
    - Level and badge views for profiles and the leaderboard
    - EXP history listing
    - Level configuration management with ladder validation
    """

    def __init__(self, db_connection, store, engine: GamificationEngine):
        """
        Initialize GamificationService.

        Args:
            db_connection: Database connection instance
            store: Gamification store used by the engine
            engine: EXP award engine
        """
        self.db = db_connection
        self.store = store
        self.engine = engine
        logger.debug("GamificationService initialized")

    # ==========================================
    # Awards and levels
    # ==========================================

    async def award_exp(
        self,
        user_id: int,
        activity_type: Union[str, ActivityType]
    ) -> AwardResult:
        """Award EXP and wait for the result"""
        return await self.engine.award_exp(user_id, activity_type)

    async def get_level_resolver(self) -> LevelResolver:
        """Level resolver over the current level table"""
        return await LevelResolver.load(self.store)

    async def resolve_level(self, exp: int) -> LevelView:
        resolver = await self.get_level_resolver()
        return resolver.resolve(exp)

    async def get_user_level(self, user_id: int) -> Dict[str, Any]:
        """
        Level info for a user's profile

        Returns:
            {
                'user_id': int,
                'level': int,
                'badge_name': str,
                'badge_icon': str,
                'current_exp': int,
                'next_level_exp': int | None,
                'exp_to_next_level': int | None,
                'is_default': bool
            }

        Raises:
            RecordNotFoundError: user does not exist
        """
        exp = await self.store.get_user_exp(user_id)
        if exp is None:
            raise RecordNotFoundError(
                message=f"User {user_id} not found",
                record_type="User",
                record_id=user_id,
            )

        view = await self.resolve_level(exp)
        return {
            "user_id": user_id,
            "level": view.current_level.level,
            "badge_name": view.current_level.badge_name,
            "badge_icon": view.current_level.badge_icon,
            "current_exp": view.current_exp,
            "next_level_exp": view.next_level.min_exp if view.next_level else None,
            "exp_to_next_level": view.exp_to_next_level,
            "is_default": view.is_default,
        }


    async def get_leaderboard(self, limit: Optional[int] = None) -> List[LeaderboardEntry]:
        """
        Top users by EXP with their badges

        Args:
            limit: Number of users (default 10, capped at LEADERBOARD_MAX_LIMIT)
        """
        limit = limit or LEADERBOARD_DEFAULT_LIMIT
        limit = max(1, min(limit, LEADERBOARD_MAX_LIMIT))

        try:
            users = await self.store.list_top_users(limit)
        except psycopg.Error as e:
            raise wrap_database_exception(e, operation="get_leaderboard") from e

        resolver = await self.get_level_resolver()
        entries = []
        for rank, user in enumerate(users, start=1):
            view = resolver.resolve(user["exp"])
            entries.append(LeaderboardEntry(
                rank=rank,
                user_id=user["id"],
                name=user["name"],
                avatar=user.get("avatar"),
                exp=user["exp"],
                level=view.current_level.level,
                badge_name=view.current_level.badge_name,
                badge_icon=view.current_level.badge_icon,
            ))
        return entries

    # ==========================================
    # EXP history
    # ==========================================

    async def get_exp_history(self, history_filter: ExpHistoryFilter) -> ExpHistoryPage:
        """
        Page of a user's EXP history, newest first

        Page defaults to 1, limit defaults to 10 and is capped at 100.

        Raises:
            ValidationError: end_date is before start_date
        """
        if (
            history_filter.start_date and history_filter.end_date
            and history_filter.end_date < history_filter.start_date
        ):
            raise ValidationError(
                message="end_date must not be before start_date",
                field="end_date",
                value=str(history_filter.end_date),
                user_id=history_filter.user_id,
            )

        page = history_filter.page if history_filter.page >= 1 else 1
        limit = history_filter.limit if history_filter.limit >= 1 else HISTORY_DEFAULT_LIMIT
        limit = min(limit, HISTORY_MAX_LIMIT)
        history_filter = history_filter.model_copy(update={"page": page, "limit": limit})

        try:
            records, total = await self.store.get_exp_history(history_filter, self.engine.tz)
        except psycopg.Error as e:
            raise wrap_database_exception(
                e, operation="get_exp_history", user_id=history_filter.user_id
            ) from e

        return ExpHistoryPage(
            data=records,
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit) if total else 0,
        )

    async def get_activity_types(self) -> List[str]:
        """Activity types that appear in EXP history"""
        return await self.store.get_activity_types()

    async def audit_user_balance(self, user_id: int) -> Dict[str, Any]:
        """
        Compare a user's balance with the sum of their history

        Returns:
            {'user_id', 'balance', 'history_total', 'consistent'}
        """
        balance = await self.store.get_user_exp(user_id)
        history_total = await self.store.get_history_total(user_id)
        consistent = balance == history_total
        if not consistent:
            logger.warning(
                f"EXP balance mismatch for user {user_id}: "
                f"balance={balance}, history={history_total}"
            )
        return {
            "user_id": user_id,
            "balance": balance,
            "history_total": history_total,
            "consistent": consistent,
        }

    # ==========================================
    # Level configuration
    # ==========================================

    async def list_level_configs(self) -> List[LevelConfig]:
        return await self.store.list_level_configs()

    async def get_level_config(self, config_id: int) -> LevelConfig:
        config = await self.store.get_level_config(config_id)
        if config is None:
            raise _level_config_not_found(config_id)
        return config

    def _check_ladder(self, configs: List[LevelConfig], level: int) -> None:
        problems = find_level_table_problems(configs)
        if problems:
            raise LevelConfigError(message="; ".join(problems), level=level)

    async def create_level_config(self, config: LevelConfig) -> LevelConfig:
        """
        Add a level to the ladder

        Raises:
            LevelExistsError: level number already configured
            LevelConfigError: the ladder would break its invariants
        """
        try:
            async with self.store.level_config_unit_of_work() as uow:
                existing = await uow.list_level_configs()
                if any(c.level == config.level for c in existing):
                    raise LevelExistsError(config.level)

                self._check_ladder(existing + [config], config.level)

                created = await uow.create_level_config(config)
        except UniqueViolation as e:
            raise LevelExistsError(config.level) from e

        logger.info(f"Level config created: level {created.level} at {created.min_exp} EXP")
        return created

    async def update_level_config(self, config_id: int, config: LevelConfig) -> LevelConfig:
        """
        Replace an existing level

        Raises:
            RecordNotFoundError: no config with this id
            LevelExistsError: moving onto a level number that is taken
            LevelConfigError: the ladder would break its invariants
        """
        try:
            async with self.store.level_config_unit_of_work() as uow:
                current = await uow.get_level_config(config_id)
                if current is None:
                    raise _level_config_not_found(config_id)

                existing = await uow.list_level_configs()
                others = [c for c in existing if c.id != current.id]
                if config.level != current.level and any(c.level == config.level for c in others):
                    raise LevelExistsError(config.level)

                self._check_ladder(others + [config], config.level)

                updated = await uow.update_level_config(config_id, config)
                if updated is None:
                    raise _level_config_not_found(config_id)
        except UniqueViolation as e:
            raise LevelExistsError(config.level) from e

        logger.info(f"Level config {config_id} updated: level {updated.level} at {updated.min_exp} EXP")
        return updated

    async def delete_level_config(self, config_id: int) -> None:
        """
        Remove a level

        Raises:
            RecordNotFoundError: no config with this id
            LevelConfigError: the remaining ladder would break its invariants
        """
        async with self.store.level_config_unit_of_work() as uow:
            current = await uow.get_level_config(config_id)
            if current is None:
                raise _level_config_not_found(config_id)

            existing = await uow.list_level_configs()
            remaining = [c for c in existing if c.id != current.id]
            self._check_ladder(remaining, current.level)

            await uow.delete_level_config(config_id)

        logger.info(f"Level config {config_id} (level {current.level}) deleted")


def _level_config_not_found(config_id: int) -> RecordNotFoundError:
    return RecordNotFoundError(
        message=f"Level config {config_id} not found",
        record_type="Level config",
        record_id=config_id,
    )
