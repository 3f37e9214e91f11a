"""
Gamification storage

A store provides:
- unit_of_work(): async context manager yielding an award unit of work.
  Everything done through it commits together when the block exits
  normally and is discarded if the block raises.
- level_config_unit_of_work(): async context manager yielding a level
  config unit of work. Ladder writers are serialized for the whole block,
  so a read-check-write sequence inside it cannot interleave with another.
- get_user_exp(user_id) -> Optional[int]
- get_daily_count(user_id, activity_type, day) -> int
- list_top_users(limit) -> [{'id', 'name', 'avatar', 'exp'}]
- get_exp_history(history_filter, tz) -> (records newest first, total)
- get_activity_types() -> list[str]
- get_history_total(user_id) -> int
- list_level_configs() -> list[LevelConfig]
- get_level_config(config_id) -> Optional[LevelConfig]

An award unit of work provides:
- increment_daily_count(user_id, activity_type, day, daily_limit)
    -> new count, or None when the cap is already reached
- add_exp(user_id, points) -> new balance, or None if the user is missing
- append_history(user_id, activity_type, points, description, created_at)
    -> history row id

A level config unit of work provides:
- list_level_configs(), get_level_config(config_id)
- create_level_config(config) -> stored config
- update_level_config(config_id, config) -> updated config or None
- delete_level_config(config_id) -> bool

PostgresGamificationStore is the production store. InMemoryGamificationStore
(memory_store.py) has the same surface for tests and local development.
"""

import logging
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import AsyncGenerator, Optional, Tuple
from zoneinfo import ZoneInfo

from ruang_tenang.db import queries
from ruang_tenang.db.connection import Database, db
from ruang_tenang.models.gamification import ExpHistoryFilter, ExpHistoryRecord, LevelConfig

logger = logging.getLogger(__name__)


class PostgresAwardUnitOfWork:
    """Award writes bound to one transaction cursor"""

    def __init__(self, cur):
        self._cur = cur

    async def increment_daily_count(
        self,
        user_id: int,
        activity_type: str,
        day: date,
        daily_limit: int
    ) -> Optional[int]:
        return await queries.increment_daily_activity(
            self._cur, user_id, activity_type, day, daily_limit
        )

    async def add_exp(self, user_id: int, points: int) -> Optional[int]:
        return await queries.add_user_exp(self._cur, user_id, points)

    async def append_history(
        self,
        user_id: int,
        activity_type: str,
        points: int,
        description: str,
        created_at: datetime
    ) -> int:
        return await queries.insert_exp_history(
            self._cur, user_id, activity_type, points, description, created_at
        )


class PostgresLevelConfigUnitOfWork:
    """Level ladder reads and writes bound to one locked transaction cursor"""

    def __init__(self, cur):
        self._cur = cur

    async def list_level_configs(self) -> list[LevelConfig]:
        return await queries.select_level_configs(self._cur)

    async def get_level_config(self, config_id: int) -> Optional[LevelConfig]:
        return await queries.select_level_config(self._cur, config_id)

    async def create_level_config(self, config: LevelConfig) -> LevelConfig:
        return await queries.create_level_config(self._cur, config)

    async def update_level_config(self, config_id: int, config: LevelConfig) -> Optional[LevelConfig]:
        return await queries.update_level_config(self._cur, config_id, config)

    async def delete_level_config(self, config_id: int) -> bool:
        return await queries.delete_level_config(self._cur, config_id)


class PostgresGamificationStore:
    """Gamification store backed by PostgreSQL"""

    def __init__(self, database: Database = db):
        self.database = database

    @asynccontextmanager
    async def unit_of_work(self) -> AsyncGenerator[PostgresAwardUnitOfWork, None]:
        async with self.database.transaction() as conn:
            async with conn.cursor() as cur:
                yield PostgresAwardUnitOfWork(cur)

    @asynccontextmanager
    async def level_config_unit_of_work(self) -> AsyncGenerator[PostgresLevelConfigUnitOfWork, None]:
        async with self.database.transaction() as conn:
            async with conn.cursor() as cur:
                await queries.lock_level_configs(cur)
                yield PostgresLevelConfigUnitOfWork(cur)

    async def get_user_exp(self, user_id: int) -> Optional[int]:
        return await queries.get_user_exp(user_id, database=self.database)

    async def get_daily_count(self, user_id: int, activity_type: str, day: date) -> int:
        return await queries.get_daily_activity_count(
            user_id, activity_type, day, database=self.database
        )

    async def list_top_users(self, limit: int) -> list[dict]:
        return await queries.get_top_users(limit, database=self.database)

    async def get_exp_history(
        self,
        history_filter: ExpHistoryFilter,
        tz: Optional[ZoneInfo] = None
    ) -> Tuple[list[ExpHistoryRecord], int]:
        return await queries.get_exp_history(history_filter, tz, database=self.database)

    async def get_activity_types(self) -> list[str]:
        return await queries.get_exp_activity_types(database=self.database)

    async def get_history_total(self, user_id: int) -> int:
        return await queries.get_total_exp_from_history(user_id, database=self.database)

    async def list_level_configs(self) -> list[LevelConfig]:
        return await queries.get_all_level_configs(database=self.database)

    async def get_level_config(self, config_id: int) -> Optional[LevelConfig]:
        return await queries.get_level_config_by_id(config_id, database=self.database)
