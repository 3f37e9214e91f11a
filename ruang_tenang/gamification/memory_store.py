"""
In-memory gamification store

Same surface as PostgresGamificationStore (see store.py). Used by tests and
for running the API without a database. Nothing is persisted.

Units of work run one at a time under a store-wide lock (one for awards,
one for the level ladder). Writes are staged on the unit of work and
applied only when its block exits without error.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import AsyncGenerator, Dict, Iterable, List, Optional, Tuple
from zoneinfo import ZoneInfo

from ruang_tenang.exceptions import LevelExistsError
from ruang_tenang.models.gamification import ExpHistoryFilter, ExpHistoryRecord, LevelConfig
from ruang_tenang.utils.datetime_helpers import day_bounds_utc

logger = logging.getLogger(__name__)

DailyKey = Tuple[int, str, date]


class InMemoryAwardUnitOfWork:
    """Staged award writes; applied by commit()"""

    def __init__(self, store: "InMemoryGamificationStore"):
        self._store = store
        self._counts: Dict[DailyKey, int] = {}
        self._balances: Dict[int, int] = {}
        self._history: List[ExpHistoryRecord] = []

    async def increment_daily_count(
        self,
        user_id: int,
        activity_type: str,
        day: date,
        daily_limit: int
    ) -> Optional[int]:
        key = (user_id, activity_type, day)
        current = self._counts.get(key, self._store.daily_counts.get(key, 0))
        await asyncio.sleep(0)  # yield like a database round-trip
        if current >= daily_limit:
            return None
        self._counts[key] = current + 1
        return current + 1

    async def add_exp(self, user_id: int, points: int) -> Optional[int]:
        if user_id not in self._store.balances:
            return None
        current = self._balances.get(user_id, self._store.balances[user_id])
        await asyncio.sleep(0)
        self._balances[user_id] = current + points
        return current + points

    async def append_history(
        self,
        user_id: int,
        activity_type: str,
        points: int,
        description: str,
        created_at: datetime
    ) -> int:
        record = ExpHistoryRecord(
            id=self._store._next_history_id + len(self._history),
            user_id=user_id,
            activity_type=activity_type,
            points=points,
            description=description,
            created_at=created_at,
        )
        self._history.append(record)
        return record.id

    def commit(self) -> None:
        self._store.daily_counts.update(self._counts)
        self._store.balances.update(self._balances)
        self._store.history.extend(self._history)
        self._store._next_history_id += len(self._history)


class InMemoryLevelConfigUnitOfWork:
    """Staged copy of the level ladder; applied by commit()"""

    def __init__(self, store: "InMemoryGamificationStore"):
        self._store = store
        self._configs: Dict[int, LevelConfig] = {c.id: c for c in store.level_configs}
        self._next_id = store._next_level_config_id

    async def list_level_configs(self) -> list[LevelConfig]:
        await asyncio.sleep(0)  # yield like a database round-trip
        return sorted(self._configs.values(), key=lambda c: c.level)

    async def get_level_config(self, config_id: int) -> Optional[LevelConfig]:
        return self._configs.get(config_id)

    def _check_unique(self, level: int, config_id: Optional[int] = None) -> None:
        if any(c.level == level and c.id != config_id for c in self._configs.values()):
            raise LevelExistsError(level)

    async def create_level_config(self, config: LevelConfig) -> LevelConfig:
        self._check_unique(config.level)
        stored = config.model_copy(update={"id": self._next_id})
        self._configs[stored.id] = stored
        self._next_id += 1
        return stored

    async def update_level_config(self, config_id: int, config: LevelConfig) -> Optional[LevelConfig]:
        if config_id not in self._configs:
            return None
        self._check_unique(config.level, config_id)
        stored = config.model_copy(update={"id": config_id})
        self._configs[config_id] = stored
        return stored

    async def delete_level_config(self, config_id: int) -> bool:
        return self._configs.pop(config_id, None) is not None

    def commit(self) -> None:
        self._store.level_configs = list(self._configs.values())
        self._store._next_level_config_id = self._next_id


class InMemoryGamificationStore:
    """Process-local gamification store"""

    def __init__(
        self,
        balances: Optional[Dict[int, int]] = None,
        level_configs: Optional[Iterable[LevelConfig]] = None
    ):
        self.balances: Dict[int, int] = dict(balances or {})
        self.profiles: Dict[int, dict] = {}
        self.daily_counts: Dict[DailyKey, int] = {}
        self.history: List[ExpHistoryRecord] = []
        self._next_history_id = 1
        self._lock = asyncio.Lock()
        self._level_lock = asyncio.Lock()

        # Configs without an id get one, as the database would assign
        configs = list(level_configs or [])
        next_id = max((c.id for c in configs if c.id is not None), default=0) + 1
        self.level_configs: List[LevelConfig] = []
        for config in configs:
            if config.id is None:
                config = config.model_copy(update={"id": next_id})
                next_id += 1
            self.level_configs.append(config)
        self._next_level_config_id = next_id
        logger.debug("InMemoryGamificationStore initialized - data is NOT persisted")

    def add_user(
        self,
        user_id: int,
        exp: int = 0,
        name: Optional[str] = None,
        avatar: Optional[str] = None
    ) -> None:
        self.balances[user_id] = exp
        self.profiles[user_id] = {"name": name or f"User {user_id}", "avatar": avatar}

    @asynccontextmanager
    async def unit_of_work(self) -> AsyncGenerator[InMemoryAwardUnitOfWork, None]:
        async with self._lock:
            uow = InMemoryAwardUnitOfWork(self)
            yield uow
            uow.commit()

    @asynccontextmanager
    async def level_config_unit_of_work(self) -> AsyncGenerator[InMemoryLevelConfigUnitOfWork, None]:
        async with self._level_lock:
            uow = InMemoryLevelConfigUnitOfWork(self)
            yield uow
            uow.commit()

    async def get_user_exp(self, user_id: int) -> Optional[int]:
        return self.balances.get(user_id)

    async def get_daily_count(self, user_id: int, activity_type: str, day: date) -> int:
        return self.daily_counts.get((user_id, activity_type, day), 0)

    async def list_top_users(self, limit: int) -> list[dict]:
        ranked = sorted(self.balances.items(), key=lambda item: (-item[1], item[0]))
        users = []
        for user_id, exp in ranked[:limit]:
            profile = self.profiles.get(user_id, {})
            users.append({
                "id": user_id,
                "name": profile.get("name") or f"User {user_id}",
                "avatar": profile.get("avatar"),
                "exp": exp,
            })
        return users

    async def get_exp_history(
        self,
        history_filter: ExpHistoryFilter,
        tz: Optional[ZoneInfo] = None
    ) -> Tuple[list[ExpHistoryRecord], int]:
        records = self.history_for(history_filter.user_id, history_filter.activity_type)

        if history_filter.start_date:
            start, _ = day_bounds_utc(history_filter.start_date, tz)
            records = [r for r in records if r.created_at >= start]
        if history_filter.end_date:
            _, end = day_bounds_utc(history_filter.end_date, tz)
            records = [r for r in records if r.created_at < end]

        records.sort(key=lambda r: (r.created_at, r.id or 0), reverse=True)
        offset = history_filter.offset
        return records[offset:offset + history_filter.limit], len(records)

    async def get_activity_types(self) -> list[str]:
        return sorted({h.activity_type for h in self.history})

    async def get_history_total(self, user_id: int) -> int:
        return sum(h.points for h in self.history_for(user_id))

    async def list_level_configs(self) -> list[LevelConfig]:
        return sorted(self.level_configs, key=lambda c: c.level)

    async def get_level_config(self, config_id: int) -> Optional[LevelConfig]:
        for config in self.level_configs:
            if config.id == config_id:
                return config
        return None

    def history_for(self, user_id: int, activity_type: Optional[str] = None) -> List[ExpHistoryRecord]:
        return [
            h for h in self.history
            if h.user_id == user_id and (activity_type is None or h.activity_type == activity_type)
        ]
