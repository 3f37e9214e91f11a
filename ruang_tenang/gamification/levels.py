"""
Level ladder and level resolution

Levels come from the admin-managed level_configs table:
- Levels are totally ordered by `level`
- `min_exp` strictly increases with `level`
- Level 1 starts at 0 EXP, so every balance has a level

A balance resolves to the highest level whose `min_exp` it has reached.
If the table is empty or cannot place the balance (no level at 0 EXP), the
resolver returns DEFAULT_LEVEL with `is_default=True` instead of failing.
"""

import logging
from typing import Iterable, List, Optional

from ruang_tenang.models.gamification import LevelConfig, LevelView
from ruang_tenang.monitoring import record_level_fallback

logger = logging.getLogger(__name__)


DEFAULT_LEVEL = LevelConfig(level=1, min_exp=0, badge_name="Beginner", badge_icon="🌱")

# Seed ladder for fresh deployments
DEFAULT_LEVELS: List[LevelConfig] = [
    LevelConfig(level=1, min_exp=0, badge_name="Beginner", badge_icon="🌱"),
    LevelConfig(level=2, min_exp=100, badge_name="Explorer", badge_icon="🌿"),
    LevelConfig(level=3, min_exp=300, badge_name="Learner", badge_icon="📚"),
    LevelConfig(level=4, min_exp=600, badge_name="Intermediate", badge_icon="🌳"),
    LevelConfig(level=5, min_exp=1000, badge_name="Advanced", badge_icon="🏆"),
    LevelConfig(level=6, min_exp=1500, badge_name="Expert", badge_icon="💎"),
    LevelConfig(level=7, min_exp=2000, badge_name="Master", badge_icon="⭐"),
    LevelConfig(level=8, min_exp=3000, badge_name="Grandmaster", badge_icon="👑"),
]


def find_level_table_problems(configs: Iterable[LevelConfig]) -> List[str]:
    """
    Check a level table against the ladder invariants

    Returns:
        Human-readable problems, empty when the table is consistent.
        An empty table has no problems (the default level covers it).
    """
    ordered = sorted(configs, key=lambda c: c.level)
    if not ordered:
        return []

    problems = []
    if ordered[0].level != 1 or ordered[0].min_exp != 0:
        problems.append("Level 1 must exist with min_exp 0")

    for prev, cur in zip(ordered, ordered[1:]):
        if cur.level == prev.level:
            problems.append(f"Duplicate level {cur.level}")
        elif cur.min_exp <= prev.min_exp:
            problems.append(
                f"Level {cur.level} min_exp {cur.min_exp} must be greater than "
                f"level {prev.level} min_exp {prev.min_exp}"
            )

    return problems


class LevelTable:
    """Immutable, level-ascending snapshot of the level configuration"""

    def __init__(self, configs: Iterable[LevelConfig]):
        self._levels: tuple = tuple(sorted(configs, key=lambda c: c.level))
        self.problems = find_level_table_problems(self._levels)
        if self.problems:
            logger.warning(f"Level table is misconfigured: {'; '.join(self.problems)}")

    def __len__(self) -> int:
        return len(self._levels)

    def current_for(self, exp: int) -> Optional[LevelConfig]:
        """Highest level whose threshold `exp` has reached, or None"""
        current = None
        for config in self._levels:
            if config.min_exp <= exp:
                current = config
        return current

    def next_after(self, level: int) -> Optional[LevelConfig]:
        """Lowest level above `level`, or None at the top of the ladder"""
        for config in self._levels:
            if config.level > level:
                return config
        return None

    def first_above(self, exp: int) -> Optional[LevelConfig]:
        """Lowest level whose threshold `exp` has not reached yet"""
        for config in self._levels:
            if config.min_exp > exp:
                return config
        return None


def exp_to_next_level(current_exp: int, next_level: Optional[LevelConfig]) -> Optional[int]:
    """EXP still needed to reach `next_level`; None at the top of the ladder"""
    if next_level is None:
        return None
    return max(next_level.min_exp - current_exp, 0)


def resolve_level(table: LevelTable, current_exp: int) -> LevelView:
    """
    Resolve the current and next level for an EXP balance

    Args:
        table: Level table snapshot
        current_exp: User's EXP balance (negative values are treated as 0)

    Returns:
        LevelView; `is_default` is True when DEFAULT_LEVEL was substituted
    """
    if current_exp < 0:
        logger.warning(f"Negative EXP balance {current_exp} resolved as 0")
        current_exp = 0

    current = table.current_for(current_exp)
    is_default = current is None
    if is_default:
        logger.warning(
            f"No level config covers {current_exp} EXP, using default level "
            f"({len(table)} levels configured)"
        )
        current = DEFAULT_LEVEL
        # The default is not part of the table; progress toward the first real threshold
        next_level = table.first_above(current_exp)
    else:
        next_level = table.next_after(current.level)

    return LevelView(
        current_exp=current_exp,
        current_level=current,
        next_level=next_level,
        exp_to_next_level=exp_to_next_level(current_exp, next_level),
        is_default=is_default,
    )


class LevelResolver:
    """
    Resolves balances against a level table loaded from the store

    The table is read once per `load()`; `resolve()` does no I/O.
    """

    def __init__(self, table: Optional[LevelTable] = None):
        self.table = table if table is not None else LevelTable([])

    @classmethod
    async def load(cls, store) -> "LevelResolver":
        """Build a resolver from the store's current level configs"""
        configs = await store.list_level_configs()
        return cls(LevelTable(configs))

    def resolve(self, current_exp: int) -> LevelView:
        view = resolve_level(self.table, current_exp)
        if view.is_default:
            record_level_fallback()
        return view
