"""
Gamification system for Ruang Tenang

- Activity rules with daily caps (activities.py)
- Atomic EXP awards with an audit trail (engine.py)
- Level ladder and badge resolution (levels.py)
- Background award dispatch for feature code (integrations.py)
"""

from ruang_tenang.gamification.activities import (
    ActivityRegistry,
    DEFAULT_ACTIVITY_RULES,
    parse_activity_type,
)
from ruang_tenang.gamification.engine import GamificationEngine
from ruang_tenang.gamification.levels import (
    DEFAULT_LEVEL,
    DEFAULT_LEVELS,
    LevelResolver,
    LevelTable,
    exp_to_next_level,
    resolve_level,
)
from ruang_tenang.gamification.integrations import ExpAwardDispatcher

__all__ = [
    "ActivityRegistry",
    "DEFAULT_ACTIVITY_RULES",
    "parse_activity_type",
    "GamificationEngine",
    "DEFAULT_LEVEL",
    "DEFAULT_LEVELS",
    "LevelResolver",
    "LevelTable",
    "exp_to_next_level",
    "resolve_level",
    "ExpAwardDispatcher",
]
