"""
Database queries - re-exported so callers can `from ruang_tenang.db import queries`.

Module organization:
- gamification.py: daily activity ledger, EXP balance writes, EXP history
- level_config.py: level ladder lock, CRUD and seeding
- user.py: EXP balance reads, leaderboard
"""

from ruang_tenang.db.queries.gamification import (
    increment_daily_activity,
    add_user_exp,
    insert_exp_history,
    get_daily_activity_count,
    get_exp_history,
    get_exp_activity_types,
    get_total_exp_from_history,
)

from ruang_tenang.db.queries.level_config import (
    lock_level_configs,
    select_level_configs,
    select_level_config,
    get_all_level_configs,
    get_level_config_by_id,
    create_level_config,
    update_level_config,
    delete_level_config,
    seed_level_configs,
)

from ruang_tenang.db.queries.user import (
    get_user_exp,
    get_top_users,
)

__all__ = [
    "increment_daily_activity",
    "add_user_exp",
    "insert_exp_history",
    "get_daily_activity_count",
    "get_exp_history",
    "get_exp_activity_types",
    "get_total_exp_from_history",
    "lock_level_configs",
    "select_level_configs",
    "select_level_config",
    "get_all_level_configs",
    "get_level_config_by_id",
    "create_level_config",
    "update_level_config",
    "delete_level_config",
    "seed_level_configs",
    "get_user_exp",
    "get_top_users",
]
