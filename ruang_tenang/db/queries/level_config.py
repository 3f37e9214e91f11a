"""
Level configuration queries

Table: level_configs(id, level UNIQUE, min_exp, badge_name, badge_icon,
created_at, updated_at)

Admin writes take an open cursor so the ladder check and the write run in
one transaction behind lock_level_configs(). Reads open their own connection.
"""
import logging
from typing import Iterable, Optional

from ruang_tenang.db.connection import Database, db
from ruang_tenang.models.gamification import LevelConfig

logger = logging.getLogger(__name__)

_COLUMNS = "id, level, min_exp, badge_name, badge_icon, created_at, updated_at"


# ==========================================
# Cursor-level statements (run inside the admin transaction)
# ==========================================

async def lock_level_configs(cur) -> None:
    """
    Serialize ladder writers until the transaction ends

    SHARE ROW EXCLUSIVE conflicts with itself, so a second writer waits
    for the first to commit before reading the ladder. Plain reads are
    not blocked.
    """
    await cur.execute("LOCK TABLE level_configs IN SHARE ROW EXCLUSIVE MODE")


async def select_level_configs(cur) -> list[LevelConfig]:
    """All level configs ordered by level ascending"""
    await cur.execute(f"SELECT {_COLUMNS} FROM level_configs ORDER BY level ASC")
    rows = await cur.fetchall()
    return [LevelConfig(**row) for row in rows]


async def select_level_config(cur, config_id: int) -> Optional[LevelConfig]:
    await cur.execute(
        f"SELECT {_COLUMNS} FROM level_configs WHERE id = %s",
        (config_id,)
    )
    row = await cur.fetchone()
    return LevelConfig(**row) if row else None


async def create_level_config(cur, config: LevelConfig) -> LevelConfig:
    """
    Insert a level config

    Returns:
        Stored config with id and timestamps

    Raises:
        psycopg.errors.UniqueViolation: level number already exists
    """
    await cur.execute(
        f"""
        INSERT INTO level_configs (level, min_exp, badge_name, badge_icon)
        VALUES (%s, %s, %s, %s)
        RETURNING {_COLUMNS}
        """,
        (config.level, config.min_exp, config.badge_name, config.badge_icon)
    )
    row = await cur.fetchone()
    logger.info(f"Created level config: level {config.level} ({config.badge_name})")
    return LevelConfig(**row)


async def update_level_config(cur, config_id: int, config: LevelConfig) -> Optional[LevelConfig]:
    """
    Replace the fields of an existing level config

    Returns:
        Updated config, or None if no row has this id
    """
    await cur.execute(
        f"""
        UPDATE level_configs
        SET level = %s,
            min_exp = %s,
            badge_name = %s,
            badge_icon = %s,
            updated_at = CURRENT_TIMESTAMP
        WHERE id = %s
        RETURNING {_COLUMNS}
        """,
        (config.level, config.min_exp, config.badge_name, config.badge_icon, config_id)
    )
    row = await cur.fetchone()
    return LevelConfig(**row) if row else None


async def delete_level_config(cur, config_id: int) -> bool:
    """
    Delete a level config

    Returns:
        True if a row was deleted
    """
    await cur.execute("DELETE FROM level_configs WHERE id = %s", (config_id,))
    return cur.rowcount > 0


# ==========================================
# Reads
# ==========================================

async def get_all_level_configs(database: Optional[Database] = None) -> list[LevelConfig]:
    """All level configs ordered by level ascending"""
    async with (database or db).connection() as conn:
        async with conn.cursor() as cur:
            return await select_level_configs(cur)


async def get_level_config_by_id(
    config_id: int,
    database: Optional[Database] = None
) -> Optional[LevelConfig]:
    async with (database or db).connection() as conn:
        async with conn.cursor() as cur:
            return await select_level_config(cur, config_id)


async def seed_level_configs(configs: Iterable[LevelConfig]) -> int:
    """
    Insert level configs whose level does not exist yet

    Returns:
        Number of rows created
    """
    created = 0
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            for config in configs:
                await cur.execute(
                    """
                    INSERT INTO level_configs (level, min_exp, badge_name, badge_icon)
                    VALUES (%s, %s, %s, %s)
                    ON CONFLICT (level) DO NOTHING
                    """,
                    (config.level, config.min_exp, config.badge_name, config.badge_icon)
                )
                if cur.rowcount > 0:
                    created += 1
                    logger.info(
                        f"Seeded level config: level {config.level} - "
                        f"{config.badge_name} ({config.badge_icon})"
                    )
            await conn.commit()
    return created
