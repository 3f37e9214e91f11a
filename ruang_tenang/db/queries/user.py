"""User queries used by gamification views"""
import logging
from typing import Optional

from ruang_tenang.db.connection import Database, db

logger = logging.getLogger(__name__)


async def get_user_exp(user_id: int, database: Optional[Database] = None) -> Optional[int]:
    """
    Read a user's EXP balance

    Returns:
        Balance, or None if the user does not exist
    """
    async with (database or db).connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                "SELECT exp FROM users WHERE id = %s AND deleted_at IS NULL",
                (user_id,)
            )
            row = await cur.fetchone()
            return row["exp"] if row else None


async def get_top_users(limit: int, database: Optional[Database] = None) -> list[dict]:
    """
    Users with the highest EXP

    Returns:
        [{'id', 'name', 'avatar', 'exp'}] ordered by exp DESC, then id
    """
    async with (database or db).connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT id, name, avatar, exp
                FROM users
                WHERE deleted_at IS NULL AND is_blocked = FALSE
                ORDER BY exp DESC, id ASC
                LIMIT %s
                """,
                (limit,)
            )
            rows = await cur.fetchall()
            return [dict(row) for row in rows]
