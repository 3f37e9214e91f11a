"""
Gamification database queries

Tables:
- users(id, name, avatar, exp, ...)
- user_activities(user_id, activity_type, date, count, created_at, updated_at)
  UNIQUE (user_id, activity_type, date)
- exp_histories(id, user_id, activity_type, points, description, created_at)

The award writes take an open cursor so the caller can run them inside a
single transaction. Read queries open their own connection.
"""
import logging
from datetime import date, datetime
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from ruang_tenang.db.connection import Database, db
from ruang_tenang.models.gamification import ExpHistoryFilter, ExpHistoryRecord
from ruang_tenang.utils.datetime_helpers import day_bounds_utc

logger = logging.getLogger(__name__)


# ==========================================
# Award writes (run inside the award transaction)
# ==========================================

async def increment_daily_activity(
    cur,
    user_id: int,
    activity_type: str,
    day: date,
    daily_limit: int
) -> Optional[int]:
    """
    Count one activity toward today's cap, unless the cap is already reached

    A single conditional upsert: the row lock taken by ON CONFLICT serializes
    concurrent awards for the same (user, activity, day).

    Returns:
        New count, or None when the cap was already reached
    """
    await cur.execute(
        """
        INSERT INTO user_activities (user_id, activity_type, date, count)
        VALUES (%s, %s, %s, 1)
        ON CONFLICT (user_id, activity_type, date)
        DO UPDATE SET count = user_activities.count + 1,
                      updated_at = CURRENT_TIMESTAMP
        WHERE user_activities.count < %s
        RETURNING count
        """,
        (user_id, activity_type, day, daily_limit)
    )
    row = await cur.fetchone()
    return row["count"] if row else None


async def add_user_exp(cur, user_id: int, points: int) -> Optional[int]:
    """
    Add points to a user's EXP balance

    Returns:
        New balance, or None if the user does not exist
    """
    await cur.execute(
        """
        UPDATE users
        SET exp = exp + %s,
            updated_at = CURRENT_TIMESTAMP
        WHERE id = %s AND deleted_at IS NULL
        RETURNING exp
        """,
        (points, user_id)
    )
    row = await cur.fetchone()
    return row["exp"] if row else None


async def insert_exp_history(
    cur,
    user_id: int,
    activity_type: str,
    points: int,
    description: str,
    created_at: datetime
) -> int:
    """
    Append an EXP history row

    Returns:
        History row ID
    """
    await cur.execute(
        """
        INSERT INTO exp_histories (user_id, activity_type, points, description, created_at)
        VALUES (%s, %s, %s, %s, %s)
        RETURNING id
        """,
        (user_id, activity_type, points, description, created_at)
    )
    row = await cur.fetchone()
    return row["id"]


# ==========================================
# Reads
# ==========================================

async def get_daily_activity_count(
    user_id: int,
    activity_type: str,
    day: date,
    database: Optional[Database] = None
) -> int:
    """Times an activity was counted for a user on a day (0 if no row)"""
    async with (database or db).connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT count
                FROM user_activities
                WHERE user_id = %s AND activity_type = %s AND date = %s
                """,
                (user_id, activity_type, day)
            )
            row = await cur.fetchone()
            return row["count"] if row else 0


def _history_where(history_filter: ExpHistoryFilter, tz: Optional[ZoneInfo]) -> Tuple[str, list]:
    clauses = ["user_id = %s"]
    params: list = [history_filter.user_id]

    if history_filter.activity_type:
        clauses.append("activity_type = %s")
        params.append(history_filter.activity_type)

    if history_filter.start_date:
        start, _ = day_bounds_utc(history_filter.start_date, tz)
        clauses.append("created_at >= %s")
        params.append(start)

    if history_filter.end_date:
        # End date is inclusive
        _, end = day_bounds_utc(history_filter.end_date, tz)
        clauses.append("created_at < %s")
        params.append(end)

    return " AND ".join(clauses), params


async def get_exp_history(
    history_filter: ExpHistoryFilter,
    tz: Optional[ZoneInfo] = None,
    database: Optional[Database] = None
) -> Tuple[list[ExpHistoryRecord], int]:
    """
    Get a page of EXP history for a user

    Args:
        history_filter: User, activity type, date range and page
        tz: Timezone for date-range bounds (defaults to ACTIVITY_TIMEZONE)

    Returns:
        (records newest first, total matching rows)
    """
    where, params = _history_where(history_filter, tz)

    async with (database or db).connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"SELECT COUNT(*) AS total FROM exp_histories WHERE {where}",
                params
            )
            total_row = await cur.fetchone()
            total = total_row["total"] if total_row else 0

            await cur.execute(
                f"""
                SELECT id, user_id, activity_type, points, description, created_at
                FROM exp_histories
                WHERE {where}
                ORDER BY created_at DESC, id DESC
                LIMIT %s OFFSET %s
                """,
                params + [history_filter.limit, history_filter.offset]
            )
            rows = await cur.fetchall()

    return [ExpHistoryRecord(**row) for row in rows], total


async def get_exp_activity_types(database: Optional[Database] = None) -> list[str]:
    """Distinct activity types present in EXP history (for filter dropdowns)"""
    async with (database or db).connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                "SELECT DISTINCT activity_type FROM exp_histories ORDER BY activity_type"
            )
            rows = await cur.fetchall()
            return [row["activity_type"] for row in rows]


async def get_total_exp_from_history(user_id: int, database: Optional[Database] = None) -> int:
    """Sum of all history points for a user; equals users.exp when consistent"""
    async with (database or db).connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                "SELECT COALESCE(SUM(points), 0) AS total FROM exp_histories WHERE user_id = %s",
                (user_id,)
            )
            row = await cur.fetchone()
            return int(row["total"]) if row else 0
