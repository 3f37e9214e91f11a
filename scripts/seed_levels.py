#!/usr/bin/env python3
"""
Seed the default level ladder

Inserts the eight default levels (Beginner at 0 EXP through Grandmaster at
3000 EXP) into level_configs. Levels that already exist are left untouched,
so the script can run on every deploy.

Usage:
    python scripts/seed_levels.py

Requirements:
    - Database connection configured (DATABASE_URL env var)
    - level_configs table must exist
"""
import asyncio
import logging
import sys
from pathlib import Path

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from ruang_tenang.db.connection import db
from ruang_tenang.db.queries import seed_level_configs
from ruang_tenang.gamification.levels import DEFAULT_LEVELS

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def main() -> int:
    await db.init_pool()
    try:
        inserted = await seed_level_configs(DEFAULT_LEVELS)
        logger.info(
            f"Seeded {inserted} level configs "
            f"({len(DEFAULT_LEVELS) - inserted} already present)"
        )
        return 0
    except Exception as e:
        logger.error(f"Seeding level configs failed: {e}", exc_info=True)
        return 1
    finally:
        await db.close_pool()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
