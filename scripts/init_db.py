"""
Database initialization script - schema for the LycaPay bot

Run once to create tables:
    python scripts/init_db.py
"""

import asyncio
import sys
from pathlib import Path
import os
from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load environment variables
load_dotenv()

import logging

from sqlalchemy import inspect

from app.db.database import Database

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./lycapay_bot.db")


async def init_db():
    """Create all tables (idempotent) and list what exists"""

    logger.info(f"🔌 Connecting to database: {DATABASE_URL}")
    database = Database(DATABASE_URL)

    try:
        await database.create_tables()
        logger.info("✅ Tables created\n")

        async with database.engine.connect() as conn:
            tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())

        logger.info("📋 Tables:")
        for table in sorted(tables):
            logger.info(f"  • {table}")

        logger.info("\n🎉 Database initialization complete!")

    except Exception as e:
        logger.error(f"❌ Error: {e}")
        raise
    finally:
        await database.dispose()
        logger.info("🔌 Connection closed")


if __name__ == "__main__":
    asyncio.run(init_db())
