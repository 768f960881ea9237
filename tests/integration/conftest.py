"""PostgreSQL fixtures. Tests skip when the database is unreachable."""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy import text as sql_text
from sqlalchemy.exc import SQLAlchemyError

from ehub.config import get_settings
from ehub.database import close_db, create_schema, get_session_factory, init_db
from ehub.gamification.seed import seed_achievements
from ehub.gamification.store import SqlStatsStore

TABLES = ["notifications", "notification_settings", "user_achievements", "user_stats"]


@pytest_asyncio.fixture
async def sql_store() -> AsyncGenerator[SqlStatsStore, None]:
    """Store on a freshly seeded schema with the per-user tables emptied."""
    settings = get_settings()
    await init_db(settings.database_url, pool_size=settings.db_pool_size, max_overflow=settings.db_max_overflow)
    try:
        await create_schema()
    except (OSError, SQLAlchemyError) as exc:
        await close_db()
        pytest.skip(f"PostgreSQL unavailable: {exc}")

    factory = get_session_factory()
    async with factory() as db:
        for table in TABLES:
            await db.execute(sql_text(f"TRUNCATE TABLE {table} CASCADE"))  # noqa: S608
        await db.commit()
        await seed_achievements(db)

    yield SqlStatsStore(factory)

    await close_db()
