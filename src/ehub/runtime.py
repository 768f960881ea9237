"""Engine lifecycle: settings, logging, PostgreSQL and the catalog cache."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from sqlalchemy.exc import SQLAlchemyError

from ehub.config import Settings, get_settings
from ehub.database import close_db, get_session_factory, init_db
from ehub.gamification.orchestrator import GamificationOrchestrator
from ehub.gamification.seed import seed_achievements
from ehub.gamification.store import SqlStatsStore
from ehub.log_config import setup_logging
from ehub.redis_client import close_redis, get_redis, init_redis

logger = structlog.get_logger()


def build_stats_store(settings: Settings) -> SqlStatsStore:
    """SQL store on the initialized engine, with the catalog cached when Redis is connected."""
    return SqlStatsStore(
        get_session_factory(),
        redis=get_redis(),
        catalog_cache_ttl=settings.catalog_cache_ttl_seconds,
    )


async def seed_catalog(store: SqlStatsStore) -> None:
    """Upsert the achievement catalog and drop any stale cached copy."""
    try:
        async with get_session_factory()() as db:
            await seed_achievements(db)
    except (OSError, SQLAlchemyError):
        logger.warning("catalog_seed_failed", exc_info=True)
        return
    await store.invalidate_catalog_cache()


@asynccontextmanager
async def engine_lifespan(settings: Settings | None = None) -> AsyncIterator[GamificationOrchestrator]:
    """Start the engine, yield a ready orchestrator, and release connections on exit."""
    settings = settings or get_settings()
    setup_logging(settings)

    await init_db(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        echo=settings.debug,
    )
    await init_redis(settings.redis_url)

    store = build_stats_store(settings)
    if settings.seed_catalog_on_startup:
        await seed_catalog(store)

    logger.info("engine_started", catalog_cache=get_redis() is not None)
    try:
        yield GamificationOrchestrator(store)
    finally:
        await close_redis()
        await close_db()
        logger.info("engine_stopped")
