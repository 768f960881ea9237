"""Statistics store: the persistence contract used by the orchestrator.

``SqlStatsStore`` is the PostgreSQL implementation. Every method runs in its
own transaction, and any ``SQLAlchemyError`` surfaces as ``PersistenceError``.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from typing import Any, Protocol

import structlog
from redis.exceptions import RedisError
from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ehub.db.models import (
    Achievement,
    Notification,
    NotificationSettings,
    UserAchievement,
    UserStatistics,
)
from ehub.gamification.errors import InvalidInputError, PersistenceError
from ehub.gamification.level_curve import level_for_xp
from ehub.gamification.notifications import DEFAULT_PREFERENCES, VALID_TYPES, should_deliver
from ehub.gamification.schemas import AchievementInfo, StatsPatch, StatsSnapshot, StreakAdvance
from ehub.gamification.streak import advance_streak, parse_activity_date

logger = structlog.get_logger()

COUNTER_FIELDS = frozenset({
    "total_tasks_completed",
    "total_aims_completed",
    "total_games_completed",
    "total_journal_entries",
})

CATALOG_CACHE_KEY = "gamification:achievement_catalog"


class StatsStore(Protocol):
    """Keyed read/write operations the orchestrator needs."""

    async def read_user_statistics(self, user_id: str) -> StatsSnapshot | None: ...

    async def upsert_user_statistics(self, user_id: str, patch: StatsPatch) -> StatsSnapshot: ...

    async def advance_streak(self, user_id: str, today: date) -> tuple[StatsSnapshot, StreakAdvance]: ...

    async def insert_user_achievement_if_absent(self, user_id: str, achievement_id: int) -> bool: ...

    async def list_unlocked_codes(self, user_id: str) -> set[str]: ...

    async def list_achievement_catalog(self) -> list[AchievementInfo]: ...

    async def enqueue_notification(
        self,
        user_id: str,
        type_: str,
        title: str,
        message: str,
        payload: dict[str, Any],
    ) -> bool: ...


def validate_patch(patch: StatsPatch) -> None:
    """Reject patches that would decrease XP or counters."""
    if patch.xp_delta < 0:
        raise InvalidInputError(f"xp_delta must be non-negative, got {patch.xp_delta}")
    for field, increment in patch.counters.items():
        if field not in COUNTER_FIELDS:
            raise InvalidInputError(f"unknown counter: {field}")
        if increment < 0:
            raise InvalidInputError(f"counter {field} cannot decrease (got {increment})")


class SqlStatsStore:
    """PostgreSQL-backed statistics store with an optional Redis catalog cache."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        redis: Any | None = None,
        catalog_cache_ttl: int = 300,
    ) -> None:
        self._session_factory = session_factory
        self._redis = redis
        self._catalog_cache_ttl = catalog_cache_ttl

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as db:
                yield db
        except SQLAlchemyError as exc:
            raise PersistenceError(str(exc)) from exc

    # --- Statistics ---

    async def read_user_statistics(self, user_id: str) -> StatsSnapshot | None:
        async with self._session() as db:
            row = (
                await db.execute(select(UserStatistics).where(UserStatistics.user_id == user_id))
            ).scalar_one_or_none()
            return StatsSnapshot.model_validate(row) if row else None

    async def upsert_user_statistics(self, user_id: str, patch: StatsPatch) -> StatsSnapshot:
        """Apply ``patch`` atomically, creating the row on first use.

        XP and counters are incremented in SQL so concurrent events for the
        same user never lose an update. The cached level only moves up.
        """
        validate_patch(patch)
        now = datetime.now(timezone.utc)

        assigned: dict[str, Any] = {}
        if patch.current_streak is not None:
            assigned["current_streak"] = patch.current_streak
        if patch.last_activity_date is not None:
            assigned["last_activity_date"] = patch.last_activity_date

        insert_values: dict[str, Any] = {
            "user_id": user_id,
            "xp": patch.xp_delta,
            "level": level_for_xp(patch.xp_delta),
            "updated_at": now,
            **patch.counters,
            **assigned,
        }
        set_: dict[str, Any] = {
            "xp": UserStatistics.xp + patch.xp_delta,
            "updated_at": now,
            **assigned,
        }
        for field, increment in patch.counters.items():
            set_[field] = getattr(UserStatistics, field) + increment
        if patch.longest_streak is not None:
            insert_values["longest_streak"] = patch.longest_streak
            set_["longest_streak"] = func.greatest(UserStatistics.longest_streak, patch.longest_streak)

        stmt = pg_insert(UserStatistics).values(**insert_values)
        stmt = stmt.on_conflict_do_update(index_elements=["user_id"], set_=set_).returning(UserStatistics.xp)

        async with self._session() as db:
            new_xp = (await db.execute(stmt)).scalar_one()
            await db.execute(
                update(UserStatistics)
                .where(UserStatistics.user_id == user_id)
                .values(level=func.greatest(UserStatistics.level, level_for_xp(new_xp)))
            )
            row = (
                await db.execute(
                    select(UserStatistics)
                    .where(UserStatistics.user_id == user_id)
                    .execution_options(populate_existing=True)
                )
            ).scalar_one()
            snapshot = StatsSnapshot.model_validate(row)
            await db.commit()
        return snapshot

    async def advance_streak(self, user_id: str, today: date) -> tuple[StatsSnapshot, StreakAdvance]:
        """Advance the daily streak under a row lock."""
        today = parse_activity_date(today)
        if today is None:
            raise InvalidInputError("today is required")

        async with self._session() as db:
            await db.execute(
                pg_insert(UserStatistics)
                .values(user_id=user_id)
                .on_conflict_do_nothing(index_elements=["user_id"])
            )
            row = (
                await db.execute(
                    select(UserStatistics)
                    .where(UserStatistics.user_id == user_id)
                    .with_for_update()
                    .execution_options(populate_existing=True)
                )
            ).scalar_one()

            advance = advance_streak(StatsSnapshot.model_validate(row), today)
            if advance.is_new_streak_day:
                row.current_streak = advance.current_streak
                row.longest_streak = advance.longest_streak
                row.last_activity_date = today
                row.updated_at = datetime.now(timezone.utc)
                await db.flush()

            snapshot = StatsSnapshot.model_validate(row)
            await db.commit()
        return snapshot, advance

    # --- Achievements ---

    async def insert_user_achievement_if_absent(self, user_id: str, achievement_id: int) -> bool:
        """Record an unlock. Returns False when the pair already exists."""
        stmt = (
            pg_insert(UserAchievement)
            .values(
                user_id=user_id,
                achievement_id=achievement_id,
                unlocked_at=datetime.now(timezone.utc),
            )
            .on_conflict_do_nothing(constraint="user_achievements_user_id_achievement_id_key")
            .returning(UserAchievement.id)
        )
        async with self._session() as db:
            inserted = (await db.execute(stmt)).scalar_one_or_none() is not None
            await db.commit()
        return inserted

    async def list_unlocked_codes(self, user_id: str) -> set[str]:
        async with self._session() as db:
            result = await db.execute(
                select(Achievement.code)
                .join(UserAchievement, UserAchievement.achievement_id == Achievement.id)
                .where(UserAchievement.user_id == user_id)
            )
            return set(result.scalars())

    async def list_achievement_catalog(self) -> list[AchievementInfo]:
        """Catalog ordered by category then code, cached in Redis when available."""
        if self._redis is not None:
            try:
                cached = await self._redis.get(CATALOG_CACHE_KEY)
            except RedisError:
                logger.warning("catalog_cache_read_failed", exc_info=True)
                cached = None
            if cached:
                return [AchievementInfo.model_validate(item) for item in json.loads(cached)]

        async with self._session() as db:
            rows = (
                await db.execute(select(Achievement).order_by(Achievement.category, Achievement.code))
            ).scalars().all()
            catalog = [AchievementInfo.model_validate(row) for row in rows]

        if self._redis is not None and catalog:
            try:
                await self._redis.setex(
                    CATALOG_CACHE_KEY,
                    self._catalog_cache_ttl,
                    json.dumps([a.model_dump() for a in catalog]),
                )
            except RedisError:
                logger.warning("catalog_cache_write_failed", exc_info=True)
        return catalog

    async def invalidate_catalog_cache(self) -> None:
        """Drop the cached catalog after reseeding."""
        if self._redis is None:
            return
        try:
            await self._redis.delete(CATALOG_CACHE_KEY)
        except RedisError:
            logger.warning("catalog_cache_invalidate_failed", exc_info=True)

    # --- Notifications ---

    async def read_notification_settings(self, user_id: str) -> dict:
        """User's alert toggles merged over the defaults."""
        async with self._session() as db:
            return await self._preferences(db, user_id)

    async def _preferences(self, db: AsyncSession, user_id: str) -> dict:
        settings = (
            await db.execute(select(NotificationSettings).where(NotificationSettings.user_id == user_id))
        ).scalar_one_or_none()
        merged = dict(DEFAULT_PREFERENCES)
        if settings is not None:
            for key in DEFAULT_PREFERENCES:
                merged[key] = getattr(settings, key)
        return merged

    async def enqueue_notification(
        self,
        user_id: str,
        type_: str,
        title: str,
        message: str,
        payload: dict[str, Any],
    ) -> bool:
        """Insert a notification row. Returns False when the user's settings filter it out."""
        if type_ not in VALID_TYPES:
            raise InvalidInputError(f"Invalid notification type: {type_}. Must be one of {sorted(VALID_TYPES)}")

        async with self._session() as db:
            preferences = await self._preferences(db, user_id)
            if not should_deliver(preferences, type_):
                return False

            db.add(Notification(
                user_id=user_id,
                type=type_,
                title=title,
                message=message,
                data=payload,
                created_at=datetime.now(timezone.utc),
            ))
            await db.commit()
        return True
