"""Achievement catalog seed data — 19 achievements across six categories."""

from __future__ import annotations

import logging

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from ehub.db.models import Achievement
from ehub.gamification.schemas import AchievementInfo

logger = logging.getLogger(__name__)

ACHIEVEMENT_SEED_DATA: list[dict] = [
    # Tasks
    {
        "code": "first_task",
        "title": "First Step",
        "description": "Complete your first task",
        "icon": "check-circle",
        "xp_reward": 10,
        "category": "tasks",
        "threshold": 1,
    },
    {
        "code": "task_10",
        "title": "Getting Things Done",
        "description": "Complete 10 tasks",
        "icon": "list-checks",
        "xp_reward": 25,
        "category": "tasks",
        "threshold": 10,
    },
    {
        "code": "task_50",
        "title": "Task Master",
        "description": "Complete 50 tasks",
        "icon": "medal",
        "xp_reward": 75,
        "category": "tasks",
        "threshold": 50,
    },
    {
        "code": "task_100",
        "title": "Centurion",
        "description": "Complete 100 tasks",
        "icon": "crown",
        "xp_reward": 150,
        "category": "tasks",
        "threshold": 100,
    },
    # Aims
    {
        "code": "first_aim",
        "title": "Dream Big",
        "description": "Create your first aim",
        "icon": "target",
        "xp_reward": 15,
        "category": "aims",
        "threshold": 1,
    },
    {
        "code": "aim_complete",
        "title": "Mission Accomplished",
        "description": "Complete an aim",
        "icon": "trophy",
        "xp_reward": 50,
        "category": "aims",
        "threshold": 1,
    },
    {
        "code": "aim_5",
        "title": "Visionary",
        "description": "Complete 5 aims",
        "icon": "rocket",
        "xp_reward": 150,
        "category": "aims",
        "threshold": 5,
    },
    # Games
    {
        "code": "first_game",
        "title": "Player One",
        "description": "Add your first game to the library",
        "icon": "gamepad-2",
        "xp_reward": 10,
        "category": "games",
        "threshold": 1,
    },
    {
        "code": "game_complete",
        "title": "Credits Roll",
        "description": "Finish a game",
        "icon": "star",
        "xp_reward": 50,
        "category": "games",
        "threshold": 1,
    },
    {
        "code": "game_10",
        "title": "Completionist",
        "description": "Finish 10 games",
        "icon": "gem",
        "xp_reward": 200,
        "category": "games",
        "threshold": 10,
    },
    # Journal
    {
        "code": "first_journal",
        "title": "Dear Diary",
        "description": "Write your first journal entry",
        "icon": "book-open",
        "xp_reward": 10,
        "category": "journal",
        "threshold": 1,
    },
    {
        "code": "journal_7",
        "title": "Reflective Week",
        "description": "Write 7 journal entries",
        "icon": "scroll",
        "xp_reward": 40,
        "category": "journal",
        "threshold": 7,
    },
    {
        "code": "journal_30",
        "title": "Chronicler",
        "description": "Write 30 journal entries",
        "icon": "award",
        "xp_reward": 120,
        "category": "journal",
        "threshold": 30,
    },
    # Streaks
    {
        "code": "streak_3",
        "title": "Warming Up",
        "description": "Keep a 3-day activity streak",
        "icon": "flame",
        "xp_reward": 20,
        "category": "streaks",
        "threshold": 3,
    },
    {
        "code": "streak_7",
        "title": "On Fire",
        "description": "Keep a 7-day activity streak",
        "icon": "zap",
        "xp_reward": 50,
        "category": "streaks",
        "threshold": 7,
    },
    {
        "code": "streak_30",
        "title": "Unstoppable",
        "description": "Keep a 30-day activity streak",
        "icon": "calendar",
        "xp_reward": 200,
        "category": "streaks",
        "threshold": 30,
    },
    # Levels
    {
        "code": "level_5",
        "title": "Apprentice",
        "description": "Reach level 5",
        "icon": "sparkles",
        "xp_reward": 50,
        "category": "levels",
        "threshold": 5,
    },
    {
        "code": "level_10",
        "title": "Rising Star",
        "description": "Reach level 10",
        "icon": "star",
        "xp_reward": 100,
        "category": "levels",
        "threshold": 10,
    },
    {
        "code": "level_25",
        "title": "Elite",
        "description": "Reach level 25",
        "icon": "crown",
        "xp_reward": 250,
        "category": "levels",
        "threshold": 25,
    },
]


def default_catalog() -> list[AchievementInfo]:
    """Seed data as catalog entries (without database ids)."""
    return [AchievementInfo(**row) for row in ACHIEVEMENT_SEED_DATA]


async def seed_achievements(db: AsyncSession) -> int:
    """Upsert the achievement catalog by code. Idempotent."""
    seeded = 0
    for row in ACHIEVEMENT_SEED_DATA:
        stmt = pg_insert(Achievement).values(**row)
        stmt = stmt.on_conflict_do_update(
            index_elements=["code"],
            set_={
                "title": stmt.excluded.title,
                "description": stmt.excluded.description,
                "icon": stmt.excluded.icon,
                "xp_reward": stmt.excluded.xp_reward,
                "category": stmt.excluded.category,
                "threshold": stmt.excluded.threshold,
            },
        )
        await db.execute(stmt)
        seeded += 1

    await db.commit()
    logger.info("Seeded %d achievement definitions", seeded)
    return seeded
