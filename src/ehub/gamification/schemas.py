"""Pydantic value types passed between the engine and the statistics store."""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# --- Statistics ---


class StatsSnapshot(BaseModel):
    """Read-only view of a user's ``user_stats`` row."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    user_id: str
    xp: int = 0
    level: int = 1
    current_streak: int = 0
    longest_streak: int = 0
    last_activity_date: date | None = None
    total_tasks_completed: int = 0
    total_aims_completed: int = 0
    total_games_completed: int = 0
    total_journal_entries: int = 0

    @classmethod
    def zeroed(cls, user_id: str) -> StatsSnapshot:
        """Snapshot for a user with no recorded activity."""
        return cls(user_id=user_id)


class StatsPatch(BaseModel):
    """Field-wise update merged into ``user_stats``.

    ``xp_delta`` and ``counters`` are applied as atomic increments; the
    remaining fields overwrite when set.
    """

    xp_delta: int = 0
    counters: dict[str, int] = Field(default_factory=dict)
    current_streak: int | None = None
    longest_streak: int | None = None
    last_activity_date: date | None = None


# --- Level curve ---


class LevelTier(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_level: int
    title: str
    color_class: str


class LevelProgress(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: int
    next_level: int
    current_level_xp: int
    next_level_xp: int
    xp_into_level: int
    progress_percent: int
    xp_remaining: int


# --- Achievements ---


class AchievementInfo(BaseModel):
    """Catalog entry as read from the ``achievements`` table."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int | None = None
    code: str
    title: str
    description: str
    icon: str = "trophy"
    xp_reward: int = 0
    category: str
    threshold: int = 1


class EvaluationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    newly_unlocked: list[AchievementInfo] = []
    xp_earned: int = 0


# --- Streak ---


class StreakAdvance(BaseModel):
    model_config = ConfigDict(frozen=True)

    current_streak: int
    longest_streak: int
    is_new_streak_day: bool


# --- Orchestrator results ---


class XPGrantResult(BaseModel):
    success: bool
    xp_gained: int = 0
    new_total: int = 0
    old_level: int = 1
    new_level: int = 1
    leveled_up: bool = False


class EventOutcome(BaseModel):
    """Result of one orchestrated user action."""

    success: bool
    event: str
    xp_gained: int = 0
    new_total: int = 0
    new_level: int = 1
    leveled_up: bool = False
    level_ups: list[int] = []
    unlocked: list[str] = []
    achievement_xp: int = 0
    achievements_failed: bool = False


class StreakOutcome(BaseModel):
    success: bool
    current_streak: int = 0
    longest_streak: int = 0
    is_new_streak_day: bool = False
    xp: EventOutcome | None = None


class ProgressSummary(BaseModel):
    """Dashboard summary for one user."""

    user_id: str
    xp: int
    progress: LevelProgress
    tier: LevelTier
    current_streak: int
    longest_streak: int
    on_fire: bool
    unlocked_count: int
    counters: dict[str, Any] = {}
    # code -> (current, target) for locked count-style achievements
    locked_progress: dict[str, tuple[int, int]] = {}
