"""ORM models for the gamification tables.

User identity lives in the hosted auth service, so ``user_id`` columns are
plain UUIDs without a foreign key to a local users table.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from sqlalchemy import (
    BigInteger,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ehub.db.base import Base


class UserStatistics(Base):
    """Denormalized gamification summary — single row per user."""

    __tablename__ = "user_stats"

    user_id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True)
    xp: Mapped[int] = mapped_column(BigInteger, nullable=False, server_default="0")
    level: Mapped[int] = mapped_column(Integer, nullable=False, server_default="1")
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    longest_streak: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    last_activity_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    total_tasks_completed: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    total_aims_completed: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    total_games_completed: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    total_journal_entries: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("NOW()"))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("NOW()"))


class Achievement(Base):
    """Achievement catalog — seeded at deploy time, read-mostly."""

    __tablename__ = "achievements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    title: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    icon: Mapped[str] = mapped_column(String(64), nullable=False, server_default="trophy")
    xp_reward: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    category: Mapped[str] = mapped_column(String(32), nullable=False)
    threshold: Mapped[int] = mapped_column(Integer, nullable=False, server_default="1")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("NOW()"))


class UserAchievement(Base):
    """Unlocked achievements — UNIQUE(user_id, achievement_id) prevents duplicates."""

    __tablename__ = "user_achievements"
    __table_args__ = (
        UniqueConstraint("user_id", "achievement_id", name="user_achievements_user_id_achievement_id_key"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False, index=True)
    achievement_id: Mapped[int] = mapped_column(Integer, ForeignKey("achievements.id"), nullable=False)
    unlocked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("NOW()"))

    achievement: Mapped[Achievement] = relationship("Achievement", lazy="joined")


class Notification(Base):
    """Persisted user notifications, written once and read by the app."""

    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, server_default="{}")
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="false")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("NOW()"))


class NotificationSettings(Base):
    """Per-user alert toggles."""

    __tablename__ = "notification_settings"

    user_id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True)
    notifications_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="true")
    achievement_alerts: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="true")
    friend_alerts: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="true")
    reminder_alerts: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="true")
    system_alerts: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="true")
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("NOW()"))
