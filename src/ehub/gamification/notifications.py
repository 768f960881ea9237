"""Notification texts and per-user delivery preferences.

Types: achievement, level_up, friend_request, message, system, reminder
"""

from __future__ import annotations

from typing import Any

from ehub.gamification.schemas import AchievementInfo

VALID_TYPES = {"achievement", "level_up", "friend_request", "message", "system", "reminder"}

DEFAULT_PREFERENCES = {
    "notifications_enabled": True,
    "achievement_alerts": True,
    "friend_alerts": True,
    "reminder_alerts": True,
    "system_alerts": True,
}

# Map notification type -> preference key
PREFERENCE_MAP = {
    "achievement": "achievement_alerts",
    "level_up": "achievement_alerts",
    "friend_request": "friend_alerts",
    "message": "friend_alerts",
    "reminder": "reminder_alerts",
    "system": "system_alerts",
}


def should_deliver(preferences: dict, type_: str) -> bool:
    """Check if a notification should be created under the user's settings."""
    if not preferences.get("notifications_enabled", True):
        return False

    pref_key = PREFERENCE_MAP.get(type_)
    if pref_key is None:
        return True

    return preferences.get(pref_key, DEFAULT_PREFERENCES.get(pref_key, True))


def level_up_notification(level: int) -> dict[str, Any]:
    return {
        "type_": "level_up",
        "title": "Level Up!",
        "message": f"Congratulations! You've reached Level {level}!",
        "payload": {"level": level},
    }


def achievement_notification(achievement: AchievementInfo) -> dict[str, Any]:
    return {
        "type_": "achievement",
        "title": f"Achievement Unlocked: {achievement.title}",
        "message": f"{achievement.description} (+{achievement.xp_reward} XP)",
        "payload": {"code": achievement.code, "xp_reward": achievement.xp_reward},
    }
