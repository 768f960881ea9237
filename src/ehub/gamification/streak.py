"""Daily streak evaluation.

Dates are calendar days in a single time zone; callers normalize before
calling. Nothing here reads the clock.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

from ehub.gamification.errors import InvalidInputError
from ehub.gamification.schemas import StatsSnapshot, StreakAdvance

ON_FIRE_STREAK = 3


def parse_activity_date(value: date | str | None) -> date | None:
    """Accept a ``date`` or an ISO ``YYYY-MM-DD`` string."""
    if value is None:
        return None
    if isinstance(value, datetime):
        raise InvalidInputError(f"expected a calendar date, got datetime {value!r}")
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError as exc:
            raise InvalidInputError(f"malformed date: {value!r}") from exc
    raise InvalidInputError(f"expected a date, got {type(value).__name__}")


def advance_streak(stats: StatsSnapshot, today: date | str) -> StreakAdvance:
    """Decide whether activity on ``today`` continues, resets or repeats the streak."""
    today = parse_activity_date(today)
    if today is None:
        raise InvalidInputError("today is required")

    last = stats.last_activity_date
    previous_longest = stats.longest_streak

    if last == today:
        return StreakAdvance(
            current_streak=stats.current_streak,
            longest_streak=max(stats.current_streak, previous_longest),
            is_new_streak_day=False,
        )

    if last is not None and last == today - timedelta(days=1):
        current = stats.current_streak + 1
    else:
        # No prior activity, a gap of 2+ days, or a last date in the future.
        current = 1

    return StreakAdvance(
        current_streak=current,
        longest_streak=max(current, previous_longest),
        is_new_streak_day=True,
    )


def is_on_fire(current_streak: int) -> bool:
    return current_streak >= ON_FIRE_STREAK
