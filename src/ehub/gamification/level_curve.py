"""Level curve: XP <-> level conversion and tier lookup.

Level 1 needs 0 XP and each later level ``i`` costs ``i * 100`` XP over the
previous one, so the cumulative requirement is ``((L-1) * L / 2) * 100``.
"""

from __future__ import annotations

import math

from ehub.gamification.errors import InvalidInputError
from ehub.gamification.schemas import LevelProgress, LevelTier

XP_STEP = 100

# Sorted by min_level descending; the last entry doubles as the fallback.
LEVEL_TIERS: list[LevelTier] = [
    LevelTier(min_level=50, title="Legendary", color_class="text-amber-500"),
    LevelTier(min_level=40, title="Master", color_class="text-purple-500"),
    LevelTier(min_level=30, title="Expert", color_class="text-blue-500"),
    LevelTier(min_level=25, title="Elite", color_class="text-emerald-500"),
    LevelTier(min_level=20, title="Veteran", color_class="text-emerald-500"),
    LevelTier(min_level=15, title="Advanced", color_class="text-cyan-500"),
    LevelTier(min_level=10, title="Intermediate", color_class="text-cyan-500"),
    LevelTier(min_level=5, title="Apprentice", color_class="text-muted-foreground"),
    LevelTier(min_level=1, title="Beginner", color_class="text-muted-foreground"),
]


def _require_int(value: object, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(f"{name} must be an integer, got {value!r}")
    return value


def xp_required_for_level(level: int) -> int:
    """Cumulative XP needed to reach ``level``."""
    level = _require_int(level, "level")
    if level < 1:
        raise InvalidInputError(f"level must be >= 1, got {level}")
    return (level - 1) * level // 2 * XP_STEP


def level_for_xp(xp: int) -> int:
    """Highest level whose cumulative requirement is <= ``xp``."""
    xp = _require_int(xp, "xp")
    if xp < 0:
        raise InvalidInputError(f"xp must be non-negative, got {xp}")

    # Thresholds are whole multiples of XP_STEP, so flooring xp first is exact.
    return (1 + math.isqrt(1 + 8 * (xp // XP_STEP))) // 2


def progress(xp: int) -> LevelProgress:
    """Progress through the current level band."""
    level = level_for_xp(xp)
    current_level_xp = xp_required_for_level(level)
    next_level_xp = xp_required_for_level(level + 1)
    xp_into_level = xp - current_level_xp
    band = next_level_xp - current_level_xp

    # Integer round-half-up of xp_into_level / band * 100
    percent = (200 * xp_into_level + band) // (2 * band)

    return LevelProgress(
        level=level,
        next_level=level + 1,
        current_level_xp=current_level_xp,
        next_level_xp=next_level_xp,
        xp_into_level=xp_into_level,
        progress_percent=max(0, min(100, percent)),
        xp_remaining=next_level_xp - xp,
    )


def level_tier(level: int) -> LevelTier:
    """Display tier for a level."""
    level = _require_int(level, "level")
    if level < 1:
        raise InvalidInputError(f"level must be >= 1, got {level}")
    return next((tier for tier in LEVEL_TIERS if level >= tier.min_level), LEVEL_TIERS[-1])
