"""Level curve tests — boundaries, progress and tiers."""

import pytest

from ehub.gamification.errors import InvalidInputError
from ehub.gamification.level_curve import (
    LEVEL_TIERS,
    level_for_xp,
    level_tier,
    progress,
    xp_required_for_level,
)


class TestXpRequiredForLevel:
    """Cumulative requirement follows ((L-1) * L / 2) * 100."""

    @pytest.mark.parametrize(
        "level,expected_xp",
        [
            (1, 0),
            (2, 100),
            (3, 300),
            (4, 600),
            (5, 1000),
            (10, 4500),
            (50, 122500),
        ],
    )
    def test_closed_form(self, level, expected_xp):
        assert xp_required_for_level(level) == expected_xp

    def test_band_widens_by_100_each_level(self):
        for level in range(2, 200):
            step = xp_required_for_level(level) - xp_required_for_level(level - 1)
            assert step == (level - 1) * 100

    def test_level_zero_rejected(self):
        with pytest.raises(InvalidInputError):
            xp_required_for_level(0)

    def test_non_integer_rejected(self):
        with pytest.raises(InvalidInputError):
            xp_required_for_level(2.5)  # type: ignore[arg-type]


class TestLevelForXp:
    """level_for_xp is the exact inverse of the closed form."""

    def test_zero_xp_is_level_1(self):
        assert level_for_xp(0) == 1

    def test_100_xp_is_level_2(self):
        assert level_for_xp(100) == 2

    def test_99_xp_is_level_1(self):
        assert level_for_xp(99) == 1

    def test_exact_boundaries_resolve_to_that_level(self):
        for level in range(1, 2001):
            assert level_for_xp(xp_required_for_level(level)) == level

    def test_one_short_stays_on_lower_level(self):
        for level in range(2, 2001):
            assert level_for_xp(xp_required_for_level(level) - 1) == level - 1

    def test_large_totals_stay_exact(self):
        level = 10_000_000
        threshold = xp_required_for_level(level)
        assert level_for_xp(threshold) == level
        assert level_for_xp(threshold - 1) == level - 1

    def test_totals_beyond_float_range(self):
        # 10**200 levels puts the threshold far past float's maximum.
        level = 10**200
        threshold = xp_required_for_level(level)
        assert level_for_xp(threshold) == level
        assert level_for_xp(threshold - 1) == level - 1
        assert level_for_xp(threshold + 99) == level

    def test_within_step_stays_on_level(self):
        for xp in range(300, 600):
            assert level_for_xp(xp) == 3

    def test_negative_xp_rejected(self):
        with pytest.raises(InvalidInputError, match="non-negative"):
            level_for_xp(-1)

    def test_bool_rejected(self):
        with pytest.raises(InvalidInputError):
            level_for_xp(True)  # type: ignore[arg-type]

    def test_invalid_input_is_a_value_error(self):
        with pytest.raises(ValueError):
            level_for_xp(-50)


class TestProgress:
    """Progress within the current level band."""

    def test_zero_xp(self):
        result = progress(0)
        assert result.level == 1
        assert result.next_level == 2
        assert result.progress_percent == 0
        assert result.xp_remaining == 100

    def test_halfway_through_level_2(self):
        result = progress(200)  # level 2 band is 100..300
        assert result.level == 2
        assert result.xp_into_level == 100
        assert result.progress_percent == 50
        assert result.xp_remaining == 100

    def test_at_boundary_resets_progress(self):
        result = progress(300)
        assert result.level == 3
        assert result.progress_percent == 0
        assert result.current_level_xp == 300
        assert result.next_level_xp == 600

    def test_rounds_half_up(self):
        # level 2 band is 100..300, so 1 XP in is 0.5%
        assert progress(101).progress_percent == 1

    def test_rounding_capped_at_100(self):
        result = progress(299)  # 99.5% of the level 2 band
        assert result.level == 2
        assert result.progress_percent == 100
        assert result.xp_remaining == 1

    def test_one_short_of_next_level(self):
        result = progress(99)
        assert result.level == 1
        assert result.progress_percent == 99
        assert result.xp_remaining == 1

    def test_percent_always_in_range(self):
        for xp in range(0, 20_000, 7):
            assert 0 <= progress(xp).progress_percent <= 100

    def test_negative_rejected(self):
        with pytest.raises(InvalidInputError):
            progress(-10)


class TestLevelTier:
    """Tier table is total and ordered."""

    @pytest.mark.parametrize(
        "level,title",
        [
            (1, "Beginner"),
            (4, "Beginner"),
            (5, "Apprentice"),
            (10, "Intermediate"),
            (15, "Advanced"),
            (20, "Veteran"),
            (25, "Elite"),
            (30, "Expert"),
            (40, "Master"),
            (49, "Master"),
            (50, "Legendary"),
            (500, "Legendary"),
        ],
    )
    def test_titles(self, level, title):
        assert level_tier(level).title == title

    @pytest.mark.parametrize(
        "level,color",
        [
            (1, "text-muted-foreground"),
            (9, "text-muted-foreground"),
            (10, "text-cyan-500"),
            (20, "text-emerald-500"),
            (30, "text-blue-500"),
            (40, "text-purple-500"),
            (50, "text-amber-500"),
        ],
    )
    def test_colors(self, level, color):
        assert level_tier(level).color_class == color

    def test_every_level_maps_to_one_tier(self):
        for level in range(1, 120):
            matches = [t for t in LEVEL_TIERS if level >= t.min_level]
            assert level_tier(level) == matches[0]

    def test_table_sorted_descending_and_total(self):
        mins = [t.min_level for t in LEVEL_TIERS]
        assert mins == sorted(mins, reverse=True)
        assert mins[-1] == 1

    def test_level_zero_rejected(self):
        with pytest.raises(InvalidInputError):
            level_tier(0)

    def test_huge_level_is_top_tier(self):
        assert level_tier(10**200) == LEVEL_TIERS[0]

    def test_level_one_falls_through_to_last_entry(self):
        assert level_tier(1) is LEVEL_TIERS[-1]

    def test_zero_xp_scenario(self):
        result = progress(0)
        assert result.level == 1
        assert result.progress_percent == 0
        assert level_tier(result.level).title == "Beginner"
