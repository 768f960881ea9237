"""Achievement rule set tests — aggregate predicates and event-triggered entries."""

from __future__ import annotations

import pytest

from ehub.gamification.achievement_rules import (
    AIM_CREATED,
    GAME_ADDED,
    RULES,
    AggregateRule,
    EventTriggeredRule,
    achievement_progress,
    codes_for_trigger,
    evaluate,
)
from ehub.gamification.schemas import AchievementInfo, StatsSnapshot
from ehub.gamification.seed import ACHIEVEMENT_SEED_DATA, default_catalog


def _stats(**fields) -> StatsSnapshot:
    return StatsSnapshot(user_id="u1", **fields)


def _codes(result) -> list[str]:
    return [a.code for a in result.newly_unlocked]


class TestCatalogCoverage:
    """Every seeded code has exactly one rule, and vice versa."""

    def test_every_seed_code_has_a_rule(self):
        seed_codes = {row["code"] for row in ACHIEVEMENT_SEED_DATA}
        assert seed_codes == set(RULES)

    def test_seed_codes_are_unique(self):
        codes = [row["code"] for row in ACHIEVEMENT_SEED_DATA]
        assert len(codes) == len(set(codes))

    def test_first_aim_and_first_game_are_event_triggered(self):
        assert isinstance(RULES["first_aim"], EventTriggeredRule)
        assert isinstance(RULES["first_game"], EventTriggeredRule)

    def test_counter_rules_are_aggregate(self):
        assert isinstance(RULES["task_10"], AggregateRule)

    def test_codes_for_trigger(self):
        assert codes_for_trigger(AIM_CREATED) == ["first_aim"]
        assert codes_for_trigger(GAME_ADDED) == ["first_game"]
        assert codes_for_trigger("unknown") == []


class TestEvaluate:
    """evaluate(stats, unlocked) returns the newly crossed achievements."""

    def test_fresh_user_unlocks_nothing(self):
        result = evaluate(_stats(), set())
        assert result.newly_unlocked == []
        assert result.xp_earned == 0

    def test_task_10_unlocks_with_ten_tasks(self):
        result = evaluate(_stats(total_tasks_completed=10), set())
        assert "task_10" in _codes(result)
        assert "first_task" in _codes(result)
        assert "task_50" not in _codes(result)

    def test_already_unlocked_not_returned(self):
        result = evaluate(_stats(total_tasks_completed=10), {"first_task", "task_10"})
        assert _codes(result) == []

    def test_nine_tasks_not_enough(self):
        result = evaluate(_stats(total_tasks_completed=9), {"first_task"})
        assert "task_10" not in _codes(result)

    def test_xp_earned_sums_rewards(self):
        result = evaluate(_stats(total_tasks_completed=10), set())
        rewards = {row["code"]: row["xp_reward"] for row in ACHIEVEMENT_SEED_DATA}
        assert result.xp_earned == rewards["first_task"] + rewards["task_10"]

    def test_threshold_rules_use_catalog_threshold(self):
        catalog = [
            AchievementInfo(code="aim_5", title="t", description="d", category="aims", threshold=3, xp_reward=1),
        ]
        assert _codes(evaluate(_stats(total_aims_completed=3), set(), catalog)) == ["aim_5"]
        assert _codes(evaluate(_stats(total_aims_completed=2), set(), catalog)) == []

    def test_game_threshold_rules(self):
        result = evaluate(_stats(total_games_completed=10), set())
        assert {"game_complete", "game_10"} <= set(_codes(result))

    def test_streak_rules_accept_longest_streak(self):
        result = evaluate(_stats(current_streak=1, longest_streak=7), set())
        assert {"streak_3", "streak_7"} <= set(_codes(result))
        assert "streak_30" not in _codes(result)

    def test_streak_rules_accept_current_streak(self):
        result = evaluate(_stats(current_streak=3, longest_streak=3), set())
        assert "streak_3" in _codes(result)

    def test_level_rules(self):
        result = evaluate(_stats(level=10), set())
        assert {"level_5", "level_10"} <= set(_codes(result))
        assert "level_25" not in _codes(result)

    def test_journal_rules(self):
        result = evaluate(_stats(total_journal_entries=7), set())
        assert {"first_journal", "journal_7"} <= set(_codes(result))

    def test_event_triggered_never_fire(self):
        stats = _stats(
            total_tasks_completed=1000,
            total_aims_completed=1000,
            total_games_completed=1000,
            total_journal_entries=1000,
            current_streak=100,
            longest_streak=100,
            level=100,
        )
        result = evaluate(stats, set())
        assert "first_aim" not in _codes(result)
        assert "first_game" not in _codes(result)
        assert len(result.newly_unlocked) == len(ACHIEVEMENT_SEED_DATA) - 2

    def test_unknown_catalog_code_ignored(self):
        catalog = default_catalog() + [
            AchievementInfo(code="mystery", title="?", description="?", category="misc", threshold=0),
        ]
        result = evaluate(_stats(total_tasks_completed=1), set(), catalog)
        assert "mystery" not in _codes(result)

    def test_output_sorted_and_deterministic(self):
        stats = _stats(total_tasks_completed=100, total_journal_entries=30, level=25)
        first = evaluate(stats, set())
        second = evaluate(stats, set(), list(reversed(default_catalog())))
        assert _codes(first) == _codes(second)
        assert _codes(first) == sorted(_codes(first))

    def test_growing_unlocked_set_never_reissues(self):
        stats = _stats(total_tasks_completed=50, total_journal_entries=7, current_streak=3, longest_streak=3)
        unlocked: set[str] = set()
        seen: list[str] = []
        while True:
            result = evaluate(stats, unlocked)
            if not result.newly_unlocked:
                break
            code = result.newly_unlocked[0].code
            assert code not in unlocked
            unlocked.add(code)
            seen.append(code)
        assert len(seen) == len(set(seen))
        assert evaluate(stats, unlocked).newly_unlocked == []


class TestAchievementProgress:
    """Partial progress for locked badges."""

    def _entry(self, code: str) -> AchievementInfo:
        return next(a for a in default_catalog() if a.code == code)

    def test_task_progress(self):
        assert achievement_progress(_stats(total_tasks_completed=4), self._entry("task_10")) == (4, 10)

    def test_progress_capped_at_target(self):
        assert achievement_progress(_stats(total_tasks_completed=40), self._entry("task_10")) == (10, 10)

    def test_streak_progress_uses_best_streak(self):
        stats = _stats(current_streak=2, longest_streak=5)
        assert achievement_progress(stats, self._entry("streak_7")) == (5, 7)

    @pytest.mark.parametrize("code", ["first_aim", "first_game"])
    def test_event_triggered_has_no_progress(self, code):
        assert achievement_progress(_stats(), self._entry(code)) is None
