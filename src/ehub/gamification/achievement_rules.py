"""Achievement rule set — evaluates a stats snapshot against the catalog.

Two kinds of rule exist:

* ``AggregateRule``: a predicate over ``StatsSnapshot`` counters, level and
  streaks. Evaluated here.
* ``EventTriggeredRule``: unlocked once per user when an entity is first
  created (an aim, a game). Running counters cannot express these, so the
  evaluator never fires them; the orchestrator unlocks them when the
  creating call site reports the trigger.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from ehub.gamification.schemas import AchievementInfo, EvaluationResult, StatsSnapshot

Predicate = Callable[[StatsSnapshot, AchievementInfo], bool]

AIM_CREATED = "aim_created"
GAME_ADDED = "game_added"


@dataclass(frozen=True)
class AggregateRule:
    code: str
    predicate: Predicate


@dataclass(frozen=True)
class EventTriggeredRule:
    code: str
    trigger: str


Rule = AggregateRule | EventTriggeredRule


def _at_least(field: str, value: int) -> Predicate:
    """Fixed ``stats.field >= value``."""
    return lambda stats, _achievement: getattr(stats, field) >= value


def _at_threshold(field: str) -> Predicate:
    """``stats.field >= achievement.threshold``."""
    return lambda stats, achievement: getattr(stats, field) >= achievement.threshold


def _streak_at_least(value: int) -> Predicate:
    return lambda stats, _achievement: stats.current_streak >= value or stats.longest_streak >= value


RULES: dict[str, Rule] = {
    rule.code: rule
    for rule in (
        # Tasks
        AggregateRule("first_task", _at_least("total_tasks_completed", 1)),
        AggregateRule("task_10", _at_least("total_tasks_completed", 10)),
        AggregateRule("task_50", _at_least("total_tasks_completed", 50)),
        AggregateRule("task_100", _at_least("total_tasks_completed", 100)),
        # Aims
        EventTriggeredRule("first_aim", AIM_CREATED),
        AggregateRule("aim_complete", _at_threshold("total_aims_completed")),
        AggregateRule("aim_5", _at_threshold("total_aims_completed")),
        # Games
        EventTriggeredRule("first_game", GAME_ADDED),
        AggregateRule("game_complete", _at_threshold("total_games_completed")),
        AggregateRule("game_10", _at_threshold("total_games_completed")),
        # Journal
        AggregateRule("first_journal", _at_least("total_journal_entries", 1)),
        AggregateRule("journal_7", _at_least("total_journal_entries", 7)),
        AggregateRule("journal_30", _at_least("total_journal_entries", 30)),
        # Streaks
        AggregateRule("streak_3", _streak_at_least(3)),
        AggregateRule("streak_7", _streak_at_least(7)),
        AggregateRule("streak_30", _streak_at_least(30)),
        # Levels
        AggregateRule("level_5", _at_least("level", 5)),
        AggregateRule("level_10", _at_least("level", 10)),
        AggregateRule("level_25", _at_least("level", 25)),
    )
}


def codes_for_trigger(trigger: str) -> list[str]:
    """Catalog codes unlocked by an entity-creation trigger."""
    return sorted(
        rule.code for rule in RULES.values()
        if isinstance(rule, EventTriggeredRule) and rule.trigger == trigger
    )


def evaluate(
    stats: StatsSnapshot,
    unlocked_codes: Iterable[str],
    catalog: Iterable[AchievementInfo] | None = None,
) -> EvaluationResult:
    """Return achievements whose aggregate rule now holds and are not yet unlocked.

    Catalog entries without a rule, and event-triggered entries, never fire
    here. Output is sorted by code.
    """
    if catalog is None:
        from ehub.gamification.seed import default_catalog

        catalog = default_catalog()

    already = set(unlocked_codes)
    newly_unlocked: list[AchievementInfo] = []

    for achievement in sorted(catalog, key=lambda a: a.code):
        if achievement.code in already:
            continue
        rule = RULES.get(achievement.code)
        if not isinstance(rule, AggregateRule):
            continue
        if rule.predicate(stats, achievement):
            newly_unlocked.append(achievement)

    return EvaluationResult(
        newly_unlocked=newly_unlocked,
        xp_earned=sum(a.xp_reward for a in newly_unlocked),
    )


def achievement_progress(stats: StatsSnapshot, achievement: AchievementInfo) -> tuple[int, int] | None:
    """``(current, target)`` for count-style aggregate rules, else None.

    Used by the achievements screen to show partial progress on locked badges.
    """
    field = _PROGRESS_FIELDS.get(achievement.category)
    rule = RULES.get(achievement.code)
    if field is None or not isinstance(rule, AggregateRule):
        return None
    if field == "streak":
        current = max(stats.current_streak, stats.longest_streak)
    else:
        current = getattr(stats, field)
    return min(current, achievement.threshold), achievement.threshold


_PROGRESS_FIELDS: dict[str, str] = {
    "tasks": "total_tasks_completed",
    "aims": "total_aims_completed",
    "games": "total_games_completed",
    "journal": "total_journal_entries",
    "streaks": "streak",
    "levels": "level",
}
