"""Stat mutation orchestrator — applies user actions to statistics.

Each action runs as a sequential pipeline:

1. Apply the event's XP reward and counter increment in one atomic write.
2. Detect a level-up from the XP before and after the write; notify.
3. Evaluate the achievement rules against the fresh snapshot, record each
   unlock (insert-if-absent) and notify.
4. Grant the unlocked achievements' XP as a follow-up write, which can level
   up again and unlock level achievements, so stages 3-4 repeat until a
   round unlocks nothing.

A failed write in stage 1 fails the action. Everything after it is
best-effort: failures are logged and never undo the user's action.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

import structlog

from ehub.gamification.achievement_rules import achievement_progress, codes_for_trigger, evaluate
from ehub.gamification.errors import InvalidInputError, PersistenceError
from ehub.gamification.level_curve import level_for_xp, level_tier, progress
from ehub.gamification.notifications import achievement_notification, level_up_notification
from ehub.gamification.schemas import (
    AchievementInfo,
    EventOutcome,
    ProgressSummary,
    StatsPatch,
    StatsSnapshot,
    StreakOutcome,
    XPGrantResult,
)
from ehub.gamification.store import StatsStore
from ehub.gamification.streak import is_on_fire

logger = structlog.get_logger()


class XPEvent(str, Enum):
    TASK_COMPLETE = "TASK_COMPLETE"
    AIM_COMPLETE = "AIM_COMPLETE"
    GAME_COMPLETE = "GAME_COMPLETE"
    JOURNAL_ENTRY = "JOURNAL_ENTRY"
    RESOURCE_ADD = "RESOURCE_ADD"
    STREAK_DAY = "STREAK_DAY"
    FRIEND_MADE = "FRIEND_MADE"
    BLUEPRINT_SHARE = "BLUEPRINT_SHARE"
    BLUEPRINT_CLONE = "BLUEPRINT_CLONE"


XP_REWARDS: dict[XPEvent, int] = {
    XPEvent.TASK_COMPLETE: 10,
    XPEvent.AIM_COMPLETE: 100,
    XPEvent.GAME_COMPLETE: 75,
    XPEvent.JOURNAL_ENTRY: 15,
    XPEvent.RESOURCE_ADD: 5,
    XPEvent.STREAK_DAY: 20,
    XPEvent.FRIEND_MADE: 25,
    XPEvent.BLUEPRINT_SHARE: 50,
    XPEvent.BLUEPRINT_CLONE: 10,
}

EVENT_COUNTERS: dict[XPEvent, str] = {
    XPEvent.TASK_COMPLETE: "total_tasks_completed",
    XPEvent.AIM_COMPLETE: "total_aims_completed",
    XPEvent.GAME_COMPLETE: "total_games_completed",
    XPEvent.JOURNAL_ENTRY: "total_journal_entries",
}


def _coerce_event(event: XPEvent | str) -> XPEvent:
    try:
        return XPEvent(event)
    except ValueError as exc:
        raise InvalidInputError(f"unknown event kind: {event!r}") from exc


class GamificationOrchestrator:
    """Coordinates the pure engine with a ``StatsStore``."""

    def __init__(self, store: StatsStore) -> None:
        self.store = store

    # --- Public operations ---

    async def record_event(self, user_id: str, event: XPEvent | str) -> EventOutcome:
        """Grant the event's XP, bump its counter and run the achievement stages."""
        event = _coerce_event(event)
        return await self._process(user_id, event, evaluate=event in EVENT_COUNTERS)

    async def update_streak(self, user_id: str, today: date | None = None) -> StreakOutcome:
        """Record today's activity for the streak.

        A continued streak (second consecutive day onward) also grants the
        STREAK_DAY reward.
        """
        if today is None:
            today = datetime.now(timezone.utc).date()

        try:
            snapshot, advance = await self.store.advance_streak(user_id, today)
        except PersistenceError:
            logger.warning("streak_update_failed", user_id=user_id, exc_info=True)
            return StreakOutcome(success=False)

        outcome = StreakOutcome(
            success=True,
            current_streak=advance.current_streak,
            longest_streak=advance.longest_streak,
            is_new_streak_day=advance.is_new_streak_day,
        )
        if not advance.is_new_streak_day:
            return outcome

        logger.info("streak_advanced", user_id=user_id, current_streak=advance.current_streak)
        if advance.current_streak > 1:
            outcome.xp = await self._process(user_id, XPEvent.STREAK_DAY, evaluate=True)
        else:
            event_outcome = EventOutcome(
                success=True,
                event=XPEvent.STREAK_DAY.value,
                new_total=snapshot.xp,
                new_level=level_for_xp(snapshot.xp),
            )
            await self._run_achievement_stages(user_id, snapshot, event_outcome)
            outcome.xp = event_outcome
        return outcome

    async def unlock_event_achievement(self, user_id: str, trigger: str) -> EventOutcome:
        """Unlock achievements tied to an entity-creation trigger (e.g. first aim)."""
        codes = codes_for_trigger(trigger)
        if not codes:
            raise InvalidInputError(f"unknown achievement trigger: {trigger!r}")

        outcome = EventOutcome(success=True, event=trigger)
        try:
            catalog = {a.code: a for a in await self.store.list_achievement_catalog()}
            unlocked = await self.store.list_unlocked_codes(user_id)
        except PersistenceError:
            logger.warning("event_achievement_failed", user_id=user_id, trigger=trigger, exc_info=True)
            outcome.success = False
            outcome.achievements_failed = True
            return outcome

        pending = [catalog[code] for code in codes if code in catalog and code not in unlocked]
        xp = await self._unlock_all(user_id, pending, outcome)
        if xp:
            grant, snapshot = await self._apply(user_id, StatsPatch(xp_delta=xp), source=f"achievement:{trigger}")
            if not grant.success:
                outcome.achievements_failed = True
                return outcome
            outcome.achievement_xp += xp
            self._merge_grant(outcome, grant, reward=False)
            if grant.leveled_up:
                await self._run_achievement_stages(user_id, snapshot, outcome)
        return outcome

    async def get_progress(self, user_id: str) -> ProgressSummary:
        """Read-only dashboard summary. A missing row reads as a zeroed snapshot."""
        snapshot = await self.store.read_user_statistics(user_id) or StatsSnapshot.zeroed(user_id)
        unlocked = await self.store.list_unlocked_codes(user_id)
        catalog = await self.store.list_achievement_catalog()
        level_progress = progress(snapshot.xp)

        locked_progress = {}
        for achievement in catalog:
            if achievement.code in unlocked:
                continue
            partial = achievement_progress(snapshot, achievement)
            if partial is not None:
                locked_progress[achievement.code] = partial

        return ProgressSummary(
            user_id=user_id,
            xp=snapshot.xp,
            progress=level_progress,
            tier=level_tier(level_progress.level),
            current_streak=snapshot.current_streak,
            longest_streak=snapshot.longest_streak,
            on_fire=is_on_fire(snapshot.current_streak),
            unlocked_count=len(unlocked),
            counters={
                "total_tasks_completed": snapshot.total_tasks_completed,
                "total_aims_completed": snapshot.total_aims_completed,
                "total_games_completed": snapshot.total_games_completed,
                "total_journal_entries": snapshot.total_journal_entries,
            },
            locked_progress=locked_progress,
        )

    # --- Pipeline stages ---

    async def _process(self, user_id: str, event: XPEvent, evaluate: bool) -> EventOutcome:
        counter = EVENT_COUNTERS.get(event)
        patch = StatsPatch(
            xp_delta=XP_REWARDS[event],
            counters={counter: 1} if counter else {},
        )

        grant, snapshot = await self._apply(user_id, patch, source=event.value)
        outcome = EventOutcome(success=grant.success, event=event.value)
        self._merge_grant(outcome, grant)
        if not grant.success:
            return outcome

        if evaluate or grant.leveled_up:
            await self._run_achievement_stages(user_id, snapshot, outcome)
        return outcome

    async def _apply(
        self, user_id: str, patch: StatsPatch, source: str
    ) -> tuple[XPGrantResult, StatsSnapshot | None]:
        """Stages 1-2: persist the patch, then detect and announce a level-up."""
        try:
            after = await self.store.upsert_user_statistics(user_id, patch)
        except PersistenceError:
            logger.warning("xp_grant_failed", user_id=user_id, source=source, amount=patch.xp_delta, exc_info=True)
            return XPGrantResult(success=False), None

        old_level = level_for_xp(after.xp - patch.xp_delta)
        new_level = level_for_xp(after.xp)
        grant = XPGrantResult(
            success=True,
            xp_gained=patch.xp_delta,
            new_total=after.xp,
            old_level=old_level,
            new_level=new_level,
            leveled_up=new_level > old_level,
        )

        if grant.leveled_up:
            logger.info("level_up", user_id=user_id, old_level=old_level, new_level=new_level, source=source)
            await self._notify(user_id, level_up_notification(new_level))
        return grant, after

    async def _run_achievement_stages(
        self, user_id: str, snapshot: StatsSnapshot | None, outcome: EventOutcome
    ) -> None:
        """Stages 3-4, repeated until a round unlocks nothing new."""
        if snapshot is None:
            return
        try:
            catalog = await self.store.list_achievement_catalog()
            unlocked = await self.store.list_unlocked_codes(user_id)
        except PersistenceError:
            logger.warning("achievement_stage_failed", user_id=user_id, source=outcome.event, exc_info=True)
            outcome.achievements_failed = True
            return

        # Each productive round unlocks at least one entry, so this bounds the loop.
        for _ in range(len(catalog)):
            result = evaluate(snapshot, unlocked, catalog)
            if not result.newly_unlocked:
                break

            unlocked.update(a.code for a in result.newly_unlocked)
            xp = await self._unlock_all(user_id, result.newly_unlocked, outcome)
            if xp == 0:
                break

            grant, after = await self._apply(user_id, StatsPatch(xp_delta=xp), source="achievement")
            if not grant.success:
                outcome.achievements_failed = True
                break
            outcome.achievement_xp += xp
            self._merge_grant(outcome, grant, reward=False)
            snapshot = after

    async def _unlock_all(
        self, user_id: str, achievements: list[AchievementInfo], outcome: EventOutcome
    ) -> int:
        """Unlock each entry independently; returns the XP owed for the ones recorded.

        A failed insert leaves that entry locked for a later retry without
        dropping the XP of entries already recorded in the same round.
        """
        xp = 0
        for achievement in achievements:
            try:
                inserted = await self._unlock(user_id, achievement)
            except PersistenceError:
                logger.warning("achievement_unlock_failed", user_id=user_id, code=achievement.code, exc_info=True)
                outcome.achievements_failed = True
                continue
            if inserted:
                outcome.unlocked.append(achievement.code)
                xp += achievement.xp_reward
        return xp

    async def _unlock(self, user_id: str, achievement: AchievementInfo) -> bool:
        if achievement.id is None:
            logger.warning("achievement_missing_id", code=achievement.code)
            return False
        inserted = await self.store.insert_user_achievement_if_absent(user_id, achievement.id)
        if inserted:
            logger.info("achievement_unlocked", user_id=user_id, code=achievement.code, xp_reward=achievement.xp_reward)
            await self._notify(user_id, achievement_notification(achievement))
        return inserted

    async def _notify(self, user_id: str, notification: dict[str, Any]) -> None:
        try:
            await self.store.enqueue_notification(user_id, **notification)
        except PersistenceError:
            logger.warning("notification_failed", user_id=user_id, type=notification["type_"], exc_info=True)

    @staticmethod
    def _merge_grant(outcome: EventOutcome, grant: XPGrantResult, reward: bool = True) -> None:
        if not grant.success:
            return
        if reward:
            outcome.xp_gained = grant.xp_gained
        outcome.new_total = grant.new_total
        outcome.new_level = grant.new_level
        if grant.leveled_up:
            outcome.leveled_up = True
            outcome.level_ups.append(grant.new_level)
