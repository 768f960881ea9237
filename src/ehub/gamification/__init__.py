"""Gamification engine: level curve, achievement rules, streaks and the stat orchestrator."""
