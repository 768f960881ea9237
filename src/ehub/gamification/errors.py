"""Gamification error taxonomy."""

from __future__ import annotations


class GamificationError(Exception):
    """Base class for gamification engine errors."""


class InvalidInputError(GamificationError, ValueError):
    """Rejected input at a pure-function boundary (negative XP, malformed date, ...)."""


class PersistenceError(GamificationError):
    """The statistics store failed to read or write."""
