"""Enchanted Hub gamification engine."""

__version__ = "0.1.0"
