"""Shared test fixtures."""

from __future__ import annotations

import pytest

from ehub.config import get_settings
from ehub.gamification.orchestrator import GamificationOrchestrator
from tests.helpers.memory_store import MemoryStatsStore


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def memory_store() -> MemoryStatsStore:
    return MemoryStatsStore()


@pytest.fixture
def orchestrator(memory_store: MemoryStatsStore) -> GamificationOrchestrator:
    return GamificationOrchestrator(memory_store)
