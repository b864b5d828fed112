"""Shared fixtures for the unit tests."""

import pytest

from poolbook.core.scheduling.models import ScheduleConfig

from factories import InMemoryPoolStore


@pytest.fixture
def config() -> ScheduleConfig:
    return ScheduleConfig()


@pytest.fixture
def store() -> InMemoryPoolStore:
    return InMemoryPoolStore()
