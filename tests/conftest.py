"""Shared fixtures for trashcan tests."""

import pytest

from trashcan.cache.engine import reset_trash_can
from trashcan.config import reset_settings


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def _clean_singletons():
    """Reset process-wide settings and the default cache around each test."""
    reset_settings()
    reset_trash_can()
    yield
    reset_trash_can()
    reset_settings()
