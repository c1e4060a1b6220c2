"""Pytest configuration and fixtures."""

import asyncio
import os

import pytest

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "true"
os.environ["AUDIT_API_KEY"] = ""
os.environ["CMC_API_KEY"] = ""
os.environ.pop("SESSION_STORE_PATH", None)

from jetswap.config import get_settings


class FakeClock:
    """Manually advanced clock whose sleep moves time forward instantly."""

    def __init__(self, start: float = 1_000.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


@pytest.fixture(autouse=True)
def fresh_settings():
    """Drop cached settings between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
