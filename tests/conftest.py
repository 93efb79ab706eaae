"""Shared test fixtures for narrative timing tests."""

import pytest
from fastapi.testclient import TestClient

from bassline.main import app
from bassline.narrative.models import Bar, Section


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def anyio_backend():
    return "asyncio"


def make_bars(n_bars: int, bar_duration: float = 2.0, offset: float = 0.0) -> list[Bar]:
    """Evenly spaced bars starting at *offset*."""
    return [
        Bar(start=offset + i * bar_duration, duration=bar_duration, confidence=0.9)
        for i in range(n_bars)
    ]


def make_section(start: float, duration: float = 20.0, loudness: float = -12.0, confidence: float = 0.8) -> Section:
    return Section(start=start, duration=duration, confidence=confidence, loudness=loudness, tempo=120.0)


@pytest.fixture
def bars_factory():
    return make_bars


@pytest.fixture
def section_factory():
    return make_section


@pytest.fixture
def chorus_at_50_sections():
    """Intro, chorus at 50s, quiet bridge, outro."""
    return [
        make_section(0.0, duration=50.0, loudness=-12.0),
        make_section(50.0, duration=30.0, loudness=-6.0, confidence=0.8),
        make_section(80.0, duration=60.0, loudness=-18.0),
        make_section(140.0, duration=40.0, loudness=-14.0),
    ]
