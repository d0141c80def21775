"""Pytest fixtures for all tests."""

import pytest
from httpx import AsyncClient, ASGITransport

from config import Config, LoggingConfig
from core.codec import NFUID
from ui.app import create_app


class PatternRandomSource:
    """Fills every buffer with ``pattern`` repeated and truncated."""

    def __init__(self, pattern):
        self.pattern = bytes(pattern)

    def fill(self, buffer):
        size = len(buffer)
        buffer[:] = (self.pattern * (size // len(self.pattern) + 1))[:size]
        return buffer


class FixedClock:
    def __init__(self, value):
        self.value = value

    def __call__(self):
        return self.value


# 2025-10-09T08:53:20.123Z
FIXED_MILLIS = 1_760_000_000_123
RANDOM_PATTERN = b"\x9a\x3c\xf1\x07\x5e\xd2\x88\x41"


@pytest.fixture
def fixed_clock():
    """Clock stuck at a known millisecond."""
    return FixedClock(FIXED_MILLIS)


@pytest.fixture
def random_source():
    """Deterministic random source."""
    return PatternRandomSource(RANDOM_PATTERN)


@pytest.fixture
def make_random_source():
    """Factory for deterministic sources with a given byte pattern."""
    return PatternRandomSource


@pytest.fixture
def codec():
    """Codec with the default layout."""
    return NFUID()


@pytest.fixture
def app_config(tmp_path):
    """Default config with log files under tmp_path."""
    return Config(logging=LoggingConfig(
        level="ERROR",
        file=str(tmp_path / "nfuid.log"),
        crash_file=str(tmp_path / "crash.log"),
    ))


@pytest.fixture
async def app(app_config):
    """Create test FastAPI app."""
    return create_app(app_config)


@pytest.fixture
async def client(app):
    """Create async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
