"""
pytest configuration for auth_retry tests.

Adds src directory to Python path for imports and provides shared adapter
fixtures.
"""

import asyncio
import logging
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add src directory to Python path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))

from auth_retry.logging.context import clear_log_context  # noqa: E402
from auth_retry.logging.setup import ROOT_LOGGER_NAME  # noqa: E402


class FakeAdapter:
    """
    Credential adapter for coordinator tests.

    refresh_token() returns `token` (or raises `error`) after `delay`
    seconds, or waits on `gate` when one is set. Calls to every operation
    are recorded in `events` so ordering can be asserted.
    """

    def __init__(self, token="new-token", delay=0.0, error=None, with_logout=True):
        self.token = token
        self.delay = delay
        self.error = error
        self.gate: asyncio.Event | None = None
        self.refresh_count = 0
        self.applied: list = []
        self.logout_count = 0
        self.events: list[str] = []
        if not with_logout:
            self.logout = None

    async def refresh_token(self):
        self.refresh_count += 1
        self.events.append("refresh")
        if self.gate is not None:
            await self.gate.wait()
        elif self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.token

    def apply_token(self, token):
        self.applied.append(token)
        self.events.append("apply")

    def logout(self):
        self.logout_count += 1
        self.events.append("logout")


@pytest.fixture
def adapter():
    """Adapter whose refresh succeeds immediately with 'new-token'."""
    return FakeAdapter()


@pytest.fixture
def gated_adapter():
    """Adapter whose refresh blocks until adapter.gate is set."""
    fake = FakeAdapter()
    fake.gate = asyncio.Event()
    return fake


@pytest.fixture
def mock_adapter():
    """MagicMock-based adapter for call assertions."""
    mock = MagicMock()
    mock.refresh_token = AsyncMock(return_value="new-token")
    mock.apply_token = MagicMock()
    mock.logout = MagicMock()
    return mock


@pytest.fixture
def restore_package_logger():
    """Undo setup_logging() changes to the auth_retry logger and log context."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    saved = (logger.level, list(logger.handlers), logger.propagate)
    clear_log_context()
    yield logger
    logger.setLevel(saved[0])
    logger.handlers[:] = saved[1]
    logger.propagate = saved[2]
    clear_log_context()
