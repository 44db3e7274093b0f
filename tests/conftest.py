"""Pytest configuration and fixtures."""

from typing import Any
from unittest.mock import AsyncMock

import pytest

from hubsend.common.errors import TransportError
from hubsend.common.settings import Settings
from hubsend.delivery.transport import TransportResponse

STRONG_SECRET = "3f9a1c7e5b2d4f608a1b3c5d7e9f0a2b"


@pytest.fixture
def secret() -> str:
    """A 32 character hex secret."""
    return STRONG_SECRET


@pytest.fixture
def settings(secret: str) -> Settings:
    """Create test settings."""
    return Settings(
        secret=secret,
        url="https://hooks.example.com/deploy",
        data='{"event": "deploy", "ref": "main"}',
        headers="",
        timeout=5000,
        retries=3,
        revision="a1b2c3d4",
    )


@pytest.fixture
def sleeps() -> list[float]:
    """Delays passed to the backoff sleep."""
    return []


@pytest.fixture
def fake_sleep(sleeps: list[float]):
    """Backoff sleep that records delays instead of waiting."""

    async def _sleep(delay: float) -> None:
        sleeps.append(delay)

    return _sleep


@pytest.fixture
def make_transport():
    """Factory for transport mocks whose post() yields each outcome in turn."""

    def _make(*outcomes: Any) -> AsyncMock:
        transport = AsyncMock()
        transport.post = AsyncMock(side_effect=list(outcomes))
        return transport

    return _make


@pytest.fixture
def ok_response() -> TransportResponse:
    return TransportResponse(status=200, body={"accepted": True})


@pytest.fixture
def network_error() -> TransportError:
    return TransportError("connect ECONNREFUSED 127.0.0.1:9", code="ECONNREFUSED")
