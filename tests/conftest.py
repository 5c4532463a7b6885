"""
Test configuration and fixtures for docs-ingest.
"""

from typing import Any, Dict, Optional
from unittest.mock import AsyncMock, Mock, patch

import pytest


class MockAsyncContextManager:
    """Mock async context manager for aiohttp responses."""

    def __init__(self, mock_response):
        self.mock_response = mock_response

    async def __aenter__(self):
        return self.mock_response

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None


def make_response(
    status: int = 200,
    text: str = "",
    json_data: Any = None,
    headers: Optional[Dict[str, str]] = None,
) -> Mock:
    """Build a fake aiohttp response."""
    response = Mock()
    response.status = status
    response.headers = headers or {}
    response.text = AsyncMock(return_value=text)
    response.json = AsyncMock(return_value=json_data)
    return response


def make_session(*responses) -> Mock:
    """Build a fake aiohttp session whose ``get`` yields the given responses in order.

    An exception in ``responses`` is raised by ``get`` instead.
    """
    session = Mock()
    session.closed = False
    session.close = AsyncMock()

    def side_effect(*args, **kwargs):
        item = next(iterator)
        if isinstance(item, BaseException):
            raise item
        return MockAsyncContextManager(item)

    iterator = iter(responses)
    session.get = Mock(side_effect=side_effect)
    return session


@pytest.fixture
def no_sleep():
    """Skip retry backoff waits, recording the requested delays."""
    with patch("docs_ingest.core.retry.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        yield mock_sleep


@pytest.fixture
def response_factory():
    """Factory for fake aiohttp responses."""
    return make_response


@pytest.fixture
def session_factory():
    """Factory for fake aiohttp sessions."""
    return make_session
