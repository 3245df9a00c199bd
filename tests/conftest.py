"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from aiohttp import ClientSession

from pysmartme.config import ConfigStore


if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


@pytest.fixture
def store(tmp_path: Path) -> ConfigStore:
    """Create an empty ConfigStore backed by a temporary file."""
    return ConfigStore(tmp_path / "smartme-cli" / "config.json")


@pytest.fixture
def api_key_store(store: ConfigStore) -> ConfigStore:
    """Create a ConfigStore holding an API key."""
    store.set("apiKey", "abc123")
    return store


@pytest.fixture
def basic_store(store: ConfigStore) -> ConfigStore:
    """Create a ConfigStore holding a username and password."""
    store.set("username", "alice")
    store.set("password", "s3cret")
    return store


@pytest.fixture
def mock_session() -> MagicMock:
    """Create a mock aiohttp ClientSession.

    Returns:
        Mock ClientSession whose ``request`` returns an async context manager.
    """
    session = MagicMock(spec=ClientSession)
    session.closed = False
    session.close = AsyncMock()
    return session


@pytest.fixture
def make_response() -> Callable[..., MagicMock]:
    """Return a factory for mock aiohttp ClientResponse objects."""

    def _make(
        status: int = 200,
        body: Any = None,
        *,
        content_type: str = "application/json",
        headers: dict[str, str] | None = None,
    ) -> MagicMock:
        response = MagicMock()
        response.status = status
        response.content_type = content_type
        response.headers = headers or {}
        if body is None:
            text = ""
        elif isinstance(body, str):
            text = body
        else:
            text = json.dumps(body)
        response.text = AsyncMock(return_value=text)
        response.__aenter__ = AsyncMock(return_value=response)
        response.__aexit__ = AsyncMock(return_value=None)
        return response

    return _make
