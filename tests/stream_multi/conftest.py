"""Shared fixtures for stream-multi tests."""

import pytest

from stream_multi.config import StreamMultiSettings, get_settings


@pytest.fixture
def settings() -> StreamMultiSettings:
    """Settings that ignore the environment and any .env file."""
    return StreamMultiSettings(_env_file=None)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Reset cached settings between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
