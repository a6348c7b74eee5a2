"""Settings for stream-multi.

Uses pydantic-settings for type-safe configuration. Values come from
``STREAM_MULTI_*`` environment variables or a ``.env`` file in the current
directory; keyword arguments to the entry points override both.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StreamMultiSettings(BaseSettings):
    """Defaults for model calls and rendering."""

    model_config = SettingsConfigDict(
        env_prefix="STREAM_MULTI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    model: str = Field(default="gpt-4o-mini")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    api_key: str | None = Field(default=None)
    api_base: str | None = Field(default=None)
    tool_not_found: str = Field(default="Tool not found")
    log_level: str = Field(default="WARNING")


@lru_cache
def get_settings() -> StreamMultiSettings:
    """Get cached settings. Call ``get_settings.cache_clear()`` to reload."""
    return StreamMultiSettings()
