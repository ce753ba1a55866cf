"""Centralised configuration via Pydantic Settings."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide configuration loaded from environment variables."""

    model_config = {"env_prefix": "STASH_PLAYER_", "frozen": True}

    # Stash
    stash_url: str = "http://localhost:9999"
    stash_api_key: str = ""
    stash_timeout_seconds: int = 30

    # Redis (query result cache). Leave blank to run without a cache.
    redis_url: str = "redis://localhost:6379/0"
    query_cache_ttl_seconds: int = 300

    # Pagination
    default_per_page: int = 24
    max_per_page: int = 200

    # Browse API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    @property
    def graphql_url(self) -> str:
        return f"{self.stash_url.rstrip('/')}/graphql"


def get_settings() -> Settings:
    """Factory — allows overriding in tests."""
    return Settings()
