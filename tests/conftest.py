"""Shared pytest fixtures for the Stash Player test suite."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from stash_player.config import Settings
from stash_player.filtering.descriptors import DescriptorRegistry, default_registry
from stash_player.filtering.state import FilterState, FilterStore
from stash_player.shared.enums import EntityType


@pytest.fixture()
def settings() -> Settings:
    """Return a Settings instance with test defaults."""
    return Settings(
        stash_url="http://stash:9999",
        stash_api_key="test-key",
        redis_url="",
        default_per_page=24,
        max_per_page=100,
    )


@pytest.fixture()
def registry() -> DescriptorRegistry:
    return default_registry()


@pytest.fixture()
def store(registry: DescriptorRegistry) -> FilterStore:
    return FilterStore(registry, max_per_page=100)


@pytest.fixture()
def scene_state(store: FilterStore) -> FilterState:
    return store.init(EntityType.SCENE)


@pytest.fixture()
def performer_state(store: FilterStore) -> FilterState:
    return store.init(EntityType.PERFORMER)


@pytest.fixture()
def mock_redis() -> AsyncMock:
    """Mock async Redis client."""
    mock = AsyncMock()
    mock.get = AsyncMock(return_value=None)
    mock.setex = AsyncMock(return_value=True)
    return mock
