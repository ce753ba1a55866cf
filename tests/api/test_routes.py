"""Tests for the browse API routes."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError

from stash_player.api.app import create_app
from stash_player.config import Settings
from stash_player.shared.enums import EntityType
from stash_player.shared.exceptions import StashError
from stash_player.shared.models import FindResult


@pytest.fixture
def app(settings: Settings):
    """Create a test FastAPI application without Redis."""
    app = create_app(settings, redis_url=None)
    app.state.stash = AsyncMock()
    app.state.stash.find.return_value = FindResult(count=1, items=[{"id": "42", "title": "Beach"}])
    return app


async def _get(app, url: str):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.get(url)


async def test_health_returns_ok(app):
    response = await _get(app, "/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


async def test_fields_lists_descriptors(app):
    response = await _get(app, "/api/performer/fields")
    assert response.status_code == 200
    payload = response.json()
    assert payload["entity_type"] == "performer"
    assert payload["default_sort"] == {"key": "createdAt", "direction": "DESC"}
    gender = next(f for f in payload["fields"] if f["key"] == "gender")
    assert gender["kind"] == "select"
    assert "FEMALE" in gender["enum_values"]


async def test_unknown_entity_is_404(app):
    response = await _get(app, "/api/gallery")
    assert response.status_code == 404


async def test_list_builds_stash_variables(app):
    response = await _get(app, "/api/scene?performerCount_min=2&sort=title&dir=asc&page=2")

    assert response.status_code == 200
    payload = response.json()
    assert payload["count"] == 1
    assert payload["items"] == [{"id": "42", "title": "Beach"}]
    assert payload["page"] == 2
    assert payload["per_page"] == 24
    assert payload["source"] == "stash"
    assert payload["query"] == {"performerCount_min": "2", "sort": "title", "dir": "asc", "page": "2"}

    entity_type, variables = app.state.stash.find.await_args.args
    assert entity_type is EntityType.SCENE
    assert variables == {
        "filter": {"page": 2, "per_page": 24, "sort": "title", "direction": "ASC"},
        "scene_filter": {"performer_count": {"value": 1, "modifier": "GREATER_THAN"}},
    }


@pytest.mark.parametrize(
    "query",
    [
        "bogusField=x",
        "performerCount_min=two",
        "performerCount_min=2.5",
        "rating_min=nan",
        "sort=id",
        "page=0",
        "per_page=500",
    ],
)
async def test_bad_filter_input_is_400(app, query):
    response = await _get(app, f"/api/scene?{query}")
    assert response.status_code == 400
    app.state.stash.find.assert_not_awaited()


async def test_stash_failure_is_502(app):
    app.state.stash.find.side_effect = StashError("Stash returned 500: boom")
    response = await _get(app, "/api/tag")
    assert response.status_code == 502
    assert "boom" in response.json()["detail"]


async def test_cache_hit_skips_stash(app, mock_redis):
    mock_redis.get.return_value = '{"count": 9, "items": []}'
    app.state.redis = mock_redis

    response = await _get(app, "/api/studio?favorite=true")

    assert response.status_code == 200
    assert response.json()["count"] == 9
    assert response.json()["source"] == "cache"
    app.state.stash.find.assert_not_awaited()


async def test_cache_miss_stores_result(app, mock_redis):
    app.state.redis = mock_redis

    response = await _get(app, "/api/studio")

    assert response.status_code == 200
    mock_redis.setex.assert_awaited_once()
    key, ttl, _payload = mock_redis.setex.await_args.args
    assert key.startswith("stash_player:query:studio:")
    assert ttl == 300


async def test_cache_errors_fall_back_to_stash(app, mock_redis):
    mock_redis.get.side_effect = RedisConnectionError("down")
    mock_redis.setex.side_effect = RedisConnectionError("down")
    app.state.redis = mock_redis

    response = await _get(app, "/api/scene")

    assert response.status_code == 200
    assert response.json()["source"] == "stash"
    app.state.stash.find.assert_awaited_once()


async def test_corrupt_cache_entry_falls_back_to_stash(app, mock_redis):
    mock_redis.get.return_value = "not json"
    app.state.redis = mock_redis

    response = await _get(app, "/api/scene")

    assert response.status_code == 200
    assert response.json()["source"] == "stash"
    app.state.stash.find.assert_awaited_once()


async def test_scoped_scenes_keep_their_scope(app):
    response = await _get(app, "/api/performer/12/scenes?organized=true")

    assert response.status_code == 200
    assert response.json()["query"] == {"organized": "true"}
    entity_type, variables = app.state.stash.find.await_args.args
    assert entity_type is EntityType.SCENE
    assert variables["scene_filter"] == {
        "organized": True,
        "performers": {"value": ["12"], "modifier": "INCLUDES"},
    }


@pytest.mark.parametrize(
    ("url", "status"),
    [
        ("/api/scene/1/scenes", 404),
        ("/api/gallery/1/scenes", 404),
        ("/api/tag/abc/scenes", 400),
        ("/api/studio/4/scenes?studios=5", 400),
    ],
)
async def test_scoped_scenes_errors(app, url, status):
    response = await _get(app, url)
    assert response.status_code == status
    app.state.stash.find.assert_not_awaited()
