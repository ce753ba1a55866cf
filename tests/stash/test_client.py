"""Tests for StashClient."""

from __future__ import annotations

import json

import httpx
import pytest
import respx

from stash_player.shared.enums import EntityType
from stash_player.shared.exceptions import StashError
from stash_player.stash.client import StashClient, find_query
from stash_player.stash.interfaces import EntityFinder

GRAPHQL_URL = "http://stash:9999/graphql"
VARIABLES = {"filter": {"page": 1, "per_page": 24, "sort": "created_at", "direction": "DESC"}, "scene_filter": {}}


@pytest.fixture
def client() -> StashClient:
    return StashClient(base_url="http://stash:9999/", api_key="test-key", timeout=5)


class TestFindQuery:
    @pytest.mark.parametrize(
        ("entity_type", "root", "argument"),
        [
            (EntityType.SCENE, "findScenes", "$scene_filter: SceneFilterType"),
            (EntityType.PERFORMER, "findPerformers", "$performer_filter: PerformerFilterType"),
            (EntityType.STUDIO, "findStudios", "$studio_filter: StudioFilterType"),
            (EntityType.TAG, "findTags", "$tag_filter: TagFilterType"),
        ],
    )
    def test_document_shape(self, entity_type: EntityType, root: str, argument: str) -> None:
        document = find_query(entity_type)
        assert root in document
        assert argument in document
        assert "count" in document


class TestStashClient:
    @respx.mock
    async def test_find_scenes(self, client: StashClient) -> None:
        route = respx.post(GRAPHQL_URL).mock(
            return_value=httpx.Response(
                200,
                json={"data": {"findScenes": {"count": 2, "scenes": [{"id": "1"}, {"id": "2"}]}}},
            )
        )

        result = await client.find(EntityType.SCENE, VARIABLES)

        assert result.count == 2
        assert [item["id"] for item in result.items] == ["1", "2"]
        request = route.calls.last.request
        assert request.headers["ApiKey"] == "test-key"
        body = json.loads(request.content)
        assert body["variables"] == VARIABLES
        assert "findScenes" in body["query"]

    @respx.mock
    async def test_no_api_key_header_when_unset(self) -> None:
        route = respx.post(GRAPHQL_URL).mock(
            return_value=httpx.Response(200, json={"data": {"findTags": {"count": 0, "tags": []}}})
        )
        result = await StashClient("http://stash:9999").find(EntityType.TAG, {"filter": {}, "tag_filter": {}})
        assert result.count == 0
        assert "ApiKey" not in route.calls.last.request.headers

    @respx.mock
    async def test_graphql_errors_raise(self, client: StashClient) -> None:
        respx.post(GRAPHQL_URL).mock(
            return_value=httpx.Response(200, json={"errors": [{"message": "unknown field rating100"}]})
        )
        with pytest.raises(StashError, match="unknown field rating100"):
            await client.find(EntityType.SCENE, VARIABLES)

    @respx.mock
    async def test_http_error_raises(self, client: StashClient) -> None:
        respx.post(GRAPHQL_URL).mock(return_value=httpx.Response(401, text="unauthorized"))
        with pytest.raises(StashError, match="401"):
            await client.find(EntityType.SCENE, VARIABLES)

    @respx.mock
    async def test_transport_error_raises(self, client: StashClient) -> None:
        respx.post(GRAPHQL_URL).mock(side_effect=httpx.ConnectError("refused"))
        with pytest.raises(StashError, match="request failed"):
            await client.find(EntityType.SCENE, VARIABLES)

    @respx.mock
    async def test_missing_data_raises(self, client: StashClient) -> None:
        respx.post(GRAPHQL_URL).mock(return_value=httpx.Response(200, json={"data": None}))
        with pytest.raises(StashError, match="no data"):
            await client.find(EntityType.SCENE, VARIABLES)


def test_implements_entity_finder_protocol(client: StashClient) -> None:
    assert isinstance(client, EntityFinder)
