"""Async client for the Stash GraphQL API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from stash_player.shared.enums import EntityType
from stash_player.shared.exceptions import StashError
from stash_player.shared.models import FindResult

logger = logging.getLogger(__name__)

SCENE_FIELDS = """
    id
    title
    date
    rating100
    o_counter
    play_count
    organized
    created_at
    files { duration width height }
    paths { screenshot stream }
    studio { id name }
    performers { id name }
    tags { id name }
"""

PERFORMER_FIELDS = """
    id
    name
    gender
    birthdate
    rating100
    favorite
    scene_count
    image_path
"""

STUDIO_FIELDS = """
    id
    name
    rating100
    favorite
    scene_count
    image_path
"""

TAG_FIELDS = """
    id
    name
    favorite
    scene_count
    image_path
"""

# entity -> (root field, list field, filter input type, selection)
FIND_QUERIES: dict[EntityType, tuple[str, str, str, str]] = {
    EntityType.SCENE: ("findScenes", "scenes", "SceneFilterType", SCENE_FIELDS),
    EntityType.PERFORMER: ("findPerformers", "performers", "PerformerFilterType", PERFORMER_FIELDS),
    EntityType.STUDIO: ("findStudios", "studios", "StudioFilterType", STUDIO_FIELDS),
    EntityType.TAG: ("findTags", "tags", "TagFilterType", TAG_FIELDS),
}


def find_query(entity_type: EntityType) -> str:
    """Return the GraphQL document listing *entity_type*."""
    root, items, filter_type, fields = FIND_QUERIES[entity_type]
    argument = f"{entity_type.value}_filter"
    return (
        f"query Find($filter: FindFilterType, ${argument}: {filter_type}) {{\n"
        f"  {root}(filter: $filter, {argument}: ${argument}) {{\n"
        f"    count\n"
        f"    {items} {{{fields}    }}\n"
        f"  }}\n"
        f"}}\n"
    )


class StashClient:
    """Query a Stash server over its GraphQL endpoint.

    Implements the ``EntityFinder`` protocol.
    """

    def __init__(self, base_url: str, api_key: str = "", *, timeout: int = 30) -> None:
        self._graphql_url = f"{base_url.rstrip('/')}/graphql"
        self._api_key = api_key
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self._api_key:
            headers["ApiKey"] = self._api_key
        return headers

    async def execute(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """POST a GraphQL document and return its ``data`` object.

        Raises:
            StashError: On transport failures, non-2xx responses or GraphQL errors.
        """
        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(self._graphql_url, json=payload, headers=self._headers())
                resp.raise_for_status()
                body = resp.json()
        except httpx.HTTPStatusError as exc:
            raise StashError(f"Stash returned {exc.response.status_code}: {exc.response.text[:200]}") from exc
        except httpx.HTTPError as exc:
            raise StashError(f"Stash request failed: {exc}") from exc
        except ValueError as exc:
            raise StashError(f"Stash returned invalid JSON: {exc}") from exc

        errors = body.get("errors")
        if errors:
            messages = "; ".join(str(err.get("message", err)) for err in errors)
            raise StashError(f"GraphQL errors: {messages}")

        data = body.get("data")
        if not isinstance(data, dict):
            raise StashError("Stash response has no data")
        return data

    async def find(self, entity_type: EntityType, variables: dict[str, Any]) -> FindResult:
        """Run ``find<Entities>`` with serializer-produced variables."""
        root, items, _filter_type, _fields = FIND_QUERIES[entity_type]
        data = await self.execute(find_query(entity_type), variables)

        payload = data.get(root) or {}
        result = FindResult(count=payload.get("count", 0), items=payload.get(items) or [])
        logger.info(
            "stash %s returned %d/%d item(s)",
            root,
            len(result.items),
            result.count,
        )
        return result
