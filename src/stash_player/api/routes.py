"""API routes for browsing filtered Stash lists."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from redis.exceptions import RedisError

from stash_player.filtering.descriptors import SCENE_SCOPES, resolve_entity_type
from stash_player.filtering.query import build_query
from stash_player.filtering.state import FilterStore
from stash_player.filtering.url_params import decode_state, encode_state
from stash_player.shared.enums import EntityType
from stash_player.shared.exceptions import FilterError, StashError, UnknownEntityType
from stash_player.shared.models import FindResult
from stash_player.stash.cache import QueryCache
from stash_player.stash.interfaces import EntityFinder, ResultCache
from stash_player.stash.serializer import to_variables

logger = logging.getLogger(__name__)

router = APIRouter()


def _state(request: Request, key: str) -> Any:
    return getattr(request.app.state, key, None)


def _entity(entity: str) -> EntityType:
    try:
        return resolve_entity_type(entity)
    except UnknownEntityType as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


def _store(request: Request) -> FilterStore:
    store = _state(request, "store")
    if store is None:
        raise HTTPException(status_code=503, detail="filter store unavailable")
    return store


def _get_finder(request: Request) -> EntityFinder:
    finder = _state(request, "stash")
    if finder is None or not hasattr(finder, "find"):
        raise HTTPException(status_code=503, detail="stash client unavailable")
    return finder


def _get_cache(request: Request) -> ResultCache | None:
    redis_client = _state(request, "redis")
    if redis_client is None:
        return None
    return QueryCache(redis_client, ttl=_state(request, "cache_ttl") or 300)


async def _cache_get(cache: ResultCache | None, entity_type: EntityType, variables: dict[str, Any]) -> FindResult | None:
    if cache is None:
        return None
    try:
        return await cache.get(entity_type, variables)
    except RedisError as exc:
        logger.warning("query cache read failed, fetching from stash: %s", exc)
        return None


async def _cache_set(cache: ResultCache | None, entity_type: EntityType, variables: dict[str, Any], result: FindResult) -> None:
    if cache is None:
        return
    try:
        await cache.set(entity_type, variables, result)
    except RedisError as exc:
        logger.warning("query cache write failed: %s", exc)


@router.get("/api/{entity}/fields")
async def list_fields(entity: str, request: Request) -> dict[str, Any]:
    """Describe the filterable and sortable fields of an entity list."""
    entity_type = _entity(entity)
    registry = _store(request).registry
    try:
        descriptors = registry.get_descriptors(entity_type)
    except UnknownEntityType as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    default_sort = registry.default_sort(entity_type)
    return {
        "entity_type": entity_type.value,
        "default_sort": {"key": default_sort.key, "direction": default_sort.direction.value},
        "fields": [descriptor.model_dump(mode="json") for descriptor in descriptors],
    }


async def _list_page(
    request: Request,
    entity_type: EntityType,
    permanent: dict[str, Any] | None = None,
) -> dict[str, Any]:
    store = _store(request)
    try:
        state = decode_state(request.query_params, entity_type, store, permanent=permanent)
    except UnknownEntityType as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except FilterError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    query = build_query(state, store.registry)
    variables = to_variables(query)

    cache = _get_cache(request)
    result = await _cache_get(cache, entity_type, variables)
    source = "cache"
    if result is None:
        finder = _get_finder(request)
        try:
            result = await finder.find(entity_type, variables)
        except StashError as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        await _cache_set(cache, entity_type, variables, result)
        source = "stash"

    return {
        "entity_type": entity_type.value,
        "count": result.count,
        "items": result.items,
        "page": state.page + 1,
        "per_page": state.per_page,
        "query": encode_state(state, store.registry, default_per_page=store.default_per_page),
        "source": source,
    }


@router.get("/api/{entity}")
async def list_entities(entity: str, request: Request) -> dict[str, Any]:
    """Return one filtered, sorted page of an entity list.

    The query string uses the URL filter layout, e.g.
    ``/api/scene?performerCount_min=2&sort=title&dir=asc&page=2``.
    """
    return await _list_page(request, _entity(entity))


@router.get("/api/{scope}/{scope_id}/scenes")
async def list_scoped_scenes(scope: str, scope_id: str, request: Request) -> dict[str, Any]:
    """Scenes of one performer, studio or tag; the scope cannot be filtered away."""
    key = SCENE_SCOPES.get(_entity(scope))
    if key is None:
        raise HTTPException(status_code=404, detail=f"scenes cannot be scoped by {scope}")
    return await _list_page(request, EntityType.SCENE, {key: [scope_id]})


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint.

    Returns:
        Status dictionary
    """
    return {"status": "ok"}
