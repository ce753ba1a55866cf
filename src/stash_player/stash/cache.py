"""Redis TTL cache for Stash find results."""

from __future__ import annotations

import hashlib
import json
import logging
from typing import Any

from pydantic import ValidationError
from redis import asyncio as aioredis

from stash_player.shared.enums import EntityType
from stash_player.shared.models import FindResult

logger = logging.getLogger(__name__)


def query_digest(variables: dict[str, Any]) -> str:
    """Stable digest of GraphQL variables (key order does not matter)."""
    canonical = json.dumps(variables, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class QueryCache:
    """Redis-backed cache of find results keyed by their query variables."""

    def __init__(self, redis: aioredis.Redis, ttl: int = 300) -> None:
        """Initialize the query cache.

        Args:
            redis: Redis client instance
            ttl: Time-to-live in seconds (default: 300)
        """
        self.redis = redis
        self.ttl = ttl
        self.key_prefix = "stash_player:query:"

    def key(self, entity_type: EntityType, variables: dict[str, Any]) -> str:
        return f"{self.key_prefix}{entity_type.value}:{query_digest(variables)}"

    async def get(self, entity_type: EntityType, variables: dict[str, Any]) -> FindResult | None:
        """Retrieve a cached result.

        Returns:
            Cached result, or None if not found or the entry cannot be decoded
        """
        key = self.key(entity_type, variables)
        raw = await self.redis.get(key)
        if raw is None:
            return None
        try:
            return FindResult.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("discarding unreadable cache entry %s: %s", key, exc)
            return None

    async def set(self, entity_type: EntityType, variables: dict[str, Any], result: FindResult) -> None:
        """Store a result in cache with TTL."""
        await self.redis.setex(self.key(entity_type, variables), self.ttl, result.model_dump_json())
