"""Interfaces for the Stash collaborators."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from stash_player.shared.enums import EntityType
from stash_player.shared.models import FindResult


@runtime_checkable
class EntityFinder(Protocol):
    """Protocol for fetching filtered entity lists from Stash."""

    async def find(self, entity_type: EntityType, variables: dict[str, Any]) -> FindResult:
        """Run the ``find<Entities>`` query for *entity_type*.

        Args:
            entity_type: Which catalog list to query.
            variables: GraphQL variables produced by the serializer.

        Returns:
            Total count and the requested page of items.
        """
        ...


@runtime_checkable
class ResultCache(Protocol):
    """Protocol for caching find results by their query variables."""

    async def get(self, entity_type: EntityType, variables: dict[str, Any]) -> FindResult | None:
        """Return a cached result, or None on a miss."""
        ...

    async def set(self, entity_type: EntityType, variables: dict[str, Any], result: FindResult) -> None:
        """Store *result* for the given query."""
        ...
