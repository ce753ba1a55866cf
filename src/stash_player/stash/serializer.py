"""Serialize a ``QueryDescriptor`` into Stash GraphQL variables.

Output shape for a scene list::

    {
        "filter": {"page": 1, "per_page": 24, "sort": "created_at", "direction": "DESC"},
        "scene_filter": {"performer_count": {"value": 1, "modifier": "GREATER_THAN"}},
    }

Stash compares with strict ``GREATER_THAN``/``LESS_THAN``, while range
predicates are inclusive. One-sided bounds are therefore moved one unit
outwards: one for integers, a day for dates, a second for timestamps. Float
bounds have no next value and are sent as-is. Timestamp bounds are sent with
explicit times (``2024-03-01 00:00:00``) so a day boundary means midnight.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any

from stash_player.filtering.query import Between, Contains, Equals, Includes, Predicate, QueryDescriptor
from stash_player.shared.enums import CriterionModifier, EntityType

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def filter_argument(entity_type: EntityType) -> str:
    """Name of the entity-specific filter argument, e.g. ``scene_filter``."""
    return f"{entity_type.value}_filter"


def _number(value: int | float) -> int | float:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _scalar(value: int | float | date) -> Any:
    if isinstance(value, datetime):
        return value.strftime(TIMESTAMP_FORMAT)
    if isinstance(value, date):
        return value.isoformat()
    return _number(value)


def _step(value: int | float | date, direction: int) -> int | float | date:
    if isinstance(value, datetime):
        return value + timedelta(seconds=direction)
    if isinstance(value, date):
        return value + timedelta(days=direction)
    value = _number(value)
    if isinstance(value, int):
        return value + direction
    return value


def between_criterion(predicate: Between) -> dict[str, Any] | None:
    low, high = predicate.min, predicate.max
    if low is not None and high is not None:
        return {
            "value": _scalar(low),
            "value2": _scalar(high),
            "modifier": CriterionModifier.BETWEEN.value,
        }
    if low is not None:
        return {"value": _scalar(_step(low, -1)), "modifier": CriterionModifier.GREATER_THAN.value}
    if high is not None:
        return {"value": _scalar(_step(high, 1)), "modifier": CriterionModifier.LESS_THAN.value}
    return None


def to_criterion(predicate: Predicate) -> Any:
    """Translate one predicate into a Stash criterion input (or bare bool)."""
    if isinstance(predicate, Contains):
        return {"value": predicate.value, "modifier": CriterionModifier.INCLUDES.value}
    if isinstance(predicate, Equals):
        if isinstance(predicate.value, bool):
            return predicate.value
        return {"value": predicate.value, "modifier": CriterionModifier.EQUALS.value}
    if isinstance(predicate, Between):
        return between_criterion(predicate)
    if isinstance(predicate, Includes):
        return {"value": list(predicate.values), "modifier": CriterionModifier.INCLUDES.value}
    raise TypeError(f"unsupported predicate: {predicate!r}")


def find_filter(query: QueryDescriptor) -> dict[str, Any]:
    """Build Stash's ``FindFilterType`` (1-based page) from the query."""
    limit = query.pagination.limit
    result: dict[str, Any] = {
        "page": query.pagination.offset // limit + 1,
        "per_page": limit,
        "sort": query.order_by.field,
        "direction": query.order_by.direction.value,
    }
    if query.search:
        result["q"] = query.search
    return result


def to_variables(query: QueryDescriptor) -> dict[str, Any]:
    """Return the GraphQL variables for ``find<Entities>``."""
    criteria: dict[str, Any] = {}
    for predicate in query.filter_expression.predicates:
        criterion = to_criterion(predicate)
        if criterion is not None:
            criteria[predicate.field] = criterion

    return {
        "filter": find_filter(query),
        filter_argument(query.entity_type): criteria,
    }
