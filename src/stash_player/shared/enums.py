"""Domain enumerations used across all modules."""

from __future__ import annotations

from enum import Enum, unique


@unique
class EntityType(str, Enum):
    """Catalog object kinds exposed by the Stash server."""

    SCENE = "scene"
    PERFORMER = "performer"
    STUDIO = "studio"
    TAG = "tag"


@unique
class FieldKind(str, Enum):
    """Value shapes a filter field accepts."""

    TEXT = "text"
    NUMERIC_RANGE = "numericRange"
    DATE_RANGE = "dateRange"
    SELECT = "select"
    BOOLEAN = "boolean"
    IDS = "ids"


@unique
class SortDirection(str, Enum):
    """Sort order, spelled the way Stash's ``SortDirectionEnum`` spells it."""

    ASC = "ASC"
    DESC = "DESC"

    def flipped(self) -> SortDirection:
        return SortDirection.DESC if self is SortDirection.ASC else SortDirection.ASC


@unique
class CriterionModifier(str, Enum):
    """Subset of Stash's ``CriterionModifier`` emitted by the serializer."""

    EQUALS = "EQUALS"
    INCLUDES = "INCLUDES"
    GREATER_THAN = "GREATER_THAN"
    LESS_THAN = "LESS_THAN"
    BETWEEN = "BETWEEN"
