"""Query builder: turns a ``FilterState`` into an immutable ``QueryDescriptor``."""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Literal, Union

from pydantic import BaseModel

from stash_player.filtering.descriptors import DescriptorRegistry, FieldDescriptor
from stash_player.filtering.state import FilterState
from stash_player.filtering.values import DateRange, FilterValue, NumericRange, is_empty
from stash_player.shared.enums import EntityType, FieldKind, SortDirection
from stash_player.shared.exceptions import TypeMismatch, UnknownFieldKey


class Contains(BaseModel):
    """Case-insensitive substring match."""

    model_config = {"frozen": True}

    op: Literal["contains"] = "contains"
    field: str
    value: str


class Between(BaseModel):
    """Inclusive bounds; a ``None`` side is open."""

    model_config = {"frozen": True}

    op: Literal["between"] = "between"
    field: str
    min: int | float | datetime | date | None = None
    max: int | float | datetime | date | None = None


class Equals(BaseModel):
    model_config = {"frozen": True}

    op: Literal["equals"] = "equals"
    field: str
    value: str | bool


class Includes(BaseModel):
    """Related entity id is one of ``values``."""

    model_config = {"frozen": True}

    op: Literal["includes"] = "includes"
    field: str
    values: tuple[str, ...]


Predicate = Union[Contains, Between, Equals, Includes]


class AndExpression(BaseModel):
    """Conjunction of predicates. No predicates means no filtering."""

    model_config = {"frozen": True}

    predicates: tuple[Predicate, ...] = ()

    @property
    def is_always_true(self) -> bool:
        return not self.predicates


class OrderBy(BaseModel):
    model_config = {"frozen": True}

    field: str
    direction: SortDirection


class Pagination(BaseModel):
    model_config = {"frozen": True}

    offset: int
    limit: int


class QueryDescriptor(BaseModel):
    """Everything the network layer needs to fetch one page of a list."""

    model_config = {"frozen": True}

    entity_type: EntityType
    filter_expression: AndExpression
    order_by: OrderBy
    pagination: Pagination
    search: str | None = None


def _scaled(bound: int | float | None, scale: int) -> int | float | None:
    if bound is None or scale == 1:
        return bound
    return bound * scale


def _day_start(day: date | None) -> datetime | None:
    return None if day is None else datetime.combine(day, time.min)


def _day_end(day: date | None) -> datetime | None:
    return None if day is None else datetime.combine(day, time(23, 59, 59))


def to_predicate(descriptor: FieldDescriptor, value: FilterValue) -> Predicate:
    """Translate one typed value into a predicate on the upstream field."""
    kind = descriptor.kind
    if kind is FieldKind.TEXT and isinstance(value, str):
        return Contains(field=descriptor.field, value=value.strip())
    if kind is FieldKind.NUMERIC_RANGE and isinstance(value, NumericRange):
        return Between(
            field=descriptor.field,
            min=_scaled(value.min, descriptor.scale),
            max=_scaled(value.max, descriptor.scale),
        )
    if kind is FieldKind.DATE_RANGE and isinstance(value, DateRange):
        if descriptor.timestamp:
            return Between(field=descriptor.field, min=_day_start(value.min), max=_day_end(value.max))
        return Between(field=descriptor.field, min=value.min, max=value.max)
    if kind in (FieldKind.SELECT, FieldKind.BOOLEAN) and isinstance(value, (str, bool)):
        return Equals(field=descriptor.field, value=value)
    if kind is FieldKind.IDS and isinstance(value, tuple):
        return Includes(field=descriptor.field, values=value)
    raise TypeMismatch(f"{descriptor.key} holds {type(value).__name__} but is a {kind.value} field")


def build_query(state: FilterState, registry: DescriptorRegistry) -> QueryDescriptor:
    """Build the query for *state*.

    Permanent filters are always included. Predicates follow registry order,
    not the order filters were set in, so structurally equal states always
    give equal descriptors.

    Raises:
        UnknownFieldKey: The state holds a key the registry does not know.
    """
    descriptors = registry.get_descriptors(state.entity_type)
    active = {**state.values, **state.permanent}
    unknown = set(active) - {descriptor.key for descriptor in descriptors}
    if unknown:
        raise UnknownFieldKey(f"{state.entity_type.value} has no fields {sorted(unknown)}")

    predicates = [
        to_predicate(descriptor, active[descriptor.key])
        for descriptor in descriptors
        if descriptor.key in active and not is_empty(active[descriptor.key])
    ]

    sort = state.sort or registry.default_sort(state.entity_type)
    sort_descriptor = registry.sortable(state.entity_type, sort.key)

    return QueryDescriptor(
        entity_type=state.entity_type,
        filter_expression=AndExpression(predicates=tuple(predicates)),
        order_by=OrderBy(field=sort_descriptor.upstream_sort, direction=sort.direction),
        pagination=Pagination(offset=state.page * state.per_page, limit=state.per_page),
        search=state.search,
    )
