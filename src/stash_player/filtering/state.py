"""Immutable filter state and the pure transitions over it."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, Field, field_serializer, field_validator

from stash_player.filtering.descriptors import DescriptorRegistry, resolve_entity_type
from stash_player.filtering.values import FilterValue, SortSpec, coerce_value, is_empty
from stash_player.shared.enums import EntityType, SortDirection
from stash_player.shared.exceptions import InvalidPage, LockedField, TypeMismatch

logger = logging.getLogger(__name__)

DEFAULT_PER_PAGE = 24


class FilterState(BaseModel):
    """Active filters, sort and page of one list view.

    Never mutated: every ``FilterStore`` operation returns a new instance, and
    ``values``/``permanent`` are read-only mappings so derived states can share
    them safely. ``permanent`` holds the scope a view was opened with (e.g. one
    performer's scenes); it is always queried and never cleared.
    ``sort`` of ``None`` means the entity's default sort.
    """

    model_config = {"frozen": True}

    entity_type: EntityType
    values: Mapping[str, FilterValue] = Field(default_factory=dict, validate_default=True)
    permanent: Mapping[str, FilterValue] = Field(default_factory=dict, validate_default=True)
    sort: SortSpec | None = None
    page: int = 0
    per_page: int = DEFAULT_PER_PAGE
    search: str | None = None

    @field_validator("values", "permanent", mode="after")
    @classmethod
    def _read_only(cls, value: Mapping[str, FilterValue]) -> Mapping[str, FilterValue]:
        return MappingProxyType(dict(value))

    @field_serializer("values", "permanent")
    def _as_dict(self, value: Mapping[str, FilterValue]) -> dict[str, FilterValue]:
        return dict(value)


def parse_direction(direction: SortDirection | str) -> SortDirection:
    if isinstance(direction, SortDirection):
        return direction
    try:
        return SortDirection(str(direction).upper())
    except ValueError as exc:
        raise TypeMismatch(f"sort direction must be ASC or DESC, got {direction!r}") from exc


def _with_values(state: FilterState, values: dict[str, FilterValue]) -> FilterState:
    return state.model_copy(update={"values": MappingProxyType(values), "page": 0})


class FilterStore:
    """Validating state transitions for a given descriptor registry.

    Every method is pure. Changing what is filtered (values, search, page
    size) returns the view to the first page; changing the sort does not.
    """

    def __init__(
        self,
        registry: DescriptorRegistry,
        *,
        default_per_page: int = DEFAULT_PER_PAGE,
        max_per_page: int | None = None,
    ) -> None:
        if default_per_page < 1:
            raise ValueError("default_per_page must be >= 1")
        self.registry = registry
        self.default_per_page = default_per_page
        self.max_per_page = max_per_page

    def init(self, entity_type: EntityType | str, permanent: Mapping[str, Any] | None = None) -> FilterState:
        """Return the empty state for *entity_type*, optionally scoped by *permanent* filters.

        Raises:
            UnknownEntityType: The registry has no table for *entity_type*.
            UnknownFieldKey: A permanent key is not a field of the entity type.
            TypeMismatch: A permanent value does not fit its field's kind.
        """
        resolved = resolve_entity_type(entity_type)
        self.registry.get_descriptors(resolved)
        pinned = {
            key: coerce_value(self.registry.get(resolved, key), value) for key, value in (permanent or {}).items()
        }
        return FilterState(entity_type=resolved, permanent=pinned, per_page=self.default_per_page)

    def set_filter_value(self, state: FilterState, key: str, value: Any) -> FilterState:
        """Set ``values[key]`` and go back to page 0.

        Raises:
            UnknownFieldKey: *key* is not a field of the state's entity type.
            LockedField: *key* is pinned by a permanent filter.
            TypeMismatch: *value* does not fit the field's kind.
        """
        descriptor = self.registry.get(state.entity_type, key)
        self._check_unlocked(state, key)
        typed = coerce_value(descriptor, value)
        logger.debug("set %s.%s = %r", state.entity_type.value, key, typed)
        return _with_values(state, {**state.values, key: typed})

    def clear_filter_value(self, state: FilterState, key: str) -> FilterState:
        """Drop ``values[key]`` and go back to page 0; unchanged if it was not set."""
        self.registry.get(state.entity_type, key)
        self._check_unlocked(state, key)
        if key not in state.values:
            return state
        values = {k: v for k, v in state.values.items() if k != key}
        logger.debug("cleared %s.%s", state.entity_type.value, key)
        return _with_values(state, values)

    def clear_filters(self, state: FilterState) -> FilterState:
        """Drop every user filter; permanent filters and search text stay."""
        return _with_values(state, {})

    def set_sort(self, state: FilterState, key: str, direction: SortDirection | str = SortDirection.DESC) -> FilterState:
        """Sort by *key*; the current page is kept.

        Raises:
            UnknownFieldKey: *key* is not a field of the state's entity type.
            NotSortable: the field is filter-only.
        """
        self.registry.sortable(state.entity_type, key)
        spec = SortSpec(key=key, direction=parse_direction(direction))
        return state.model_copy(update={"sort": spec})

    def toggle_sort(self, state: FilterState, key: str) -> FilterState:
        """Pick *key* ascending, or flip the direction if it is already the sort key."""
        self.registry.sortable(state.entity_type, key)
        current = self.effective_sort(state)
        if current.key == key:
            direction = current.direction.flipped()
        else:
            direction = SortDirection.ASC
        return state.model_copy(update={"sort": SortSpec(key=key, direction=direction)})

    def set_page(self, state: FilterState, page: int) -> FilterState:
        self._check_page(page)
        return state.model_copy(update={"page": page})

    def set_per_page(self, state: FilterState, per_page: int) -> FilterState:
        self._check_per_page(per_page)
        return state.model_copy(update={"per_page": per_page, "page": 0})

    def set_search(self, state: FilterState, text: str | None) -> FilterState:
        if text is not None and not isinstance(text, str):
            raise TypeMismatch(f"search expects text, got {type(text).__name__}")
        search = text.strip() if text and text.strip() else None
        return state.model_copy(update={"search": search, "page": 0})

    def effective_sort(self, state: FilterState) -> SortSpec:
        return state.sort or self.registry.default_sort(state.entity_type)

    def validate(self, state: FilterState) -> FilterState:
        """Check a state built outside the store; returns it unchanged if valid.

        Applies the same rules as the transitions, so a state that passes
        could have been reached through them.

        Raises:
            UnknownEntityType, UnknownFieldKey, TypeMismatch, LockedField,
            NotSortable, InvalidPage: as the matching transition would.
        """
        entity_type = state.entity_type
        self.registry.get_descriptors(entity_type)
        for key, value in state.permanent.items():
            coerce_value(self.registry.get(entity_type, key), value)
        for key, value in state.values.items():
            descriptor = self.registry.get(entity_type, key)
            self._check_unlocked(state, key)
            coerce_value(descriptor, value)
        if state.sort is not None:
            self.registry.sortable(entity_type, state.sort.key)
        self._check_page(state.page)
        self._check_per_page(state.per_page)
        if state.search is not None and (not state.search.strip() or state.search != state.search.strip()):
            raise TypeMismatch(f"search must be trimmed, non-blank text, got {state.search!r}")
        return state

    def _check_unlocked(self, state: FilterState, key: str) -> None:
        if key in state.permanent:
            raise LockedField(f"{key!r} is a permanent filter of this view")

    def _check_page(self, page: Any) -> None:
        if isinstance(page, bool) or not isinstance(page, int):
            raise InvalidPage(f"page must be an integer, got {page!r}")
        if page < 0:
            raise InvalidPage(f"page must be >= 0, got {page}")

    def _check_per_page(self, per_page: Any) -> None:
        if isinstance(per_page, bool) or not isinstance(per_page, int) or per_page < 1:
            raise InvalidPage(f"per_page must be a positive integer, got {per_page!r}")
        if self.max_per_page is not None and per_page > self.max_per_page:
            raise InvalidPage(f"per_page {per_page} exceeds the limit of {self.max_per_page}")


def has_active_filters(state: FilterState) -> bool:
    """True if any user-set value actually constrains the listing.

    Permanent filters do not count: they are the view's scope, not a choice
    the user can undo.
    """
    if state.search:
        return True
    return any(not is_empty(value) for value in state.values.values())
