"""Control surface: named actions over one list view's filter state.

Each successful action replaces the state and rebuilds the query; when the
query changed, every subscriber receives the new ``QueryDescriptor``. A failed
action raises before anything is replaced, so subscribers only ever see valid
queries.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from stash_player.filtering.descriptors import DescriptorRegistry, FieldDescriptor
from stash_player.filtering.query import QueryDescriptor, build_query
from stash_player.filtering.state import FilterState, FilterStore, has_active_filters
from stash_player.shared.enums import EntityType, SortDirection
from stash_player.shared.exceptions import LockedField

logger = logging.getLogger(__name__)

Subscriber = Callable[[QueryDescriptor], None]


class FilterController:
    """Holds the current state of one list view and publishes its query."""

    def __init__(
        self,
        entity_type: EntityType | str,
        registry: DescriptorRegistry,
        *,
        store: FilterStore | None = None,
        state: FilterState | None = None,
        permanent: Mapping[str, Any] | None = None,
    ) -> None:
        self._store = store or FilterStore(registry)
        self._registry = self._store.registry
        if state is not None:
            self._state = self._store.validate(state)
        else:
            self._state = self._store.init(entity_type, permanent)
        self._query = build_query(self._state, self._registry)
        self._subscribers: list[Subscriber] = []

    @property
    def state(self) -> FilterState:
        return self._state

    @property
    def query(self) -> QueryDescriptor:
        return self._query

    @property
    def descriptors(self) -> tuple[FieldDescriptor, ...]:
        return self._registry.get_descriptors(self._state.entity_type)

    @property
    def has_active_filters(self) -> bool:
        return has_active_filters(self._state)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register *callback* for query changes; returns a function that removes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # ── Actions ────────────────────────────────────────────────

    def apply_filter(self, key: str, value: Any) -> QueryDescriptor:
        return self._commit(self._store.set_filter_value(self._state, key, value))

    def clear_filter(self, key: str) -> QueryDescriptor:
        return self._commit(self._store.clear_filter_value(self._state, key))

    def clear_all(self) -> QueryDescriptor:
        return self._commit(self._store.clear_filters(self._state))

    def change_sort(self, key: str, direction: SortDirection | str = SortDirection.DESC) -> QueryDescriptor:
        return self._commit(self._store.set_sort(self._state, key, direction))

    def toggle_sort(self, key: str) -> QueryDescriptor:
        return self._commit(self._store.toggle_sort(self._state, key))

    def go_to_page(self, page: int) -> QueryDescriptor:
        return self._commit(self._store.set_page(self._state, page))

    def change_page_size(self, per_page: int) -> QueryDescriptor:
        return self._commit(self._store.set_per_page(self._state, per_page))

    def search(self, text: str | None) -> QueryDescriptor:
        return self._commit(self._store.set_search(self._state, text))

    def replace_state(self, state: FilterState) -> QueryDescriptor:
        """Swap in a state built elsewhere, e.g. decoded from a URL.

        The state is checked by the store first and must keep this view's
        permanent filters.

        Raises:
            ValueError: *state* is for another entity type.
            LockedField: *state* changes the permanent filters.
            FilterError: *state* fails a store check.
        """
        if state.entity_type is not self._state.entity_type:
            raise ValueError(f"cannot replace a {self._state.entity_type.value} state with a {state.entity_type.value} one")
        if state.permanent != self._state.permanent:
            raise LockedField("replacement state changes the permanent filters")
        return self._commit(self._store.validate(state))

    def _commit(self, state: FilterState) -> QueryDescriptor:
        query = build_query(state, self._registry)
        self._state = state
        if query == self._query:
            return query
        self._query = query
        logger.debug("%s query changed: %s", state.entity_type.value, query)
        for callback in list(self._subscribers):
            callback(query)
        return query
