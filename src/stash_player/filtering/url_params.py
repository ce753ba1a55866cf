"""Encode a ``FilterState`` as flat query-string parameters and back.

Layout::

    title=foo&performerCount_min=2&organized=true&date_max=2024-01-31
    &tags=3,17&q=beach&sort=title&dir=desc&page=3&per_page=48

``page`` is 1-based in URLs. Id lists are comma separated. Permanent filters
belong to the view, not the URL: they are never encoded, and decoding takes
them as an argument. Decoding replays every value through the ``FilterStore``
so bad input raises the same errors as direct calls.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from typing import Any

from stash_player.filtering.descriptors import DescriptorRegistry, FieldDescriptor
from stash_player.filtering.state import DEFAULT_PER_PAGE, FilterState, FilterStore, parse_direction
from stash_player.filtering.values import DateRange, NumericRange, is_empty
from stash_player.shared.enums import EntityType, FieldKind
from stash_player.shared.exceptions import InvalidPage, TypeMismatch, UnknownFieldKey

RESERVED = frozenset({"sort", "dir", "page", "per_page", "q"})
RANGE_KINDS = (FieldKind.NUMERIC_RANGE, FieldKind.DATE_RANGE)
_TRUE = {"true", "1", "yes"}
_FALSE = {"false", "0", "no"}


def _format_bound(bound: Any) -> str:
    if isinstance(bound, date):
        return bound.isoformat()
    return str(bound)


def encode_state(
    state: FilterState,
    registry: DescriptorRegistry,
    *,
    default_per_page: int = DEFAULT_PER_PAGE,
) -> dict[str, str]:
    """Return the parameters describing *state*, in registry order."""
    params: dict[str, str] = {}
    for descriptor in registry.get_descriptors(state.entity_type):
        value = state.values.get(descriptor.key)
        if value is None or is_empty(value):
            continue
        if isinstance(value, (NumericRange, DateRange)):
            if value.min is not None:
                params[f"{descriptor.key}_min"] = _format_bound(value.min)
            if value.max is not None:
                params[f"{descriptor.key}_max"] = _format_bound(value.max)
        elif isinstance(value, bool):
            params[descriptor.key] = "true" if value else "false"
        elif isinstance(value, tuple):
            params[descriptor.key] = ",".join(value)
        else:
            params[descriptor.key] = value

    if state.search:
        params["q"] = state.search
    if state.sort is not None:
        params["sort"] = state.sort.key
        params["dir"] = state.sort.direction.value.lower()
    if state.page:
        params["page"] = str(state.page + 1)
    if state.per_page != default_per_page:
        params["per_page"] = str(state.per_page)
    return params


def _parse_number(descriptor: FieldDescriptor, raw: str) -> int | float:
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        return float(raw)
    except ValueError as exc:
        raise TypeMismatch(f"{descriptor.key} bound {raw!r} is not a number") from exc


def _parse_date(descriptor: FieldDescriptor, raw: str) -> date:
    try:
        return date.fromisoformat(raw)
    except ValueError as exc:
        raise TypeMismatch(f"{descriptor.key} bound {raw!r} is not an ISO date") from exc


def _parse_bound(descriptor: FieldDescriptor, raw: str | None) -> Any:
    if raw is None or not raw.strip():
        return None
    if descriptor.kind is FieldKind.DATE_RANGE:
        return _parse_date(descriptor, raw.strip())
    return _parse_number(descriptor, raw.strip())


def _parse_scalar(descriptor: FieldDescriptor, raw: str) -> Any:
    if descriptor.kind is FieldKind.BOOLEAN:
        lowered = raw.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise TypeMismatch(f"{descriptor.key} expects true or false, got {raw!r}")
    if descriptor.kind is FieldKind.IDS:
        return [part.strip() for part in raw.split(",") if part.strip()]
    return raw


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError as exc:
        raise InvalidPage(f"{name} must be an integer, got {raw!r}") from exc


def decode_state(
    params: Mapping[str, str],
    entity_type: EntityType | str,
    store: FilterStore,
    *,
    permanent: Mapping[str, Any] | None = None,
) -> FilterState:
    """Rebuild a state from query-string parameters on top of *permanent* filters.

    Raises:
        UnknownFieldKey: A parameter names no field of *entity_type*.
        LockedField: A parameter targets a permanent filter.
        TypeMismatch: A value cannot be parsed for its field's kind.
        NotSortable: ``sort`` names a filter-only field.
        InvalidPage: ``page`` or ``per_page`` is not a positive integer.
    """
    registry = store.registry
    state = store.init(entity_type, permanent)

    scalars: dict[str, str] = {}
    bounds: dict[str, dict[str, str]] = {}
    for name, raw in params.items():
        if name in RESERVED or raw is None or not str(raw).strip():
            continue
        key, _, side = name.rpartition("_")
        if side in ("min", "max") and key:
            descriptor = registry.get(state.entity_type, key)
            if descriptor.kind not in RANGE_KINDS:
                raise UnknownFieldKey(f"{key!r} is not a range field")
            bounds.setdefault(key, {})[side] = raw
        else:
            registry.get(state.entity_type, name)
            scalars[name] = raw

    for descriptor in registry.get_descriptors(state.entity_type):
        if descriptor.key in bounds:
            pair = bounds[descriptor.key]
            value = {
                "min": _parse_bound(descriptor, pair.get("min")),
                "max": _parse_bound(descriptor, pair.get("max")),
            }
            state = store.set_filter_value(state, descriptor.key, value)
        elif descriptor.key in scalars:
            state = store.set_filter_value(state, descriptor.key, _parse_scalar(descriptor, scalars[descriptor.key]))

    if params.get("q"):
        state = store.set_search(state, params["q"])

    if params.get("per_page"):
        state = store.set_per_page(state, _parse_int("per_page", params["per_page"]))

    sort_key = params.get("sort")
    direction = params.get("dir")
    if sort_key or direction:
        key = sort_key or store.effective_sort(state).key
        state = store.set_sort(state, key, parse_direction(direction) if direction else store.effective_sort(state).direction)

    if params.get("page"):
        page = _parse_int("page", params["page"])
        if page < 1:
            raise InvalidPage(f"page must be >= 1, got {page}")
        state = store.set_page(state, page - 1)

    return state
