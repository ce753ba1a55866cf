"""Hierarchical exception types for Stash Player."""

from __future__ import annotations


class StashPlayerError(Exception):
    """Base exception for all Stash Player errors."""


# ── Filtering ──────────────────────────────────────────────────


class FilterError(StashPlayerError):
    """Invalid filter, sort or pagination input from a caller."""


class UnknownEntityType(FilterError):
    """Entity type is not one of scene, performer, studio or tag."""


class UnknownFieldKey(FilterError):
    """Field key is not declared for the entity type."""


class TypeMismatch(FilterError):
    """Filter value shape does not match the field's kind."""


class NotSortable(FilterError):
    """Field cannot be used as a sort key."""


class InvalidPage(FilterError):
    """Page index or page size out of range."""


class LockedField(FilterError):
    """Field is pinned by a permanent filter and cannot be changed or cleared."""


# ── Upstream ───────────────────────────────────────────────────


class StashError(StashPlayerError):
    """Stash GraphQL request failed."""
