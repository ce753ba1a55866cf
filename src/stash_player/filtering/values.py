"""Typed filter values and the shape check that admits them into a state."""

from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Union

from pydantic import BaseModel, model_validator

from stash_player.shared.enums import FieldKind, SortDirection
from stash_player.shared.exceptions import TypeMismatch

if TYPE_CHECKING:
    from stash_player.filtering.descriptors import FieldDescriptor


class NumericRange(BaseModel):
    """Inclusive numeric bounds; ``None`` leaves that side open."""

    model_config = {"frozen": True, "strict": True}

    min: int | float | None = None
    max: int | float | None = None

    @model_validator(mode="after")
    def _ordered(self) -> NumericRange:
        for bound in (self.min, self.max):
            if bound is not None and not math.isfinite(bound):
                raise ValueError(f"bound {bound} is not a finite number")
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"min {self.min} exceeds max {self.max}")
        return self

    @property
    def is_open(self) -> bool:
        return self.min is None and self.max is None


class DateRange(BaseModel):
    """Inclusive calendar-date bounds; ``None`` leaves that side open."""

    model_config = {"frozen": True, "strict": True}

    min: date | None = None
    max: date | None = None

    @model_validator(mode="after")
    def _ordered(self) -> DateRange:
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"min {self.min} is after max {self.max}")
        return self

    @property
    def is_open(self) -> bool:
        return self.min is None and self.max is None


class SortSpec(BaseModel):
    """Sort key plus direction."""

    model_config = {"frozen": True}

    key: str
    direction: SortDirection = SortDirection.DESC


FilterValue = Union[str, bool, NumericRange, DateRange, tuple[str, ...]]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_date(value: Any) -> bool:
    return isinstance(value, date) and not isinstance(value, datetime)


def _bounds(descriptor: FieldDescriptor, value: Any) -> tuple[Any, Any]:
    if not isinstance(value, Mapping):
        raise TypeMismatch(f"{descriptor.key} expects a range, got {type(value).__name__}")
    extra = set(value) - {"min", "max"}
    if extra:
        raise TypeMismatch(f"{descriptor.key} range has unexpected keys: {sorted(extra)}")
    return value.get("min"), value.get("max")


def _whole(descriptor: FieldDescriptor, value: NumericRange) -> NumericRange:
    # Integer criteria: bounds must land on whole numbers once scaled.
    if not descriptor.integer:
        return value
    for bound in (value.min, value.max):
        if bound is None:
            continue
        scaled = bound * descriptor.scale
        if isinstance(scaled, float) and not scaled.is_integer():
            raise TypeMismatch(f"{descriptor.key} bound {bound!r} does not map to a whole number")
    return value


def _ids(descriptor: FieldDescriptor, value: Any) -> tuple[str, ...]:
    if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, (list, tuple, set, frozenset)):
        raise TypeMismatch(f"{descriptor.key} expects a list of ids, got {type(value).__name__}")
    ids: set[str] = set()
    for item in value:
        if isinstance(item, bool) or not isinstance(item, (int, str)):
            raise TypeMismatch(f"{descriptor.key} ids must be integers or digit strings, got {item!r}")
        text = str(item).strip()
        if not (text.isascii() and text.isdigit()):
            raise TypeMismatch(f"{descriptor.key} has a malformed id {item!r}")
        ids.add(str(int(text)))
    return tuple(sorted(ids, key=int))


def coerce_value(descriptor: FieldDescriptor, value: Any) -> FilterValue:
    """Validate *value* against the descriptor's kind and return its typed form.

    Range kinds accept their model or a ``{"min": .., "max": ..}`` mapping.
    Id lists accept any sequence of ids and come back sorted and deduplicated.
    Nothing else is converted: a string for a numeric range, ``"TRUE"`` for a
    boolean or an unlisted option for a select all raise ``TypeMismatch``.
    Numeric bounds must be finite, and whole numbers after scaling for
    integer fields.
    """
    kind = descriptor.kind

    if kind is FieldKind.TEXT:
        if not isinstance(value, str):
            raise TypeMismatch(f"{descriptor.key} expects text, got {type(value).__name__}")
        return value

    if kind is FieldKind.BOOLEAN:
        if not isinstance(value, bool):
            raise TypeMismatch(f"{descriptor.key} expects a boolean, got {type(value).__name__}")
        return value

    if kind is FieldKind.SELECT:
        if not isinstance(value, str):
            raise TypeMismatch(f"{descriptor.key} expects one of its options, got {type(value).__name__}")
        if value not in descriptor.enum_values:
            raise TypeMismatch(f"{descriptor.key} has no option {value!r}")
        return value

    if kind is FieldKind.NUMERIC_RANGE:
        if isinstance(value, NumericRange):
            return _whole(descriptor, value)
        low, high = _bounds(descriptor, value)
        for bound in (low, high):
            if bound is not None and not _is_number(bound):
                raise TypeMismatch(f"{descriptor.key} bounds must be numbers, got {bound!r}")
        try:
            numeric = NumericRange(min=low, max=high)
        except ValueError as exc:
            raise TypeMismatch(f"{descriptor.key}: {exc}") from exc
        return _whole(descriptor, numeric)

    if kind is FieldKind.DATE_RANGE:
        if isinstance(value, DateRange):
            return value
        low, high = _bounds(descriptor, value)
        for bound in (low, high):
            if bound is not None and not _is_date(bound):
                raise TypeMismatch(f"{descriptor.key} bounds must be dates, got {bound!r}")
        try:
            return DateRange(min=low, max=high)
        except ValueError as exc:
            raise TypeMismatch(f"{descriptor.key}: {exc}") from exc

    if kind is FieldKind.IDS:
        return _ids(descriptor, value)

    raise TypeMismatch(f"{descriptor.key} has unsupported kind {kind!r}")  # pragma: no cover


def is_empty(value: FilterValue) -> bool:
    """True for values that constrain nothing (blank text, fully open ranges, no ids)."""
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, tuple):
        return not value
    if isinstance(value, (NumericRange, DateRange)):
        return value.is_open
    return False
