"""Frozen Pydantic models shared by the Stash collaborators and the API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class FindResult(BaseModel):
    """One page of a ``find<Entities>`` response plus the total match count."""

    model_config = {"frozen": True}

    count: int = 0
    items: list[dict[str, Any]] = Field(default_factory=list)
