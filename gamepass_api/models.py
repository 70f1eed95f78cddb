"""Pydantic models for gamepass-api.

The upstream payloads differ per endpoint, so they are first mapped onto
`Item` / `SubItem`. The response models below are the contract seen by
callers (usually a Roblox game script), hence the camelCase field names.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

UNKNOWN_NAME = "Unknown"


class Item(BaseModel):
    """An experience discovered by a listing.

    `id` is the universe id; `place_id` is the experience's root place when
    the listing exposes one. `name` is None until resolved.
    """

    id: int
    name: str | None = None
    place_id: int | None = None

    @property
    def display_name(self) -> str:
        return self.name or UNKNOWN_NAME


class SubItem(BaseModel):
    """A gamepass attached to an experience."""

    id: int
    name: str = UNKNOWN_NAME


class AggregateEntry(BaseModel):
    """One experience joined with one of its gamepasses."""

    experienceId: int
    experienceName: str
    placeId: int | None = None
    gamepassId: int
    gamepassName: str


class Summary(BaseModel):
    itemsProcessed: int = 0
    itemsWithoutChildren: int = 0
    failedItems: int = 0
    totalChildren: int = 0


class GamepassListResponse(BaseModel):
    """Response of `GET /api/gamepasses/{userId}`."""

    ok: Literal[True] = True
    userId: int
    count: int = Field(ge=0)
    items: list[AggregateEntry]
    summary: Summary


class OwnershipResponse(BaseModel):
    """Response of `GET /check`."""

    owns: bool


class OwnedGamepass(BaseModel):
    id: int
    name: str


class OwnedListResponse(BaseModel):
    """Response of `GET /owned`."""

    ok: Literal[True] = True
    userId: int
    count: int = Field(ge=0)
    items: list[OwnedGamepass]
    failed: list[int] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    ok: Literal[False] = False
    message: str
    detail: str | None = None


class HealthResponse(BaseModel):
    message: str
    usage: str
