"""Upstream endpoint mappings for the gamepass pipeline.

A `PipelineStrategy` names the listing endpoint(s) that discover a user's
experiences, the per-experience endpoint that lists gamepasses, and how ids
and names are read out of each payload. The pipeline itself is generic; only
these objects know about concrete Roblox URLs.

Two strategies are built in:

- ``games`` (default): public games listing of the user, plus the "All"
  access filter when a session cookie is configured. Gamepasses come from
  the games API keyed by universe id, paginated.
- ``creations``: the develop API's user experiences listing. Gamepasses come
  from the economy API keyed by the root place id, unpaginated.

Only the root place of each experience is considered; other places of the
same universe share its gamepasses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .models import Item, SubItem, UNKNOWN_NAME

GAMES_API = "https://games.roblox.com"
DEVELOP_API = "https://develop.roblox.com"
ECONOMY_API = "https://economy.roblox.com"
INVENTORY_API = "https://inventory.roblox.com"


def pluck(record: dict[str, Any], path: str) -> Any:
    """Read a dotted path such as ``rootPlace.id`` from a nested dict."""
    value: Any = record
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def _as_id(value: Any) -> int | None:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


@dataclass(frozen=True)
class FieldMap:
    """Where an upstream record keeps its id, name and root place id.

    Records missing any of the `required` paths are dropped.
    """

    id: str = "id"
    name: str = "name"
    place: str | None = None
    required: tuple[str, ...] = ()

    def to_item(self, record: dict[str, Any]) -> Item | None:
        if any(not pluck(record, path) for path in self.required):
            return None
        item_id = _as_id(pluck(record, self.id))
        if item_id is None:
            return None
        name = pluck(record, self.name)
        place_id = _as_id(pluck(record, self.place)) if self.place else None
        return Item(id=item_id, name=name or None, place_id=place_id)

    def to_sub_item(self, record: dict[str, Any]) -> SubItem | None:
        sub_id = _as_id(pluck(record, self.id))
        if sub_id is None:
            return None
        return SubItem(id=sub_id, name=pluck(record, self.name) or UNKNOWN_NAME)


@dataclass(frozen=True)
class ListingSource:
    """A paginated listing of a user's experiences.

    `url` and `params` may contain ``{user_id}`` and ``{limit}``.
    """

    url: str
    params: dict[str, str] = field(default_factory=dict)
    field_map: FieldMap = FieldMap()
    items_key: str = "data"
    cursor_key: str = "nextPageCursor"
    requires_credential: bool = False

    def render(self, user_id: int, limit: int) -> tuple[str, dict[str, str]]:
        url = self.url.format(user_id=user_id, limit=limit)
        params = {k: v.format(user_id=user_id, limit=limit) for k, v in self.params.items()}
        return url, params


@dataclass(frozen=True)
class FanoutSource:
    """Per-experience gamepass listing.

    `key` picks the `Item` attribute substituted for ``{key}`` in `url`:
    ``id`` (universe id) or ``place_id``.
    """

    url: str
    key: str = "id"
    params: dict[str, str] = field(default_factory=dict)
    field_map: FieldMap = FieldMap()
    items_key: str = "data"
    cursor_key: str = "nextPageCursor"
    paginated: bool = True

    def key_for(self, item: Item) -> int | None:
        return getattr(item, self.key)


@dataclass(frozen=True)
class NameLookup:
    """Batch endpoint resolving experience names from universe ids."""

    url: str
    ids_param: str = "universeIds"
    items_key: str = "data"
    field_map: FieldMap = FieldMap()
    batch_size: int = 50


@dataclass(frozen=True)
class PipelineStrategy:
    name: str
    listings: tuple[ListingSource, ...]
    fanout: FanoutSource
    name_lookup: NameLookup | None = None


GAMES_STRATEGY = PipelineStrategy(
    name="games",
    listings=(
        ListingSource(
            url=GAMES_API + "/v2/users/{user_id}/games",
            params={"accessFilter": "Public", "limit": "{limit}", "sortOrder": "Asc"},
            field_map=FieldMap(place="rootPlace.id"),
        ),
        ListingSource(
            url=GAMES_API + "/v2/users/{user_id}/games",
            params={"accessFilter": "All", "limit": "{limit}", "sortOrder": "Asc"},
            field_map=FieldMap(place="rootPlace.id"),
            requires_credential=True,
        ),
    ),
    fanout=FanoutSource(
        url=GAMES_API + "/v1/games/{key}/game-passes",
        key="id",
        params={"limit": "100", "sortOrder": "Asc"},
    ),
    name_lookup=NameLookup(url=GAMES_API + "/v1/games"),
)

CREATIONS_STRATEGY = PipelineStrategy(
    name="creations",
    listings=(
        ListingSource(
            url=DEVELOP_API + "/v1/user/experiences",
            params={
                "userId": "{user_id}",
                "isArchived": "false",
                "limit": "{limit}",
                "sortOrder": "Asc",
            },
            field_map=FieldMap(place="placeId", required=("gameId", "placeId")),
        ),
    ),
    fanout=FanoutSource(
        url=ECONOMY_API + "/v1/assets/{key}/game-pass",
        key="place_id",
        paginated=False,
    ),
    name_lookup=NameLookup(url=GAMES_API + "/v1/games"),
)

STRATEGIES: dict[str, PipelineStrategy] = {
    s.name: s for s in (GAMES_STRATEGY, CREATIONS_STRATEGY)
}


def get_strategy(name: str) -> PipelineStrategy:
    """Return the built-in strategy called `name`.

    Raises:
        KeyError for unknown names.
    """
    try:
        return STRATEGIES[name]
    except KeyError:
        raise KeyError(f"Unknown pipeline strategy {name!r}; choose from {sorted(STRATEGIES)}") from None
