"""Per-experience gamepass lookups.

`resolve_children` never raises for upstream problems. It returns either
`ChildrenFetched` or `FanoutFailed`, and the aggregator decides what a
failure means for the totals.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Union

from .api_client import RobloxClient
from .config import Settings
from .errors import UpstreamError, UpstreamFanoutError
from .models import Item, SubItem
from .pagination import paginate
from .strategies import FanoutSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChildrenFetched:
    item: Item
    children: list[SubItem] = field(default_factory=list)


@dataclass(frozen=True)
class FanoutFailed:
    item: Item
    reason: str


FanoutResult = Union[ChildrenFetched, FanoutFailed]


def fetch_children(
    client: RobloxClient, source: FanoutSource, item: Item, settings: Settings
) -> list[SubItem]:
    """Fetch the gamepasses of one experience.

    Raises:
        UpstreamFanoutError if the lookup fails or the item has no usable key.
    """
    key = source.key_for(item)
    if key is None:
        raise UpstreamFanoutError(f"experience {item.id} has no {source.key}")

    url = source.url.format(key=key)
    try:
        if source.paginated:
            records = paginate(
                client,
                url,
                source.params,
                items_key=source.items_key,
                cursor_key=source.cursor_key,
                max_pages=settings.max_pages,
                delay=settings.page_delay_seconds,
            ).items
        else:
            records = client.get_json(url, source.params).get(source.items_key) or []
    except UpstreamError as e:
        raise UpstreamFanoutError.wrap(e) from e

    if not isinstance(records, list):
        raise UpstreamFanoutError(f"Unexpected {source.items_key!r} payload from {url}", url=url)

    children = []
    try:
        for record in records:
            child = source.field_map.to_sub_item(record)
            if child is not None:
                children.append(child)
    except (TypeError, ValueError) as e:
        # pydantic.ValidationError is a ValueError.
        raise UpstreamFanoutError(f"Malformed gamepass record from {url}: {e}", url=url) from e
    return children


def resolve_children(
    client: RobloxClient, source: FanoutSource, item: Item, settings: Settings
) -> FanoutResult:
    logger.info("[Fanout] Experience %s (%s)", item.id, item.display_name)
    try:
        children = fetch_children(client, source, item, settings)
    except UpstreamFanoutError as e:
        logger.error(
            "[Fanout] Gamepass lookup failed for %s (id %s): %s", item.display_name, item.id, e
        )
        return FanoutFailed(item=item, reason=str(e))

    if children:
        logger.info("[Fanout]   %d gamepasses found", len(children))
    else:
        logger.info("[Fanout]   no gamepasses")
    return ChildrenFetched(item=item, children=children)
