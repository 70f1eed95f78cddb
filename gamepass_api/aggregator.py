"""Merging listings and flattening fan-out results."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from .api_client import RobloxClient
from .errors import UpstreamError, UpstreamNameResolutionError
from .fanout import FanoutFailed, FanoutResult
from .models import AggregateEntry, Item, Summary
from .strategies import NameLookup

logger = logging.getLogger(__name__)


@dataclass
class Aggregate:
    entries: list[AggregateEntry] = field(default_factory=list)
    summary: Summary = field(default_factory=Summary)


def merge_listings(listings: Iterable[Sequence[Item]]) -> list[Item]:
    """Concatenate listings, keeping only the first record seen per id."""
    seen: set[int] = set()
    merged: list[Item] = []
    for listing in listings:
        for item in listing:
            if item.id in seen:
                continue
            seen.add(item.id)
            merged.append(item)
    return merged


def fetch_names(client: RobloxClient, lookup: NameLookup, ids: Sequence[int]) -> dict[int, str]:
    """Look up experience names in batches of `lookup.batch_size`.

    Raises:
        UpstreamNameResolutionError if any batch fails.
    """
    names: dict[int, str] = {}
    for start in range(0, len(ids), lookup.batch_size):
        chunk = ids[start:start + lookup.batch_size]
        params = {lookup.ids_param: ",".join(str(i) for i in chunk)}
        try:
            payload = client.get_json(lookup.url, params)
        except UpstreamError as e:
            raise UpstreamNameResolutionError.wrap(e) from e
        records = payload.get(lookup.items_key) or []
        if not isinstance(records, list):
            raise UpstreamNameResolutionError(
                f"Unexpected {lookup.items_key!r} payload from {lookup.url}", url=lookup.url
            )
        try:
            for record in records:
                item = lookup.field_map.to_item(record)
                if item is not None and item.name:
                    names[item.id] = item.name
        except (TypeError, ValueError) as e:
            raise UpstreamNameResolutionError(
                f"Malformed name record from {lookup.url}: {e}", url=lookup.url
            ) from e
    return names


def resolve_names(
    client: RobloxClient, lookup: NameLookup | None, items: list[Item]
) -> list[Item]:
    """Fill in missing experience names, best effort.

    Items still without a name afterwards are reported as "Unknown".
    """
    missing = [item.id for item in items if not item.name]
    if not missing or lookup is None:
        return items

    try:
        names = fetch_names(client, lookup, missing)
    except UpstreamNameResolutionError as e:
        logger.warning("[Names] Lookup failed for %d experiences: %s", len(missing), e)
        return items

    unresolved = [i for i in missing if i not in names]
    if unresolved:
        logger.warning("[Names] No name for experiences %s", unresolved)
    return [
        item.model_copy(update={"name": names[item.id]}) if item.id in names else item
        for item in items
    ]


def aggregate(results: Iterable[FanoutResult]) -> Aggregate:
    """Flatten fan-out results into entries, in discovery order.

    A failed lookup counts as an experience without gamepasses and is also
    tallied in `failedItems`.
    """
    agg = Aggregate()
    summary = agg.summary
    for result in results:
        summary.itemsProcessed += 1
        if isinstance(result, FanoutFailed):
            summary.failedItems += 1
            summary.itemsWithoutChildren += 1
            continue
        if not result.children:
            summary.itemsWithoutChildren += 1
            continue
        item = result.item
        for child in result.children:
            agg.entries.append(
                AggregateEntry(
                    experienceId=item.id,
                    experienceName=item.display_name,
                    placeId=item.place_id,
                    gamepassId=child.id,
                    gamepassName=child.name,
                )
            )
        summary.totalChildren += len(result.children)
    return agg
