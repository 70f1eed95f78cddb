"""The list-mode pipeline: listing -> names -> fan-out -> aggregate.

Flow for one request:

    LISTING      paginate every listing source of the strategy and merge
                 them by experience id (first seen wins)
    NAMES        fill in missing experience names (best effort)
    FANNING_OUT  one gamepass lookup per experience; failures are absorbed
    AGGREGATING  flatten into entries and count

Only a failure of the primary listing aborts the request. A listing that
needs the session cookie is skipped when no cookie is configured and is
ignored (with a warning) when it fails.
"""

from __future__ import annotations

import concurrent.futures
import logging

from .aggregator import Aggregate, aggregate, merge_listings, resolve_names
from .api_client import RobloxClient
from .config import Settings
from .errors import UpstreamError, UpstreamListingError
from .fanout import FanoutResult, resolve_children
from .models import Item
from .pagination import paginate
from .strategies import ListingSource, PipelineStrategy, get_strategy

logger = logging.getLogger(__name__)


class GamepassPipeline:
    """Lists every gamepass of every experience created by a user."""

    def __init__(
        self,
        client: RobloxClient,
        settings: Settings,
        strategy: PipelineStrategy | None = None,
    ) -> None:
        self.client = client
        self.settings = settings
        self.strategy = strategy or get_strategy(settings.strategy)

    def fetch_listing(self, source: ListingSource, user_id: int) -> list[Item]:
        url, params = source.render(user_id, self.settings.page_limit)
        result = paginate(
            self.client,
            url,
            params,
            items_key=source.items_key,
            cursor_key=source.cursor_key,
            max_pages=self.settings.max_pages,
            delay=self.settings.page_delay_seconds,
        )
        items = []
        try:
            for record in result.items:
                item = source.field_map.to_item(record)
                if item is not None:
                    items.append(item)
        except (TypeError, ValueError) as e:
            raise UpstreamError(f"Malformed experience record from {url}: {e}", url=url) from e
        return items

    def collect_items(self, user_id: int) -> list[Item]:
        """Run every applicable listing and merge the results.

        Raises:
            UpstreamListingError if the primary listing fails.
        """
        listings: list[list[Item]] = []
        for index, source in enumerate(self.strategy.listings):
            if source.requires_credential and not self.client.has_credential:
                continue
            try:
                listings.append(self.fetch_listing(source, user_id))
            except UpstreamError as e:
                if index == 0:
                    raise UpstreamListingError.wrap(e) from e
                logger.warning("[Listing] Secondary listing %s failed: %s", source.url, e)

        items = merge_listings(listings)
        logger.info("[Listing] Experiences found: %d", len(items))
        return items

    def fan_out(self, items: list[Item]) -> list[FanoutResult]:
        source = self.strategy.fanout
        workers = self.settings.workers
        if workers == 1 or len(items) < 2:
            return [resolve_children(self.client, source, item, self.settings) for item in items]

        # executor.map yields results in input order.
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            return list(
                executor.map(
                    lambda item: resolve_children(self.client, source, item, self.settings),
                    items,
                )
            )

    def run(self, user_id: int) -> Aggregate:
        logger.info("[Pipeline] Starting search for userId %s (%s)", user_id, self.strategy.name)
        items = self.collect_items(user_id)
        if not items:
            logger.info("[Pipeline] No visible experiences for userId %s", user_id)
            return Aggregate()

        items = resolve_names(self.client, self.strategy.name_lookup, items)
        result = aggregate(self.fan_out(items))

        summary = result.summary
        logger.info(
            "[Pipeline] Done: %d experiences, %d without gamepasses (%d failed), %d gamepasses",
            summary.itemsProcessed,
            summary.itemsWithoutChildren,
            summary.failedItems,
            summary.totalChildren,
        )
        return result
