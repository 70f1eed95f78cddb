"""Cursor pagination over Roblox listing endpoints."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from .api_client import RobloxClient
from .errors import UpstreamError

logger = logging.getLogger(__name__)


@dataclass
class PaginationResult:
    items: list[dict[str, Any]] = field(default_factory=list)
    pages: int = 0
    truncated: bool = False


def paginate(
    client: RobloxClient,
    url: str,
    params: dict[str, Any] | None = None,
    *,
    items_key: str = "data",
    cursor_key: str = "nextPageCursor",
    cursor_param: str = "cursor",
    max_pages: int = 20,
    delay: float = 0.1,
    sleep: Callable[[float], None] = time.sleep,
) -> PaginationResult:
    """Walk a cursor-paginated listing until the cursor runs out.

    The first request carries no cursor; each following request sends the
    cursor returned by the previous page. Stops when the cursor is absent or
    empty, or after `max_pages` requests (`truncated` is then set).

    Raises:
        UpstreamError if any page fails. Items already read are discarded.
    """
    result = PaginationResult()
    cursor: str | None = None

    while True:
        if result.pages >= max_pages:
            result.truncated = True
            logger.warning(
                "[Paginator] Page ceiling (%d) reached for %s, stopping", max_pages, url
            )
            break
        if result.pages > 0 and delay > 0:
            sleep(delay)

        page_params = dict(params or {})
        if cursor:
            page_params[cursor_param] = cursor

        payload = client.get_json(url, page_params)
        result.pages += 1

        page_items = payload.get(items_key) or []
        if not isinstance(page_items, list):
            raise UpstreamError(f"Unexpected {items_key!r} payload from {url}", url=url)
        result.items.extend(page_items)
        logger.info("[Paginator] %s page %d: %d items", url, result.pages, len(page_items))

        cursor = payload.get(cursor_key)
        if not cursor:
            break

    return result
