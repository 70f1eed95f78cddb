"""Gamepass ownership checks against the inventory API."""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Callable

from .api_client import RobloxClient
from .errors import UpstreamError
from .models import OwnedGamepass
from .strategies import INVENTORY_API

logger = logging.getLogger(__name__)

INVENTORY_URL = INVENTORY_API + "/v1/users/{user_id}/items/GamePass/{gamepass_id}"


def check_ownership(client: RobloxClient, user_id: int, gamepass_id: int) -> bool:
    """Return True if the user's inventory lists the gamepass.

    Raises:
        UpstreamError if the inventory lookup fails. A failure is never
        reported as "not owned".
    """
    url = INVENTORY_URL.format(user_id=user_id, gamepass_id=gamepass_id)
    payload = client.get_json(url)
    data = payload.get("data") or []
    if not isinstance(data, list):
        raise UpstreamError(f"Unexpected 'data' payload from {url}", url=url)
    return len(data) > 0


@dataclass
class CatalogOwnership:
    owned: list[OwnedGamepass] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)


def owned_from_catalog(
    client: RobloxClient,
    user_id: int,
    catalog: Sequence[tuple[int, str]],
    *,
    delay: float = 0.0,
    sleep: Callable[[float], None] = time.sleep,
) -> CatalogOwnership:
    """Check every catalog gamepass in order.

    Lookups that fail are logged and listed in `failed`, so the caller can
    tell them apart from gamepasses that are not owned.
    """
    result = CatalogOwnership()
    for index, (gamepass_id, name) in enumerate(catalog):
        if index > 0 and delay > 0:
            sleep(delay)
        try:
            if check_ownership(client, user_id, gamepass_id):
                result.owned.append(OwnedGamepass(id=gamepass_id, name=name or str(gamepass_id)))
        except UpstreamError as e:
            logger.error("[Ownership] Check failed for gamepass %s: %s", gamepass_id, e)
            result.failed.append(gamepass_id)
    logger.info(
        "[Ownership] userId %s owns %d of %d (%d failed)",
        user_id,
        len(result.owned),
        len(catalog),
        len(result.failed),
    )
    return result
