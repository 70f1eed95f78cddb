"""Shared fixtures: zero-delay settings and a real httpx-backed client.

Upstream traffic is intercepted with respx's `respx_mock` fixture.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from gamepass_api.api_client import RobloxClient
from gamepass_api.config import Settings
from gamepass_api.strategies import GAMES_API

USER_ID = 261
LISTING_URL = f"{GAMES_API}/v2/users/{USER_ID}/games"


def fanout_url(universe_id: int) -> str:
    return f"{GAMES_API}/v1/games/{universe_id}/game-passes"


def experience(universe_id: int, name: str | None, place_id: int) -> dict:
    return {"id": universe_id, "name": name, "rootPlace": {"id": place_id, "type": "Place"}}


@pytest.fixture
def settings() -> Settings:
    return Settings(
        roblosecurity="",
        page_delay_seconds=0.0,
        max_pages=20,
        page_limit=50,
        fanout_workers=1,
        strategy="games",
        catalog=(),
    )


@pytest.fixture
def client(settings: Settings) -> Iterator[RobloxClient]:
    with RobloxClient(settings) as c:
        yield c
