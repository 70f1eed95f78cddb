"""gamepass-api FastAPI application.

Endpoints:
- `GET /api/gamepasses/{userId}` (or `?userId=`): every gamepass of every
  experience created by the user.
- `GET /check?userId=&gamepassId=`: whether the user owns one gamepass.
- `GET /owned?userId=`: which gamepasses of the configured catalog the
  user owns.

Each request builds its own upstream client and pipeline; nothing is shared
between requests apart from the immutable settings.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api_client import RobloxClient
from .config import Settings, configure_logging
from .errors import InvalidIdentifierError, UpstreamError, UpstreamListingError
from .models import (
    ErrorResponse,
    GamepassListResponse,
    HealthResponse,
    OwnedListResponse,
    OwnershipResponse,
)
from .ownership import check_ownership, owned_from_catalog
from .pipeline import GamepassPipeline

logger = logging.getLogger(__name__)

app = FastAPI(title="Gamepass API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
)

_ID_PATTERN = re.compile(r"[0-9]{1,19}")
MAX_ID = 2**63 - 1


@app.on_event("startup")
def on_startup() -> None:
    configure_logging()


def get_settings() -> Settings:
    return Settings()


def get_client(settings: Settings = Depends(get_settings)) -> Iterator[RobloxClient]:
    """Upstream client for one request, closed once the response is sent."""
    with RobloxClient(settings) as client:
        yield client


def parse_id(value: str | None, field: str) -> int:
    """Parse a positive integer identifier from a path or query parameter.

    Raises:
        InvalidIdentifierError if the value is missing, not numeric or zero.
    """
    text = (value or "").strip()
    if not _ID_PATTERN.fullmatch(text) or not 0 < int(text) <= MAX_ID:
        raise InvalidIdentifierError(field, value)
    return int(text)


def _error(status_code: int, message: str, detail: str | None = None) -> JSONResponse:
    body = ErrorResponse(message=message, detail=detail)
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(InvalidIdentifierError)
def handle_invalid_identifier(request: Request, exc: InvalidIdentifierError) -> JSONResponse:
    return _error(400, f"Invalid {exc.field}", str(exc))


@app.exception_handler(UpstreamListingError)
def handle_listing_error(request: Request, exc: UpstreamListingError) -> JSONResponse:
    logger.error("[HTTP] Listing failed for %s: %s", request.url.path, exc)
    return _error(500, "Failed to fetch experiences from Roblox", str(exc))


@app.exception_handler(UpstreamError)
def handle_upstream_error(request: Request, exc: UpstreamError) -> JSONResponse:
    logger.error("[HTTP] Upstream call failed for %s: %s", request.url.path, exc)
    return _error(502, "Roblox API error", str(exc))


@app.exception_handler(Exception)
def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("[HTTP] Unhandled error for %s", request.url.path)
    return _error(500, "Internal server error", str(exc))


@app.get("/", response_model=HealthResponse)
def index() -> HealthResponse:
    return HealthResponse(
        message="Gamepass API running. Use /api/gamepasses/{userId} to list gamepasses.",
        usage="GET /api/gamepasses/261",
    )


@app.get("/health")
def health() -> dict[str, str]:
    """Basic liveness endpoint."""
    return {"status": "ok"}


def _list_gamepasses(user_id: int, client: RobloxClient, settings: Settings) -> GamepassListResponse:
    result = GamepassPipeline(client, settings).run(user_id)
    return GamepassListResponse(
        userId=user_id,
        count=len(result.entries),
        items=result.entries,
        summary=result.summary,
    )


@app.get("/api/gamepasses/{userId}", response_model=GamepassListResponse)
def list_gamepasses_path(
    userId: str,
    client: RobloxClient = Depends(get_client),
    settings: Settings = Depends(get_settings),
):
    """Return all gamepasses of the experiences created by a user."""
    return _list_gamepasses(parse_id(userId, "userId"), client, settings)


@app.get("/api/gamepasses", response_model=GamepassListResponse)
def list_gamepasses_query(
    userId: str | None = None,
    client: RobloxClient = Depends(get_client),
    settings: Settings = Depends(get_settings),
):
    """Same as the path form, with `userId` as a query parameter."""
    return _list_gamepasses(parse_id(userId, "userId"), client, settings)


@app.get("/check", response_model=OwnershipResponse)
def check(
    userId: str | None = None,
    gamepassId: str | None = None,
    client: RobloxClient = Depends(get_client),
):
    """Return whether a user owns one gamepass.

    An upstream failure is answered with 502, never with `owns: false`.
    """
    user_id = parse_id(userId, "userId")
    gamepass_id = parse_id(gamepassId, "gamepassId")
    return OwnershipResponse(owns=check_ownership(client, user_id, gamepass_id))


@app.get("/owned", response_model=OwnedListResponse)
def owned(
    userId: str | None = None,
    client: RobloxClient = Depends(get_client),
    settings: Settings = Depends(get_settings),
):
    """Return the catalog gamepasses owned by a user."""
    user_id = parse_id(userId, "userId")
    result = owned_from_catalog(
        client, user_id, settings.catalog, delay=settings.page_delay_seconds
    )
    return OwnedListResponse(
        userId=user_id,
        count=len(result.owned),
        items=result.owned,
        failed=result.failed,
    )
