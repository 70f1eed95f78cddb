"""gamepass-api configuration.

This module only reads environment variables, the same way the service is
configured locally, on a VM, or inside Docker.

The values are collected into a frozen `Settings` object. Route handlers get
one through a FastAPI dependency and hand it to the pipeline, so request
handling never looks at the environment directly.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# --- HTTP listener -----------------------------------------------------------
HOST: str = os.getenv("HOST", "0.0.0.0")
PORT: int = int(os.getenv("PORT", "3000"))

# --- Upstream ----------------------------------------------------------------
# Optional .ROBLOSECURITY cookie value. When set it is forwarded verbatim and
# extends listings to non-public experiences. Empty means "public only".
ROBLOSECURITY: str = os.getenv("ROBLOSECURITY", "")

# Per-call timeout so one stalled upstream call cannot hang a request.
UPSTREAM_TIMEOUT_SECONDS: float = float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", "5.0"))

# Courtesy delay between consecutive page requests (upstream throttling).
PAGE_DELAY_SECONDS: float = float(os.getenv("PAGE_DELAY_SECONDS", "0.1"))

# Hard ceiling on pages fetched per listing.
MAX_PAGES: int = int(os.getenv("MAX_PAGES", "20"))

# Page size requested from listing endpoints.
PAGE_LIMIT: int = int(os.getenv("PAGE_LIMIT", "50"))

# Fan-out worker pool size. 1 means strictly sequential.
FANOUT_WORKERS: int = int(os.getenv("FANOUT_WORKERS", "1"))
MAX_FANOUT_WORKERS = 4

# Which upstream mapping answers "experiences created by a user".
PIPELINE_STRATEGY: str = os.getenv("PIPELINE_STRATEGY", "games")

# Gamepasses checked by GET /owned, e.g. "123456:VIP,234567:Servidor".
GAMEPASS_CATALOG: str = os.getenv("GAMEPASS_CATALOG", "")

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


def parse_catalog(raw: str) -> tuple[tuple[int, str], ...]:
    """Parse `id:name` pairs separated by commas, keeping their order.

    A bare id is accepted and gets an empty name. Malformed entries are
    skipped with a warning.
    """
    entries: list[tuple[int, str]] = []
    for chunk in raw.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        id_part, _, name = chunk.partition(":")
        try:
            gamepass_id = int(id_part.strip())
        except ValueError:
            logger.warning("[Config] Ignoring malformed catalog entry %r", chunk)
            continue
        if gamepass_id <= 0:
            logger.warning("[Config] Ignoring non-positive catalog id %r", chunk)
            continue
        entries.append((gamepass_id, name.strip()))
    return tuple(entries)


@dataclass(frozen=True)
class Settings:
    """Per-process configuration injected into the pipeline."""

    roblosecurity: str = ROBLOSECURITY
    timeout_seconds: float = UPSTREAM_TIMEOUT_SECONDS
    page_delay_seconds: float = PAGE_DELAY_SECONDS
    max_pages: int = MAX_PAGES
    page_limit: int = PAGE_LIMIT
    fanout_workers: int = FANOUT_WORKERS
    strategy: str = PIPELINE_STRATEGY
    catalog: tuple[tuple[int, str], ...] = parse_catalog(GAMEPASS_CATALOG)

    @property
    def workers(self) -> int:
        """Fan-out pool size clamped to 1..MAX_FANOUT_WORKERS."""
        return max(1, min(self.fanout_workers, MAX_FANOUT_WORKERS))


def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
