"""HTTP client for the Roblox web APIs.

Every upstream call in the service goes through `RobloxClient.get_json`, so
timeouts, the optional session cookie and the mapping of httpx failures to
`UpstreamError` live in one place.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .config import Settings
from .errors import UpstreamError

logger = logging.getLogger(__name__)

SESSION_COOKIE = ".ROBLOSECURITY"


class RobloxClient:
    """Thin wrapper around one `httpx.Client`.

    A client is created per inbound request and closed afterwards; no
    connection state is shared between requests.
    """

    def __init__(self, settings: Settings, http_client: httpx.Client | None = None) -> None:
        self._credential = settings.roblosecurity
        headers = {"Accept": "application/json"}
        if self._credential:
            headers["Cookie"] = f"{SESSION_COOKIE}={self._credential}"
        self._client = http_client or httpx.Client(
            timeout=settings.timeout_seconds,
            headers=headers,
        )

    @property
    def has_credential(self) -> bool:
        return bool(self._credential)

    def get_json(self, url: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """GET `url` and return the decoded JSON object.

        Raises:
            UpstreamError on connection failures, timeouts, non-2xx status
            or a body that is not a JSON object.
        """
        try:
            resp = self._client.get(url, params=params)
            resp.raise_for_status()
            payload = resp.json()
        except httpx.HTTPStatusError as e:
            raise UpstreamError(
                f"HTTP {e.response.status_code} from {url}",
                url=url,
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"{type(e).__name__}: {e}", url=url) from e
        except ValueError as e:
            raise UpstreamError(f"Invalid JSON from {url}", url=url) from e

        if not isinstance(payload, dict):
            raise UpstreamError(f"Unexpected payload type from {url}", url=url)
        logger.debug("[Upstream] GET %s params=%s -> %s", url, params, resp.status_code)
        return payload

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> RobloxClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
