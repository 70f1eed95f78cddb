"""HTTP-level tests for the FastAPI app, with Roblox mocked by respx."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterator

import httpx
import pytest
from fastapi.testclient import TestClient
from respx import MockRouter

from gamepass_api.config import Settings
from gamepass_api.main import app, get_settings
from gamepass_api.strategies import INVENTORY_API

from conftest import LISTING_URL, USER_ID, experience, fanout_url

CHECK_URL = f"{INVENTORY_API}/v1/users/{USER_ID}/items/GamePass/123456"


@pytest.fixture
def api(settings: Settings) -> Iterator[TestClient]:
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_index(api: TestClient) -> None:
    resp = api.get("/")

    assert resp.status_code == 200
    assert "usage" in resp.json()


def test_health(api: TestClient) -> None:
    assert api.get("/health").json() == {"status": "ok"}


def test_list_gamepasses_end_to_end(api: TestClient, respx_mock: MockRouter) -> None:
    respx_mock.get(LISTING_URL).mock(
        return_value=httpx.Response(
            200,
            json={
                "data": [experience(100, "Obby", 1000), experience(200, "Tycoon", 2000)],
                "nextPageCursor": None,
            },
        )
    )
    respx_mock.get(fanout_url(100)).mock(
        return_value=httpx.Response(
            200,
            json={
                "data": [{"id": 1, "name": "VIP"}, {"id": 2, "name": "Servidor"}],
                "nextPageCursor": None,
            },
        )
    )
    respx_mock.get(fanout_url(200)).mock(
        return_value=httpx.Response(200, json={"data": [], "nextPageCursor": None})
    )

    resp = api.get("/api/gamepasses/261")

    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert body["userId"] == 261
    assert body["count"] == 2
    assert [(i["experienceId"], i["experienceName"], i["gamepassName"]) for i in body["items"]] == [
        (100, "Obby", "VIP"),
        (100, "Obby", "Servidor"),
    ]
    assert body["items"][0]["placeId"] == 1000
    assert body["summary"]["itemsWithoutChildren"] == 1
    assert body["summary"]["totalChildren"] == 2


def test_list_gamepasses_query_form_empty(api: TestClient, respx_mock: MockRouter) -> None:
    respx_mock.get(LISTING_URL).mock(
        return_value=httpx.Response(200, json={"data": [], "nextPageCursor": None})
    )

    resp = api.get("/api/gamepasses", params={"userId": "261"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert body["count"] == 0
    assert body["items"] == []


@pytest.mark.parametrize("path", ["/api/gamepasses/abc", "/api/gamepasses/0", "/api/gamepasses/-3"])
def test_list_gamepasses_invalid_user_id(api: TestClient, path: str) -> None:
    resp = api.get(path)

    assert resp.status_code == 400
    body = resp.json()
    assert body["ok"] is False
    assert "userId" in body["message"]


def test_list_gamepasses_missing_user_id(api: TestClient) -> None:
    resp = api.get("/api/gamepasses")

    assert resp.status_code == 400
    assert resp.json()["detail"] == "userId is required"


def test_list_gamepasses_listing_failure(api: TestClient, respx_mock: MockRouter) -> None:
    respx_mock.get(LISTING_URL).mock(return_value=httpx.Response(503))

    resp = api.get("/api/gamepasses/261")

    assert resp.status_code == 500
    body = resp.json()
    assert body["ok"] is False
    assert "503" in body["detail"]


def test_check_owned(api: TestClient, respx_mock: MockRouter) -> None:
    respx_mock.get(CHECK_URL).mock(
        return_value=httpx.Response(200, json={"data": [{"id": 123456}]})
    )

    resp = api.get("/check", params={"userId": "261", "gamepassId": "123456"})

    assert resp.status_code == 200
    assert resp.json() == {"owns": True}


def test_check_not_owned(api: TestClient, respx_mock: MockRouter) -> None:
    respx_mock.get(CHECK_URL).mock(return_value=httpx.Response(200, json={"data": []}))

    resp = api.get("/check", params={"userId": "261", "gamepassId": "123456"})

    assert resp.json() == {"owns": False}


def test_check_upstream_failure_is_not_false(api: TestClient, respx_mock: MockRouter) -> None:
    respx_mock.get(CHECK_URL).mock(side_effect=httpx.ConnectError("unreachable"))

    resp = api.get("/check", params={"userId": "261", "gamepassId": "123456"})

    assert resp.status_code == 502
    body = resp.json()
    assert body["ok"] is False
    assert "owns" not in body


@pytest.mark.parametrize(
    "params, field",
    [
        ({"gamepassId": "1"}, "userId"),
        ({"userId": "261"}, "gamepassId"),
        ({"userId": "261", "gamepassId": "vip"}, "gamepassId"),
    ],
)
def test_check_validation(api: TestClient, params: dict, field: str) -> None:
    resp = api.get("/check", params=params)

    assert resp.status_code == 400
    assert field in resp.json()["message"]


def test_owned_catalog(settings: Settings, respx_mock: MockRouter) -> None:
    settings = dataclasses.replace(settings, catalog=((123456, "VIP"), (234567, "Servidor")))
    app.dependency_overrides[get_settings] = lambda: settings
    respx_mock.get(CHECK_URL).mock(
        return_value=httpx.Response(200, json={"data": [{"id": 123456}]})
    )
    respx_mock.get(f"{INVENTORY_API}/v1/users/{USER_ID}/items/GamePass/234567").mock(
        return_value=httpx.Response(200, json={"data": []})
    )
    try:
        resp = TestClient(app).get("/owned", params={"userId": "261"})
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 200
    assert resp.json() == {
        "ok": True,
        "userId": 261,
        "count": 1,
        "items": [{"id": 123456, "name": "VIP"}],
        "failed": [],
    }


def test_cors_allows_any_origin(api: TestClient) -> None:
    resp = api.get("/health", headers={"Origin": "https://www.roblox.com"})

    assert resp.headers["access-control-allow-origin"] == "*"


@pytest.mark.parametrize("user_id", ["9" * 5000, "9223372036854775808", "12345678901234567890"])
def test_list_gamepasses_rejects_oversized_user_id(api: TestClient, user_id: str) -> None:
    resp = api.get(f"/api/gamepasses/{user_id}")

    assert resp.status_code == 400
    body = resp.json()
    assert body["ok"] is False
    assert body["detail"] == "userId must be a positive integer"


@pytest.mark.parametrize(
    "bad_payload",
    [
        {"data": 5, "nextPageCursor": None},
        {"data": [{"id": 21, "name": 7}], "nextPageCursor": None},
    ],
)
def test_list_gamepasses_malformed_fanout_is_contained(
    api: TestClient, respx_mock: MockRouter, bad_payload: dict
) -> None:
    respx_mock.get(LISTING_URL).mock(
        return_value=httpx.Response(
            200,
            json={
                "data": [experience(1, "Good", 10), experience(2, "Bad", 20)],
                "nextPageCursor": None,
            },
        )
    )
    respx_mock.get(fanout_url(1)).mock(
        return_value=httpx.Response(
            200, json={"data": [{"id": 11, "name": "VIP"}], "nextPageCursor": None}
        )
    )
    respx_mock.get(fanout_url(2)).mock(return_value=httpx.Response(200, json=bad_payload))

    resp = api.get("/api/gamepasses/261")

    assert resp.status_code == 200
    body = resp.json()
    assert [(i["experienceId"], i["gamepassId"]) for i in body["items"]] == [(1, 11)]
    assert body["summary"]["failedItems"] == 1
    assert body["summary"]["itemsWithoutChildren"] == 1


def test_unexpected_error_returns_json_body(
    settings: Settings, monkeypatch: pytest.MonkeyPatch
) -> None:
    def explode(self, user_id: int):
        raise RuntimeError("boom")

    monkeypatch.setattr("gamepass_api.main.GamepassPipeline.run", explode)
    app.dependency_overrides[get_settings] = lambda: settings
    try:
        resp = TestClient(app, raise_server_exceptions=False).get("/api/gamepasses/261")
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 500
    assert resp.json() == {"ok": False, "message": "Internal server error", "detail": "boom"}


def test_owned_catalog_reports_failed_lookups(settings: Settings, respx_mock: MockRouter) -> None:
    settings = dataclasses.replace(settings, catalog=((123456, "VIP"), (234567, "Servidor")))
    app.dependency_overrides[get_settings] = lambda: settings
    respx_mock.get(CHECK_URL).mock(return_value=httpx.Response(200, json={"data": []}))
    respx_mock.get(f"{INVENTORY_API}/v1/users/{USER_ID}/items/GamePass/234567").mock(
        return_value=httpx.Response(503)
    )
    try:
        resp = TestClient(app).get("/owned", params={"userId": "261"})
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 200
    body = resp.json()
    assert body["count"] == 0
    assert body["failed"] == [234567]
