"""POST /ms/refresh-save — end-to-end through FastAPI with stubbed upstreams.

Invariants:
    - Missing/empty fields → 400, zero outbound calls
    - Token failure → 400 with provider body, Bubble never contacted
    - Rotated refresh token saved; otherwise the caller's is saved
    - First accepting base wins; all failing → 400 BACKEND_SAVE_FAILED
"""

import httpx
import pytest

from tests.fake_upstream import (
    LIVE_BASE, TEST_BASE, TOKEN_URL, connect_error, token_response, upsert_url,
)

BODY = {"user_unique_id": "1700000000000x1", "refresh_token": "old-refresh"}


@pytest.mark.parametrize("body", [
    {},
    {"user_unique_id": "u"},
    {"refresh_token": "r"},
    {"user_unique_id": "", "refresh_token": "r"},
    {"user_unique_id": "u", "refresh_token": "   "},
])
async def test_missing_fields_rejected_without_outbound_calls(client, upstream, body):
    res = await client.post("/ms/refresh-save", json=body)

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"
    assert upstream.requests == []


async def test_success_returns_save_outcome(client, upstream):
    upstream.add("POST", TOKEN_URL, token_response())
    upstream.add("POST", upsert_url(LIVE_BASE), httpx.Response(200, json={"status": "success"}))

    res = await client.post("/ms/refresh-save", json=BODY)

    assert res.status_code == 200
    assert res.json() == {
        "ok": True, "via": "wf", "base": LIVE_BASE,
        "status": 200, "j": {"status": "success"},
    }
    assert upstream.calls_to(upsert_url(TEST_BASE)) == []


async def test_rotated_refresh_token_is_saved(client, upstream):
    upstream.add("POST", TOKEN_URL, token_response(access_token="A", refresh_token="B"))
    upstream.add("POST", upsert_url(LIVE_BASE), httpx.Response(200, json={}))

    await client.post("/ms/refresh-save", json=BODY)

    saved = upstream.calls_to(upsert_url(LIVE_BASE))[0].json()
    assert saved["access_token"] == "A"
    assert saved["refresh_token"] == "B"
    assert saved["bubble_user_id"] == BODY["user_unique_id"]
    assert saved["server_now_iso"].endswith("Z")


async def test_omitted_refresh_token_falls_back_to_input(client, upstream):
    upstream.add("POST", TOKEN_URL, token_response(refresh_token=None))
    upstream.add("POST", upsert_url(LIVE_BASE), httpx.Response(200, json={}))

    await client.post("/ms/refresh-save", json=BODY)

    saved = upstream.calls_to(upsert_url(LIVE_BASE))[0].json()
    assert saved["refresh_token"] == "old-refresh"


async def test_token_failure_reports_provider_body(client, upstream):
    provider = {"error": "invalid_grant", "error_description": "expired"}
    upstream.add("POST", TOKEN_URL, httpx.Response(400, json=provider))

    res = await client.post("/ms/refresh-save", json=BODY)

    assert res.status_code == 400
    error = res.json()["error"]
    assert error["code"] == "TOKEN_EXCHANGE_FAILED"
    assert error["details"] == provider
    assert [r.url for r in upstream.requests] == [TOKEN_URL]


async def test_non_json_token_failure_reports_provider_text(client, upstream):
    upstream.add("POST", TOKEN_URL, httpx.Response(503, text="Service Unavailable"))

    res = await client.post("/ms/refresh-save", json=BODY)

    assert res.status_code == 400
    error = res.json()["error"]
    assert error["code"] == "TOKEN_EXCHANGE_FAILED"
    assert error["details"] == "Service Unavailable"
    assert [r.url for r in upstream.requests] == [TOKEN_URL]


async def test_falls_back_to_second_environment(client, upstream):
    upstream.add("POST", TOKEN_URL, token_response())
    upstream.add("POST", upsert_url(LIVE_BASE), httpx.Response(404, json={}))
    upstream.add("POST", upsert_url(TEST_BASE), httpx.Response(200, json={"status": "success"}))

    res = await client.post("/ms/refresh-save", json=BODY)

    assert res.status_code == 200
    assert res.json()["base"] == TEST_BASE
    assert [r.url for r in upstream.requests] == [
        TOKEN_URL, upsert_url(LIVE_BASE), upsert_url(TEST_BASE),
    ]


async def test_both_environments_failing_is_reported(client, upstream):
    upstream.add("POST", TOKEN_URL, token_response())
    upstream.add("POST", upsert_url(LIVE_BASE), httpx.Response(500, json={}))
    upstream.add("POST", upsert_url(TEST_BASE), connect_error)

    res = await client.post("/ms/refresh-save", json=BODY)

    assert res.status_code == 400
    error = res.json()["error"]
    assert error["code"] == "BACKEND_SAVE_FAILED"
    assert error["details"]["via"] == "exhausted"


async def test_token_endpoint_unreachable_is_500(client, upstream):
    upstream.add("POST", TOKEN_URL, connect_error)

    res = await client.post("/ms/refresh-save", json=BODY)

    assert res.status_code == 500
    error = res.json()["error"]
    assert error["code"] == "INTERNAL_ERROR"
    assert "connection refused" in error["message"]


async def test_raw_refresh_returns_token_set_without_saving(client, upstream):
    upstream.add("POST", TOKEN_URL, token_response(id_token="idt"))

    res = await client.post("/ms/refresh", json={"refresh_token": "old-refresh"})

    assert res.status_code == 200
    assert res.json()["access_token"] == "new-access"
    assert res.json()["id_token"] == "idt"
    assert [r.url for r in upstream.requests] == [TOKEN_URL]


async def test_raw_refresh_requires_token(client, upstream):
    res = await client.post("/ms/refresh", json={})

    assert res.status_code == 400
    assert upstream.requests == []
