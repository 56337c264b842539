"""BubbleClient tests — ordered environment fallback and user lookup.

Tests cover:
    - First base accepts → second base never contacted
    - First base rejects (any non-2xx) → second base tried
    - Transport error on first base → second base tried
    - Both fail → exhausted SaveResult
    - Bearer auth header on every call
    - User lookup reads the Data API `response` envelope from the primary base

Design Decisions:
    - Client exercised directly (no FastAPI) so ordering is asserted on the raw request log
"""

import httpx
import pytest

from mira_exchange.infrastructure.bubble_client import BubbleClient
from tests.fake_upstream import (
    LIVE_BASE, TEST_BASE, connect_error, upsert_url, user_url,
)

PAYLOAD = {"bubble_user_id": "user-1", "access_token": "A"}


async def test_first_base_success_skips_second(settings, upstream, http_client):
    upstream.add("POST", upsert_url(LIVE_BASE), httpx.Response(200, json={"status": "success"}))
    upstream.add("POST", upsert_url(TEST_BASE), httpx.Response(200, json={}))

    result = await BubbleClient(settings, http_client).save_tokens(PAYLOAD)

    assert result.ok is True
    assert result.base == LIVE_BASE
    assert result.via == "wf"
    assert result.status == 200
    assert result.j == {"status": "success"}
    assert upstream.calls_to(upsert_url(TEST_BASE)) == []


async def test_rejection_falls_back_to_next_base(settings, upstream, http_client):
    upstream.add("POST", upsert_url(LIVE_BASE), httpx.Response(400, json={"message": "nope"}))
    upstream.add("POST", upsert_url(TEST_BASE), httpx.Response(200, json={"status": "success"}))

    result = await BubbleClient(settings, http_client).save_tokens(PAYLOAD)

    assert result.ok is True
    assert result.base == TEST_BASE
    assert [r.url for r in upstream.requests] == [
        upsert_url(LIVE_BASE), upsert_url(TEST_BASE),
    ]


async def test_transport_error_falls_back_to_next_base(settings, upstream, http_client):
    upstream.add("POST", upsert_url(LIVE_BASE), connect_error)
    upstream.add("POST", upsert_url(TEST_BASE), httpx.Response(200, json={}))

    result = await BubbleClient(settings, http_client).save_tokens(PAYLOAD)

    assert result.ok is True
    assert result.base == TEST_BASE


async def test_all_bases_failing_is_exhausted(settings, upstream, http_client):
    upstream.add("POST", upsert_url(LIVE_BASE), httpx.Response(404, json={}))
    upstream.add("POST", upsert_url(TEST_BASE), connect_error)

    result = await BubbleClient(settings, http_client).save_tokens(PAYLOAD)

    assert result.ok is False
    assert result.via == "exhausted"
    assert result.to_dict() == {
        "ok": False, "via": "exhausted",
        "error": "Could not save tokens via any backend environment",
    }


async def test_upsert_sends_json_with_bearer(settings, upstream, http_client):
    upstream.add("POST", upsert_url(LIVE_BASE), httpx.Response(200, json={}))

    await BubbleClient(settings, http_client).save_tokens(PAYLOAD)

    sent = upstream.requests[0]
    assert sent.headers["authorization"] == "Bearer relay-key"
    assert sent.json() == PAYLOAD


async def test_fetch_user_unwraps_response_envelope(settings, upstream, http_client):
    upstream.add(
        "GET", user_url(LIVE_BASE, "user-1"),
        httpx.Response(200, json={"response": {"_id": "user-1", "ms_access_token": "tok"}}),
    )

    lookup = await BubbleClient(settings, http_client).fetch_user("user-1")

    assert lookup.status == 200
    assert lookup.record["ms_access_token"] == "tok"
    assert upstream.requests[0].headers["authorization"] == "Bearer relay-key"


async def test_fetch_user_not_found_is_empty_record(settings, upstream, http_client):
    upstream.add("GET", user_url(LIVE_BASE, "ghost"), httpx.Response(404, json={}))

    lookup = await BubbleClient(settings, http_client).fetch_user("ghost")

    assert lookup.status == 404
    assert lookup.record == {}


@pytest.mark.parametrize("envelope", ["oops", ["a"], None, 7])
async def test_fetch_user_non_object_envelope_is_empty_record(
    settings, upstream, http_client, envelope,
):
    upstream.add(
        "GET", user_url(LIVE_BASE, "user-1"), httpx.Response(200, json={"response": envelope}),
    )

    lookup = await BubbleClient(settings, http_client).fetch_user("user-1")

    assert lookup.status == 200
    assert lookup.record == {}


async def test_object_url_escapes_id(settings, http_client):
    bubble = BubbleClient(settings, http_client)
    assert bubble.object_url(LIVE_BASE, "user", "a/b c") == (
        f"{LIVE_BASE}/api/1.1/obj/user/a%2Fb%20c"
    )
