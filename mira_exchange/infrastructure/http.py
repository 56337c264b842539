"""Outbound HTTP — one shared httpx.AsyncClient and a lenient JSON fetch helper.

Invariants:
    - One AsyncClient per process, opened/closed by the FastAPI lifespan
    - fetch_json never raises on a non-JSON body: `body` is None, `is_json` False,
      and the raw bytes stay on `content`
    - Transport failures (httpx.HTTPError) propagate to the caller

Design Decisions:
    - Client stored on app.state and handed out by a dependency so tests can
      swap in an httpx.MockTransport-backed client
    - No timeout override: httpx's transport default applies to every call
"""

from dataclasses import dataclass
from typing import Any

import httpx
from fastapi import Request


@dataclass(frozen=True)
class JSONResult:
    """Status plus parsed body (None when the body was empty or not JSON).

    The undecoded bytes and content type are kept so non-JSON replies can
    still be reported or relayed as received.
    """
    status: int
    body: Any
    content: bytes = b""
    content_type: str | None = None
    is_json: bool = True

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def body_or_text(self) -> Any:
        """Parsed JSON when there was some, else the raw text (None if empty)."""
        if self.is_json:
            return self.body
        return self.text or None


async def fetch_json(
    client: httpx.AsyncClient, method: str, url: str, **kwargs: Any,
) -> JSONResult:
    response = await client.request(method, url, **kwargs)
    try:
        body, is_json = response.json(), True
    except ValueError:
        body, is_json = None, False
    return JSONResult(
        status=response.status_code,
        body=body,
        content=response.content,
        content_type=response.headers.get("content-type"),
        is_json=is_json,
    )


def create_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(headers={"Accept": "application/json"})


def get_http_client(request: Request) -> httpx.AsyncClient:
    """FastAPI dependency returning the process-wide outbound client."""
    return request.app.state.http_client
