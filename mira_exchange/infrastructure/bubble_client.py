"""Bubble Client — Data API user lookup and the ms_token_upsert workflow.

Invariants:
    - Every call carries `Authorization: Bearer <bubble api key>`
    - save_tokens tries candidate bases strictly in order, one at a time;
      the first 2xx wins and later bases are never contacted
    - Non-2xx and transport errors are both logged, and both move on to the next base
    - fetch_user reads the primary base only

Design Decisions:
    - Ordered loop with early return, not a retry helper: each base is a different
      deployment (live / version-test), so there is nothing to back off from
    - SaveResult mirrors the JSON callers already consume ({ok, via, base, status, j})
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any
from urllib.parse import quote

import httpx

from mira_exchange.config import Settings
from mira_exchange.infrastructure.http import fetch_json

logger = logging.getLogger(__name__)

API_PREFIX = "/api/1.1"
TOKEN_UPSERT_WORKFLOW = "ms_token_upsert"
USER_DATA_TYPE = "user"


@dataclass(frozen=True)
class SaveResult:
    ok: bool
    via: str
    base: str | None = None
    status: int | None = None
    j: Any = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass(frozen=True)
class UserLookup:
    status: int
    record: dict[str, Any]


class BubbleClient:
    """Talks to Bubble's Data and Workflow APIs across candidate environments."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._http = http_client

    @property
    def bases(self) -> list[str]:
        return self._settings.bubble_bases

    @property
    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._settings.bubble_api_key}"}

    def workflow_url(self, base: str, workflow: str) -> str:
        return f"{base}{API_PREFIX}/wf/{workflow}"

    def object_url(self, base: str, data_type: str, object_id: str) -> str:
        return f"{base}{API_PREFIX}/obj/{data_type}/{quote(object_id, safe='')}"

    async def save_tokens(self, payload: dict[str, Any]) -> SaveResult:
        """Deliver a token upsert to the first environment that accepts it."""
        for base in self.bases:
            url = self.workflow_url(base, TOKEN_UPSERT_WORKFLOW)
            try:
                result = await fetch_json(
                    self._http, "POST", url,
                    json=payload, headers=self._auth_headers,
                )
            except httpx.HTTPError as exc:
                logger.warning(
                    f"Token upsert transport error: {exc!r}",
                    extra={"base": base, "via": "wf"},
                )
                continue

            logger.info(
                "Token upsert attempt",
                extra={"base": base, "via": "wf", "status": result.status, "ok": result.ok},
            )
            if result.ok:
                return SaveResult(
                    ok=True, via="wf", base=base, status=result.status, j=result.body,
                )
            logger.warning(
                f"Token upsert rejected: {result.body!r}",
                extra={"base": base, "via": "wf", "status": result.status},
            )

        return SaveResult(
            ok=False, via="exhausted",
            error="Could not save tokens via any backend environment",
        )

    async def fetch_user(self, user_unique_id: str) -> UserLookup:
        """GET the user object from the primary base (Data API `response` envelope)."""
        url = self.object_url(self.bases[0], USER_DATA_TYPE, user_unique_id)
        result = await fetch_json(self._http, "GET", url, headers=self._auth_headers)
        logger.info(
            "Bubble user lookup",
            extra={
                "user_unique_id": user_unique_id,
                "status": result.status,
                "ok": result.ok,
            },
        )
        record: dict[str, Any] = {}
        if result.ok and isinstance(result.body, dict):
            envelope = result.body.get("response")
            if isinstance(envelope, dict):
                record = envelope
        return UserLookup(status=result.status, record=record)
