"""Microsoft Identity & Graph Client — token endpoint, authorize URL, /me/events.

Invariants:
    - Token requests are form-encoded POSTs to the tenant's v2.0 endpoint
    - client_secret is sent only when configured (public clients have none)
    - A token response counts as success only if 2xx AND it carries access_token
    - Token failures carry the provider's JSON, or its raw text when it sent no JSON
    - Graph failures surface as CalendarPassthroughError with status + body untouched
    - Tokens are never logged, only has_* flags

Design Decisions:
    - Thin wrapper over the shared httpx client (no MSAL): the relay only needs
      two grants and one Graph call, and must forward provider bodies verbatim
"""

import json
import logging
from typing import Any
from urllib.parse import urlencode

import httpx

from mira_exchange.config import Settings
from mira_exchange.core.errors import CalendarPassthroughError, TokenExchangeError
from mira_exchange.infrastructure.http import JSONResult, fetch_json

logger = logging.getLogger(__name__)

LOGIN_BASE_URL = "https://login.microsoftonline.com"
GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"


class MicrosoftIdentityClient:
    """Exchanges grants for token sets and acts on Graph as the signed-in user."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._http = http_client

    @property
    def token_url(self) -> str:
        return f"{LOGIN_BASE_URL}/{self._settings.ms_tenant}/oauth2/v2.0/token"

    @property
    def authorize_endpoint(self) -> str:
        return f"{LOGIN_BASE_URL}/{self._settings.ms_tenant}/oauth2/v2.0/authorize"

    def authorize_url(self, user_unique_id: str) -> str:
        """Consent URL; the Bubble user id rides along in `state` as JSON."""
        query = urlencode({
            "client_id": self._settings.ms_client_id,
            "response_type": "code",
            "redirect_uri": self._settings.ms_redirect_uri,
            "response_mode": "query",
            "scope": self._settings.ms_scope,
            "state": json.dumps({"u": user_unique_id}),
        })
        return f"{self.authorize_endpoint}?{query}"

    async def refresh(self, refresh_token: str) -> dict[str, Any]:
        """refresh_token grant → token set (raises TokenExchangeError)."""
        return await self._exchange({
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
        })

    async def redeem_code(self, code: str) -> dict[str, Any]:
        """authorization_code grant → token set (raises TokenExchangeError)."""
        return await self._exchange({
            "grant_type": "authorization_code",
            "code": code,
        })

    async def create_event(
        self, access_token: str, event: dict[str, Any],
    ) -> dict[str, Any]:
        """POST /me/events as the user; returns the created event resource."""
        result = await fetch_json(
            self._http, "POST", f"{GRAPH_BASE_URL}/me/events",
            json=event,
            headers={"Authorization": f"Bearer {access_token}"},
        )
        logger.info(
            "Graph create event responded",
            extra={"status": result.status, "ok": result.ok},
        )
        if not result.ok:
            raise CalendarPassthroughError(
                result.status, result.body,
                raw_content=None if result.is_json else result.content,
                content_type=result.content_type,
            )
        return result.body or {}

    async def _exchange(self, grant: dict[str, str]) -> dict[str, Any]:
        form = {
            "client_id": self._settings.ms_client_id,
            **grant,
            "redirect_uri": self._settings.ms_redirect_uri,
            "scope": self._settings.ms_scope,
        }
        if self._settings.ms_client_secret:
            form["client_secret"] = self._settings.ms_client_secret

        result = await fetch_json(self._http, "POST", self.token_url, data=form)
        token_set = result.body if isinstance(result.body, dict) else {}
        _log_token_response(grant["grant_type"], result, token_set)
        if not result.ok or not token_set.get("access_token"):
            raise TokenExchangeError(result.status, result.body_or_text())
        return token_set


def _log_token_response(
    grant_type: str, result: JSONResult, token_set: dict[str, Any],
) -> None:
    logger.info(
        f"Token endpoint responded to {grant_type} grant",
        extra={
            "status": result.status,
            "ok": result.ok,
            "has_access_token": bool(token_set.get("access_token")),
            "has_refresh_token": bool(token_set.get("refresh_token")),
            "expires_in": token_set.get("expires_in"),
        },
    )
