"""Route Dependencies — settings, outbound clients, services and the relay key check.

Invariants:
    - Routes never build clients themselves; everything arrives via Depends
    - require_api_key runs before body validation (sub-dependencies resolve first)
    - An unconfigured relay key rejects every caller
    - Key comparison is constant-time

Design Decisions:
    - Both `x-api-key` and `Authorization: Bearer` accepted: Bubble's API
      Connector sends either depending on how the call was set up
"""

import secrets

import httpx
from fastapi import Depends, Header

from mira_exchange.config import Settings, get_settings
from mira_exchange.core.errors import UnauthorizedError
from mira_exchange.infrastructure.bubble_client import BubbleClient
from mira_exchange.infrastructure.http import get_http_client
from mira_exchange.infrastructure.microsoft_identity import MicrosoftIdentityClient
from mira_exchange.services.calendar_events import CalendarEventService
from mira_exchange.services.token_sync import TokenSyncService

BEARER_PREFIX = "bearer "


def _presented_key(x_api_key: str | None, authorization: str | None) -> str | None:
    if x_api_key:
        return x_api_key
    if authorization and authorization.lower().startswith(BEARER_PREFIX):
        return authorization[len(BEARER_PREFIX):].strip()
    return None


async def require_api_key(
    x_api_key: str | None = Header(None),
    authorization: str | None = Header(None),
    settings: Settings = Depends(get_settings),
) -> None:
    expected = settings.bubble_api_key
    presented = _presented_key(x_api_key, authorization)
    if not expected or not presented:
        raise UnauthorizedError()
    if not secrets.compare_digest(presented.encode(), expected.encode()):
        raise UnauthorizedError()


def get_identity_client(
    settings: Settings = Depends(get_settings),
    http_client: httpx.AsyncClient = Depends(get_http_client),
) -> MicrosoftIdentityClient:
    return MicrosoftIdentityClient(settings, http_client)


def get_bubble_client(
    settings: Settings = Depends(get_settings),
    http_client: httpx.AsyncClient = Depends(get_http_client),
) -> BubbleClient:
    return BubbleClient(settings, http_client)


def get_token_sync(
    identity: MicrosoftIdentityClient = Depends(get_identity_client),
    bubble: BubbleClient = Depends(get_bubble_client),
) -> TokenSyncService:
    return TokenSyncService(identity, bubble)


def get_calendar_events(
    identity: MicrosoftIdentityClient = Depends(get_identity_client),
    bubble: BubbleClient = Depends(get_bubble_client),
) -> CalendarEventService:
    return CalendarEventService(identity, bubble)
