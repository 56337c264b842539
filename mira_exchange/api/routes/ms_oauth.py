"""Microsoft Consent Routes — browser-facing authorize redirect and callback.

Invariants:
    - /ms/auth needs ?u=<bubble user id>; it travels through Microsoft in `state`
    - /ms/callback redeems the code, saves via the environment fallback, then
      sends the browser back to the primary Bubble base's dashboard
    - No relay key here: these are hit by the user's browser, not by Bubble
"""

import json
import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse

from mira_exchange.api.dependencies import get_identity_client, get_token_sync
from mira_exchange.config import Settings, get_settings
from mira_exchange.core.errors import MissingParameterError
from mira_exchange.infrastructure.microsoft_identity import MicrosoftIdentityClient
from mira_exchange.services.token_sync import TokenSyncService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/ms", tags=["ms-oauth"])

DASHBOARD_PATH = "/dashboard?ms=connected"


def decode_state_user(state: str | None) -> str | None:
    """Pull the Bubble user id out of the JSON `state` round-tripped by Microsoft."""
    if not state:
        return None
    try:
        decoded = json.loads(state)
    except ValueError:
        return None
    if not isinstance(decoded, dict):
        return None
    user = decoded.get("u")
    return user if isinstance(user, str) and user else None


@router.get("/auth")
async def start_auth(
    u: str | None = Query(None),
    identity: MicrosoftIdentityClient = Depends(get_identity_client),
):
    """Send the user to Microsoft's consent screen."""
    if not u:
        raise MissingParameterError("?u=user_unique_id")
    logger.info("Redirecting to Microsoft consent", extra={"user_unique_id": u})
    return RedirectResponse(identity.authorize_url(u))


@router.get("/callback")
async def auth_callback(
    code: str | None = Query(None),
    state: str | None = Query(None),
    token_sync: TokenSyncService = Depends(get_token_sync),
    settings: Settings = Depends(get_settings),
):
    """Redeem the authorization code and store the first token set in Bubble."""
    if not code:
        raise MissingParameterError("code")
    user_unique_id = decode_state_user(state)
    if not user_unique_id:
        raise MissingParameterError("user id in state")

    logger.info("Consent callback received", extra={"user_unique_id": user_unique_id})
    await token_sync.connect_from_code(user_unique_id, code)
    return RedirectResponse(f"{settings.bubble_bases[0]}{DASHBOARD_PATH}")
