"""Microsoft Token Routes — refresh-and-save for Bubble, plus raw refresh.

Invariants:
    - Both endpoints require the relay key
    - Missing/empty fields are rejected by Pydantic (400) before any outbound call
    - /ms/refresh-save answers {ok, via, base, status, j} on success
    - /ms/refresh returns Microsoft's token set as-is and saves nothing
"""

import logging

from fastapi import APIRouter, Depends

from mira_exchange.api.dependencies import (
    get_identity_client, get_token_sync, require_api_key,
)
from mira_exchange.infrastructure.microsoft_identity import MicrosoftIdentityClient
from mira_exchange.schemas.ms import (
    RawRefreshRequest, RefreshSaveResponse, TokenRefreshRequest,
)
from mira_exchange.services.token_sync import TokenSyncService

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/ms", tags=["ms-tokens"], dependencies=[Depends(require_api_key)],
)


@router.post("/refresh-save", response_model=RefreshSaveResponse)
async def refresh_save(
    body: TokenRefreshRequest,
    token_sync: TokenSyncService = Depends(get_token_sync),
):
    """Refresh the user's Microsoft token and upsert it into Bubble."""
    logger.info(
        "refresh-save requested", extra={"user_unique_id": body.user_unique_id},
    )
    result = await token_sync.refresh_and_save(
        body.user_unique_id, body.refresh_token,
    )
    return RefreshSaveResponse(
        via=result.via, base=result.base, status=result.status, j=result.j,
    )


@router.post("/refresh")
async def refresh(
    body: RawRefreshRequest,
    identity: MicrosoftIdentityClient = Depends(get_identity_client),
):
    """Refresh only; Bubble stores the returned tokens itself."""
    return await identity.refresh(body.refresh_token)
