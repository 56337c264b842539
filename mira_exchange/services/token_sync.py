"""Token Sync — refresh/redeem Microsoft tokens and persist them to Bubble.

Invariants:
    - Token exchange happens first; a failed exchange means Bubble is never contacted
    - The saved refresh_token is the rotated one, or the caller's when Microsoft keeps it
    - Save goes through BubbleClient.save_tokens (ordered environment fallback)
    - Exhausted fallback raises BackendSaveError carrying the SaveResult
"""

import logging
from typing import Any

from mira_exchange.core.errors import BackendSaveError
from mira_exchange.core.token_payload import build_save_payload
from mira_exchange.infrastructure.bubble_client import BubbleClient, SaveResult
from mira_exchange.infrastructure.microsoft_identity import MicrosoftIdentityClient

logger = logging.getLogger(__name__)


class TokenSyncService:
    """Keeps Bubble's copy of a user's Microsoft tokens current."""

    def __init__(self, identity: MicrosoftIdentityClient, bubble: BubbleClient):
        self.identity = identity
        self.bubble = bubble

    async def refresh_and_save(
        self, user_unique_id: str, refresh_token: str,
    ) -> SaveResult:
        token_set = await self.identity.refresh(refresh_token)
        return await self._save(user_unique_id, token_set, refresh_token)

    async def connect_from_code(self, user_unique_id: str, code: str) -> SaveResult:
        """First-time consent: redeem the authorization code, then save."""
        token_set = await self.identity.redeem_code(code)
        return await self._save(user_unique_id, token_set, None)

    async def _save(
        self,
        user_unique_id: str,
        token_set: dict[str, Any],
        fallback_refresh_token: str | None,
    ) -> SaveResult:
        payload = build_save_payload(
            user_unique_id, token_set, fallback_refresh_token,
        )
        result = await self.bubble.save_tokens(payload)
        logger.info(
            "Token save finished",
            extra={
                "user_unique_id": user_unique_id,
                "ok": result.ok,
                "via": result.via,
                "base": result.base,
            },
        )
        if not result.ok:
            raise BackendSaveError(result.to_dict())
        return result
