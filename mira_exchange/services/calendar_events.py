"""Calendar Events — create a Graph event with the user's stored Microsoft token.

Invariants:
    - User lookup precedes everything; no stored ms_access_token → no Graph call
    - The caller's event dict is never mutated (with_attendees copies it)
    - Graph non-2xx propagates as CalendarPassthroughError (status + body verbatim)
"""

import logging
from typing import Any

from mira_exchange.core.attendees import normalize_attendees, with_attendees
from mira_exchange.core.errors import UserTokenMissingError
from mira_exchange.infrastructure.bubble_client import BubbleClient
from mira_exchange.infrastructure.microsoft_identity import MicrosoftIdentityClient

logger = logging.getLogger(__name__)

ACCESS_TOKEN_FIELD = "ms_access_token"


class CalendarEventService:
    """Creates events in a Bubble user's Outlook calendar."""

    def __init__(self, identity: MicrosoftIdentityClient, bubble: BubbleClient):
        self.identity = identity
        self.bubble = bubble

    async def create_event(
        self,
        user_unique_id: str,
        event: dict[str, Any],
        attendees_emails: list[str] | str | None = None,
    ) -> dict[str, Any]:
        """Returns the raw Graph event resource."""
        lookup = await self.bubble.fetch_user(user_unique_id)
        access_token = lookup.record.get(ACCESS_TOKEN_FIELD)
        if not access_token:
            raise UserTokenMissingError(user_unique_id, lookup.status)

        attendees = normalize_attendees(attendees_emails)
        body = with_attendees(event, attendees)
        logger.info(
            "Creating calendar event",
            extra={
                "user_unique_id": user_unique_id,
                "attendee_count": len(attendees),
            },
        )
        return await self.identity.create_event(access_token, body)
