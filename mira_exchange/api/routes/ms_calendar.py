"""Microsoft Calendar Routes — create an Outlook event for a Bubble user.

Invariants:
    - Requires the relay key
    - Success: {ok, id, webLink, raw}; Graph failures pass through untouched
"""

from fastapi import APIRouter, Depends

from mira_exchange.api.dependencies import get_calendar_events, require_api_key
from mira_exchange.schemas.ms import CreateEventResponse, EventCreateRequest
from mira_exchange.services.calendar_events import CalendarEventService

router = APIRouter(
    prefix="/ms", tags=["ms-calendar"], dependencies=[Depends(require_api_key)],
)


@router.post("/create-event", response_model=CreateEventResponse)
async def create_event(
    body: EventCreateRequest,
    calendar: CalendarEventService = Depends(get_calendar_events),
):
    created = await calendar.create_event(
        body.user_unique_id, body.event, body.attendees_emails,
    )
    return CreateEventResponse(
        id=created.get("id"), web_link=created.get("webLink"), raw=created,
    )
