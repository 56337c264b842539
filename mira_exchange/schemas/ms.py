"""Microsoft Relay Schemas — request/response contracts for the /ms endpoints.

Invariants:
    - Required ids/tokens are non-empty strings after stripping
    - attendees_emails accepts a list of strings or one comma-delimited string
    - event is an arbitrary JSON object in Graph's native event shape
    - Responses keep the field names Bubble workflows already read (via, j, webLink)
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator


def _require_text(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("must not be empty or whitespace")
    return v


class TokenRefreshRequest(BaseModel):
    """Refresh a user's token and persist it to Bubble."""
    user_unique_id: str
    refresh_token: str

    @field_validator("user_unique_id", "refresh_token")
    @classmethod
    def strip_required(cls, v: str) -> str:
        return _require_text(v)


class RawRefreshRequest(BaseModel):
    """Refresh only: the token set is returned, not saved."""
    refresh_token: str

    @field_validator("refresh_token")
    @classmethod
    def strip_required(cls, v: str) -> str:
        return _require_text(v)


class EventCreateRequest(BaseModel):
    """Create a Graph calendar event for a Bubble user."""
    user_unique_id: str
    event: dict[str, Any]
    attendees_emails: list[str] | str | None = None

    @field_validator("user_unique_id")
    @classmethod
    def strip_required(cls, v: str) -> str:
        return _require_text(v)


class RefreshSaveResponse(BaseModel):
    ok: bool = True
    via: str
    base: str
    status: int
    j: Any = None


class CreateEventResponse(BaseModel):
    ok: bool = True
    id: str | None = None
    web_link: str | None = Field(None, serialization_alias="webLink")
    raw: dict[str, Any]


class HealthResponse(BaseModel):
    ok: bool = True
