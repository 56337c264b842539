"""Error Hierarchy — typed, categorized exceptions for every relay failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Client/upstream errors are 4xx; unexpected failures never reach this hierarchy
    - to_response() produces the REST envelope; upstream bodies travel in `details`
    - CalendarPassthroughError is the one exception: its response IS the upstream body
      (raw bytes and content type when that body was not JSON)

Design Decisions:
    - Single hierarchy with RelayError base: FastAPI global handler catches all
    - Upstream failures map to 400 (not 502): callers are Bubble workflows that
      branch on 200 vs 400 and inspect `details` for the provider's reason
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


class RelayError(Exception):
    """Base exception for all relay errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        http_status: int = 500,
        details: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.http_status = http_status
        self.details = details
        self.timestamp = datetime.now(timezone.utc)

    def to_response(self) -> Any:
        """Convert to standardized REST error response."""
        error: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.details is not None:
            error["details"] = self.details
        return {"ok": False, "error": error}


# ─── Inbound (400/401) ──────────────────────────────────────────

class UnauthorizedError(RelayError):
    """Caller did not present the static relay key."""
    def __init__(self):
        super().__init__(
            "Unauthorized", "UNAUTHORIZED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, 401,
        )


class MissingParameterError(RelayError):
    """A required query parameter was absent (body fields go through Pydantic)."""
    def __init__(self, name: str):
        super().__init__(
            f"Missing {name}", "MISSING_PARAMETER", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, 400,
        )
        self.name = name


# ─── Upstream (identity provider / Bubble) ──────────────────────

class TokenExchangeError(RelayError):
    """Identity provider did not return a usable token set."""
    def __init__(self, status: int, provider_body: Any):
        super().__init__(
            f"Token exchange failed with status {status}",
            "TOKEN_EXCHANGE_FAILED", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, 400, provider_body,
        )
        self.status = status


class BackendSaveError(RelayError):
    """No candidate Bubble environment accepted the token upsert."""
    def __init__(self, save_result: dict):
        super().__init__(
            "Could not save tokens to any backend environment",
            "BACKEND_SAVE_FAILED", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, 400, save_result,
        )


class UserTokenMissingError(RelayError):
    """The Bubble user record carries no Microsoft access token."""
    def __init__(self, user_unique_id: str, lookup_status: int | None = None):
        super().__init__(
            f"No ms_access_token stored for user '{user_unique_id}'",
            "USER_TOKEN_MISSING", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, 400, {"lookup_status": lookup_status},
        )
        self.user_unique_id = user_unique_id


class CalendarPassthroughError(RelayError):
    """Graph rejected the event; status and body are relayed verbatim.

    `raw_content` is set only when Graph's body was not JSON; the handler then
    replays those bytes with Graph's content type instead of a JSON body.
    """
    def __init__(
        self,
        status: int,
        provider_body: Any,
        raw_content: bytes | None = None,
        content_type: str | None = None,
    ):
        super().__init__(
            f"Calendar API responded with status {status}",
            "CALENDAR_API_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, status, provider_body,
        )
        self.raw_content = raw_content
        self.content_type = content_type

    def to_response(self) -> Any:
        return self.details
