"""Token Save Payload — the body Bubble's `ms_token_upsert` workflow expects.

Invariants:
    - `bubble_user_id` is the caller's Bubble unique id (workflow parameter name)
    - refresh_token falls back to the one we exchanged when Microsoft omits it
      (Microsoft may or may not rotate refresh tokens)
    - server_now_iso is UTC, millisecond precision, `Z` suffix
"""

from datetime import datetime, timezone
from typing import Any


def format_server_now(now: datetime | None = None) -> str:
    """ISO-8601 UTC timestamp with milliseconds, e.g. 2025-01-31T12:00:00.000Z."""
    now = now or datetime.now(timezone.utc)
    stamp = now.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


def build_save_payload(
    bubble_user_id: str,
    token_set: dict[str, Any],
    fallback_refresh_token: str | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    return {
        "bubble_user_id": bubble_user_id,
        "access_token": token_set.get("access_token"),
        "refresh_token": token_set.get("refresh_token") or fallback_refresh_token,
        "expires_in": token_set.get("expires_in"),
        "scope": token_set.get("scope"),
        "token_type": token_set.get("token_type"),
        "server_now_iso": format_server_now(now),
    }
