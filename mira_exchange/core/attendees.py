"""Attendee Normalization — turns caller-supplied emails into Graph attendee entries.

Invariants:
    - Accepts a list of strings or one comma-delimited string (None → nothing)
    - Entries are trimmed; empty entries dropped
    - Dedupe is case-insensitive; the first-seen casing is what gets emitted
    - Output order follows input order
    - with_attendees() never mutates the caller's event; an empty attendee
      list means the key is absent, not []
"""

from typing import Any

ATTENDEE_TYPE = "required"


def split_emails(raw: list[str] | str | None) -> list[str]:
    """Flatten the accepted input shapes into a list of trimmed, non-empty strings."""
    if raw is None:
        return []
    items = raw.split(",") if isinstance(raw, str) else raw
    return [s.strip() for s in items if isinstance(s, str) and s.strip()]


def dedupe_emails(emails: list[str]) -> list[str]:
    seen: set[str] = set()
    unique = []
    for email in emails:
        key = email.lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append(email)
    return unique


def normalize_attendees(raw: list[str] | str | None) -> list[dict[str, Any]]:
    """Build Graph `attendees` entries, one required attendee per unique address."""
    return [
        {"emailAddress": {"address": email}, "type": ATTENDEE_TYPE}
        for email in dedupe_emails(split_emails(raw))
    ]


def with_attendees(
    event: dict[str, Any], attendees: list[dict[str, Any]],
) -> dict[str, Any]:
    """Shallow copy of `event` with `attendees` replaced; no attendees → no key."""
    merged = dict(event)
    if attendees:
        merged["attendees"] = attendees
    else:
        merged.pop("attendees", None)
    return merged
