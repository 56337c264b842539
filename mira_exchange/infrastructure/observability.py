"""Structured Logging — JSON formatter and setup for production observability.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Extra fields (user_unique_id, base, status, via, error_code) surfaced when present
    - Tokens and keys are never passed as extras, only has_* presence flags
    - JSON format in production, human-readable in development

Design Decisions:
    - Stdlib logging with a small JSONFormatter: each relay log line is one JSON
      object keyed by the EXTRA_KEYS fields, ready for the host's log search
    - setup_logging called once on startup via lifespan; idempotent so test
      clients re-entering the lifespan don't stack handlers
"""

import json
import logging
from datetime import datetime, timezone

EXTRA_KEYS = (
    "user_unique_id", "base", "status", "ok", "via", "error_code", "path",
    "has_access_token", "has_refresh_token", "expires_in", "attendee_count",
)


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in EXTRA_KEYS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json"):
    """Configure logging for the application."""
    handler = logging.StreamHandler()
    handler.set_name("mira_exchange")
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s — %(message)s",
        ))
    for existing in list(logging.root.handlers):
        if existing.get_name() == "mira_exchange":
            logging.root.removeHandler(existing)
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
