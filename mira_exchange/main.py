"""Mira Exchange API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map RelayError → structured JSON responses
    - CORS configured from settings (all origins by default)
    - One outbound httpx client opened on startup, closed on shutdown

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Error handlers live in api/error_handlers.py to keep this module about wiring
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mira_exchange.api.error_handlers import register_error_handlers
from mira_exchange.api.routes import health, ms_calendar, ms_oauth, ms_tokens
from mira_exchange.config import get_settings
from mira_exchange.infrastructure.http import create_http_client
from mira_exchange.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    app.state.http_client = create_http_client()
    logger.info(
        f"Mira Exchange started, health at {settings.base_url}/health",
        extra={"base": settings.bubble_base_url},
    )
    yield
    await app.state.http_client.aclose()
    logger.info("Mira Exchange shutting down")


app = FastAPI(title="Mira Exchange", version="1.0.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(ms_tokens.router)
app.include_router(ms_calendar.router)
app.include_router(ms_oauth.router)

register_error_handlers(app)


def run() -> None:
    """Console entry point: serve on the configured port."""
    uvicorn.run(
        "mira_exchange.main:app", host="0.0.0.0", port=get_settings().port,
    )
