"""Health Check — liveness endpoint for the hosting platform.

Invariants:
    - GET /health always returns 200 {"ok": true} if the process is up
    - No outbound calls, no auth
"""

from fastapi import APIRouter, status

from mira_exchange.schemas.ms import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness check."""
    return HealthResponse()
