"""Root conftest — shared test configuration and fixtures.

Invariants:
    - Tests never talk to real Microsoft or Bubble endpoints: the outbound
      client is always a FakeUpstream-backed MockTransport
    - get_settings is overridden with an explicit Settings (no .env leakage)
"""

import os

# Ensure tests don't accidentally pick up real credentials
os.environ.setdefault("MIRAGPT_API_KEY", "relay-key")
os.environ.setdefault("MS_APP_CLIENT_ID", "client-id")

import pytest
from httpx import ASGITransport, AsyncClient

from mira_exchange.config import Settings, get_settings
from mira_exchange.infrastructure.http import get_http_client
from mira_exchange.main import app
from tests.fake_upstream import LIVE_BASE, FakeUpstream

RELAY_KEY = "relay-key"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        base_url="https://relay.example.com",
        bubble_base_url=LIVE_BASE,
        bubble_api_key=RELAY_KEY,
        ms_client_id="client-id",
        ms_client_secret="client-secret",
        ms_tenant="common",
    )


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
async def http_client(upstream):
    async with upstream.client() as c:
        yield c


@pytest.fixture
async def client(settings, http_client):
    """FastAPI test client with settings and outbound HTTP overridden."""
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_http_client] = lambda: http_client

    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
        headers={"x-api-key": RELAY_KEY},
    ) as c:
        yield c

    app.dependency_overrides.clear()
