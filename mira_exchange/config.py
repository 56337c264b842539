"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache): one instance per process
    - Settings are frozen: handlers receive them through Depends(get_settings)
    - Base URLs never carry a trailing slash

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Bubble API key accepts MIRAGPT_API_KEY first, BUBBLE_API_KEY second (legacy deployments)
"""

from functools import lru_cache

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MS_SCOPE = "User.Read Calendars.ReadWrite offline_access openid profile email"
VERSION_TEST_SEGMENT = "/version-test"


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, frozen=True,
        extra="ignore", populate_by_name=True,
    )

    # Server
    port: int = 10000
    base_url: str = "https://mira-exchange.onrender.com"

    # Bubble (backend platform)
    bubble_base_url: str = "https://mira-fm.com"
    bubble_api_key: str | None = Field(
        None, validation_alias=AliasChoices("MIRAGPT_API_KEY", "BUBBLE_API_KEY"),
    )

    # Microsoft identity platform
    ms_client_id: str = Field("", validation_alias="MS_APP_CLIENT_ID")
    ms_client_secret: str | None = Field(None, validation_alias="MS_APP_CLIENT_SECRET")
    ms_tenant: str = "common"
    ms_scope: str = DEFAULT_MS_SCOPE
    ms_redirect_live: str | None = None

    # API
    cors_origins: list[str] = ["*"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("base_url", "bubble_base_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    @property
    def ms_redirect_uri(self) -> str:
        """Redirect URI registered for the app; defaults to our own callback."""
        return self.ms_redirect_live or f"{self.base_url}/ms/callback"

    @property
    def bubble_bases(self) -> list[str]:
        """Candidate Bubble bases in priority order (configured env first)."""
        return candidate_bases(self.bubble_base_url)


def candidate_bases(base: str) -> list[str]:
    """Live and version-test deployments of the same app, configured one first."""
    base = base.rstrip("/")
    if not base:
        return []
    if VERSION_TEST_SEGMENT in base:
        bases = [base, base.replace(VERSION_TEST_SEGMENT, "")]
    else:
        bases = [base, f"{base}{VERSION_TEST_SEGMENT}"]
    doubled = VERSION_TEST_SEGMENT * 2
    return [b.replace(doubled, VERSION_TEST_SEGMENT) for b in bases]


@lru_cache
def get_settings() -> Settings:
    return Settings()
