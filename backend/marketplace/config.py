"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — read once, single instance per process
    - platform_fee_bps is an integer in 0..10000

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box locally
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://market:market@db:5432/market"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres hands out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10
    ledger_max_write_retries: int = 3

    # Pricing
    platform_fee_bps: int = 1000
    currency: str = "jpy"

    @field_validator("platform_fee_bps")
    @classmethod
    def check_fee_bps(cls, v: int) -> int:
        if not 0 <= v <= 10_000:
            raise ValueError("platform_fee_bps must be within 0..10000")
        return v

    # Public URLs (checkout redirects, onboarding return)
    public_base_url: str = "http://localhost:3000"

    # Stripe
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""
    stripe_api_base: str = "https://api.stripe.com"
    stripe_timeout_seconds: float = 30.0
    stripe_max_retries: int = 2
    stripe_base_delay_ms: int = 500
    stripe_max_delay_ms: int = 8_000
    webhook_tolerance_seconds: int = 300

    # Admin
    admin_key: str = ""
    second_admin_key: str = ""

    # API
    cors_origins: list[str] = ["*"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
