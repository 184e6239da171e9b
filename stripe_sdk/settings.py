import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field


class Settings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Stripe API
    stripe_api_key: str = Field(default="", alias="STRIPE_API_KEY")
    stripe_endpoint: str = Field(
        default="https://api.stripe.com", alias="STRIPE_ENDPOINT"
    )
    stripe_api_version: str = Field(
        default="2025-02-24.acacia", alias="STRIPE_API_VERSION"
    )
    stripe_timeout: int = Field(default=10000, alias="STRIPE_TIMEOUT")  # ms
    stripe_max_retries: int = Field(default=0, ge=0, alias="STRIPE_MAX_RETRIES")

    # Response cache (optional)
    redis_url: str | None = Field(default=None, alias="REDIS_URL")
    cache_ttl_seconds: int | None = Field(default=None, alias="STRIPE_CACHE_TTL")


def load_settings() -> Settings:
    """Read .env (if any) and the process environment."""
    load_dotenv()
    return Settings.model_validate(dict(os.environ))
