"""
Stripe client factory - wires the route tables and default interceptors
onto an Sdk instance.

Usage:
    sdk = stripe_sdk(StripeSDKConfig(api_key="sk_test_..."))
    customer = await sdk.get_customer({"customer_id": "cus_123"})
    await sdk.close()
"""

from datetime import timedelta
from typing import Any, Callable

import httpx
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field
from redis.asyncio import Redis

from stripe_sdk.endpoints import V2_PREFIX, register_v1_endpoints, register_v2_endpoints
from stripe_sdk.engine import (
    CacheProvider,
    RedisCacheProvider,
    RequestContext,
    Sdk,
    SdkConfig,
    bearer_auth,
    content_type_by_prefix,
    idempotency_header,
)
from stripe_sdk.settings import Settings, load_settings

DEFAULT_ENDPOINT = "https://api.stripe.com"
DEFAULT_API_VERSION = "2025-02-24.acacia"


class StripeSDKConfig(BaseModel):
    """Client options. Defaults are applied per instance."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    api_key: str = Field(min_length=1)
    endpoint: str = DEFAULT_ENDPOINT
    timeout: int = Field(default=10000, gt=0)  # ms
    max_retries: int = Field(default=0, ge=0)
    api_version: str = DEFAULT_API_VERSION
    cache_provider: CacheProvider | None = None
    cache_ttl: timedelta | None = None
    custom_response_transformer: Callable[..., Any] | None = None
    retry_base_delay: float = Field(default=0.5, ge=0)
    retry_multiplier: float = Field(default=2.0, ge=0)
    http_client: httpx.AsyncClient | None = None


def log_response(payload: Any, context: RequestContext, response: httpx.Response) -> Any:
    """Default response transformer: debug-log and pass the payload through."""
    logger.debug(
        f"{context.operation}: HTTP {response.status_code}, "
        f"request-id={response.headers.get('request-id')}"
    )
    return payload


def stripe_sdk(config: StripeSDKConfig) -> Sdk:
    sdk = Sdk(
        SdkConfig(
            base_url=config.endpoint,
            timeout=config.timeout,
            max_retries=config.max_retries,
            api_version=config.api_version,
            cache_provider=config.cache_provider,
            cache_ttl=config.cache_ttl,
            response_transformer=config.custom_response_transformer or log_response,
            retry_base_delay=config.retry_base_delay,
            retry_multiplier=config.retry_multiplier,
        ),
        http_client=config.http_client,
    )

    # Stripe-Version is added by the engine from SdkConfig.api_version
    sdk.add_request_interceptor("auth", bearer_auth(config.api_key))
    sdk.add_request_interceptor("idempotency", idempotency_header("Idempotency-Key"))
    sdk.add_request_interceptor("content_type", content_type_by_prefix(V2_PREFIX))

    register_v1_endpoints(sdk)
    register_v2_endpoints(sdk)

    logger.debug(
        f"Stripe SDK ready: {len(sdk.routes())} operations, "
        f"api_version={config.api_version}"
    )
    return sdk


def stripe_sdk_from_env(settings: Settings | None = None, **overrides: Any) -> Sdk:
    """Build a client from STRIPE_* / REDIS_URL environment settings."""
    settings = settings or load_settings()

    cache_provider = None
    if settings.redis_url:
        cache_provider = RedisCacheProvider(Redis.from_url(settings.redis_url))

    options: dict[str, Any] = {
        "api_key": settings.stripe_api_key,
        "endpoint": settings.stripe_endpoint,
        "api_version": settings.stripe_api_version,
        "timeout": settings.stripe_timeout,
        "max_retries": settings.stripe_max_retries,
        "cache_provider": cache_provider,
        "cache_ttl": (
            timedelta(seconds=settings.cache_ttl_seconds)
            if settings.cache_ttl_seconds
            else None
        ),
    }
    options.update(overrides)
    return stripe_sdk(StripeSDKConfig(**options))
