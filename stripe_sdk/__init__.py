"""
stripe_sdk - declarative async client for the Stripe v1 and v2 APIs.
"""

from stripe_sdk.client import (
    DEFAULT_API_VERSION,
    DEFAULT_ENDPOINT,
    StripeSDKConfig,
    stripe_sdk,
    stripe_sdk_from_env,
)
from stripe_sdk.engine import (
    CacheProvider,
    CancelledError,
    ConfigurationError,
    MemoryCacheProvider,
    MissingPathParameterError,
    RedisCacheProvider,
    RemoteError,
    Sdk,
    SdkConfig,
    SdkError,
    TransportError,
    UnknownOperationError,
)
from stripe_sdk.pagination import extract_page_token, paginate

__all__ = [
    "DEFAULT_API_VERSION",
    "DEFAULT_ENDPOINT",
    "StripeSDKConfig",
    "stripe_sdk",
    "stripe_sdk_from_env",
    "CacheProvider",
    "MemoryCacheProvider",
    "RedisCacheProvider",
    "Sdk",
    "SdkConfig",
    "SdkError",
    "ConfigurationError",
    "UnknownOperationError",
    "MissingPathParameterError",
    "TransportError",
    "RemoteError",
    "CancelledError",
    "extract_page_token",
    "paginate",
]
