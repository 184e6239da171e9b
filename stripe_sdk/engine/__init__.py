"""
Request-pipeline engine - declarative REST client building blocks.

Provides:
- EndpointRegistry: operation name -> (path template, verb)
- InterceptorChain: ordered request/response transforms
- CacheProvider: pluggable memoization (memory, Redis)
- Dispatcher: timeout, retry and backoff
- Sdk: facade exposing one callable per registered operation
"""

from stripe_sdk.engine.errors import (
    CacheProviderError,
    CancelledError,
    ConfigurationError,
    MissingPathParameterError,
    RemoteError,
    SdkError,
    TransportError,
    UnknownOperationError,
)
from stripe_sdk.engine.cache import (
    CacheEntry,
    CacheProvider,
    MemoryCacheProvider,
    RedisCacheProvider,
    fingerprint,
)
from stripe_sdk.engine.routes import EndpointRegistry, HttpVerb, Route
from stripe_sdk.engine.resolver import (
    FORM_CONTENT_TYPE,
    JSON_CONTENT_TYPE,
    resolve_path,
)
from stripe_sdk.engine.interceptors import (
    InterceptorChain,
    RequestContext,
    bearer_auth,
    content_type_by_prefix,
    idempotency_header,
    static_header,
)
from stripe_sdk.engine.dispatcher import Dispatcher, RetryPolicy
from stripe_sdk.engine.deduplicator import RequestDeduplicator
from stripe_sdk.engine.sdk import Sdk, SdkConfig

__all__ = [
    # Errors
    "SdkError",
    "ConfigurationError",
    "UnknownOperationError",
    "MissingPathParameterError",
    "TransportError",
    "RemoteError",
    "CacheProviderError",
    "CancelledError",
    # Cache
    "CacheEntry",
    "CacheProvider",
    "MemoryCacheProvider",
    "RedisCacheProvider",
    "fingerprint",
    # Routing
    "EndpointRegistry",
    "HttpVerb",
    "Route",
    "resolve_path",
    "FORM_CONTENT_TYPE",
    "JSON_CONTENT_TYPE",
    # Interceptors
    "InterceptorChain",
    "RequestContext",
    "bearer_auth",
    "content_type_by_prefix",
    "idempotency_header",
    "static_header",
    # Dispatch
    "Dispatcher",
    "RetryPolicy",
    "RequestDeduplicator",
    # Facade
    "Sdk",
    "SdkConfig",
]
