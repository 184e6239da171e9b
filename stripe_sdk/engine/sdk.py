"""
Sdk - declarative client facade over the request pipeline.

Combines:
- EndpointRegistry for operation name -> route lookup
- InterceptorChain for request/response transforms
- CacheProvider for memoizing cacheable calls
- Dispatcher for timeout, retry and status classification
"""

import asyncio
import functools
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Awaitable, Callable, Mapping

import httpx
from loguru import logger

from stripe_sdk.engine.cache import CacheProvider, fingerprint
from stripe_sdk.engine.deduplicator import RequestDeduplicator
from stripe_sdk.engine.dispatcher import (
    Dispatcher,
    RetryPolicy,
    decode_body,
    default_retryable_status,
    default_validate_status,
)
from stripe_sdk.engine.errors import ConfigurationError, UnknownOperationError
from stripe_sdk.engine.interceptors import (
    InterceptorChain,
    RequestContext,
    RequestInterceptor,
    ResponseInterceptor,
    static_header,
)
from stripe_sdk.engine.resolver import resolve_path
from stripe_sdk.engine.routes import EndpointRegistry, HttpVerb, Route


@dataclass
class SdkConfig:
    """Construction options for an Sdk instance."""

    base_url: str
    timeout: int = 10000  # milliseconds, per attempt
    max_retries: int = 0
    api_version: str | None = None
    api_version_header: str = "Stripe-Version"
    cache_provider: CacheProvider | None = None
    response_transformer: ResponseInterceptor | None = None
    validate_status: Callable[[int], bool] = default_validate_status
    retry_base_delay: float = 0.5  # seconds
    retry_multiplier: float = 2.0
    retryable_status: Callable[[int], bool] = default_retryable_status
    cache_ttl: timedelta | None = None
    cacheable_verbs: frozenset[HttpVerb] = frozenset({HttpVerb.GET})
    coalesce_inflight: bool = False

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ConfigurationError("base_url must be a non-empty string")
        if self.timeout <= 0:
            raise ConfigurationError("timeout must be a positive number of ms")
        if self.max_retries < 0:
            raise ConfigurationError("max_retries must be >= 0")
        if self.retry_base_delay < 0 or self.retry_multiplier < 0:
            raise ConfigurationError("retry_base_delay and retry_multiplier must be >= 0")
        self.cacheable_verbs = frozenset(HttpVerb.parse(v) for v in self.cacheable_verbs)

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_retries=self.max_retries,
            base_delay=self.retry_base_delay,
            multiplier=self.retry_multiplier,
            retryable_status=self.retryable_status,
        )


class Sdk:
    """
    Declarative REST client. Every registered route becomes a callable.

    Usage:
        sdk = Sdk(SdkConfig(base_url="https://api.example.com"))
        sdk.register("get_customer", "/v1/customers/{customer_id}", "GET")
        sdk.add_request_interceptor("auth", bearer_auth("sk_test_123"))

        customer = await sdk.get_customer({"customer_id": "cus_1"})
        # same as
        customer = await sdk.invoke("get_customer", {"customer_id": "cus_1"})
    """

    def __init__(
        self,
        config: SdkConfig,
        http_client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.config = config
        self._registry = EndpointRegistry()
        self._chain = InterceptorChain()
        self._cache = config.cache_provider
        self._deduplicator = RequestDeduplicator()
        self._sleep = sleep

        # HTTP client (lazy unless injected; injected clients are not closed)
        self._http_client = http_client
        self._owns_http_client = http_client is None
        self._dispatcher: Dispatcher | None = None

        if config.api_version:
            self._chain.add_request(
                "api_version", static_header(config.api_version_header, config.api_version)
            )
        if config.response_transformer is not None:
            self._chain.add_response("response_transformer", config.response_transformer)

    # Registration surface

    def register(self, name: str, path_template: str, verb: HttpVerb | str) -> Route:
        return self._registry.register(name, path_template, verb)

    def unregister(self, name: str) -> bool:
        return self._registry.unregister(name)

    def routes(self) -> Mapping[str, Route]:
        return self._registry.routes()

    def add_request_interceptor(self, name: str, fn: RequestInterceptor) -> None:
        self._chain.add_request(name, fn)

    def add_response_interceptor(self, name: str, fn: ResponseInterceptor) -> None:
        self._chain.add_response(name, fn)

    def remove_request_interceptor(self, name: str) -> bool:
        return self._chain.remove_request(name)

    def remove_response_interceptor(self, name: str) -> bool:
        return self._chain.remove_response(name)

    def request_interceptor_names(self) -> tuple[str, ...]:
        return self._chain.request_stage_names()

    def response_interceptor_names(self) -> tuple[str, ...]:
        return self._chain.response_stage_names()

    def __getattr__(self, name: str) -> Callable[..., Awaitable[Any]]:
        if name.startswith("_"):
            raise AttributeError(name)
        if name in self.__dict__.get("_registry", ()):
            return functools.partial(self.invoke, name)
        raise AttributeError(
            f"'{type(self).__name__}' has no attribute or operation '{name}'"
        )

    def __contains__(self, name: object) -> bool:
        return name in self._registry

    # Invocation

    async def invoke(
        self,
        name: str,
        args: Mapping[str, Any] | None = None,
        *,
        idempotency_key: str | None = None,
    ) -> Any:
        """
        Run one logical call through the pipeline.

        Args:
            name: Registered operation name
            args: Call arguments; placeholder keys fill the path template,
                the rest become query parameters or body fields
            idempotency_key: Caller-supplied key, generated when omitted

        Returns:
            Decoded (and transformed) response body

        Raises:
            UnknownOperationError: If name was never registered
            MissingPathParameterError: If a placeholder has no argument
            TransportError: On timeout/connection failure after retries
            RemoteError: If the status predicate rejects the response
        """
        context = await self._prepare(name, args, idempotency_key)

        if not self._is_cacheable(context):
            payload, _ = await self._execute(context)
            return payload

        cache_key = fingerprint(name, context.verb.value, context.url, context.payload)
        cached = await self._cache_get(cache_key)
        if cached is not None:
            logger.debug(f"{name}: served from cache")
            return cached

        if self.config.coalesce_inflight:
            return await self._deduplicator.dedupe(
                cache_key, lambda: self._execute_and_store(cache_key, context)
            )
        return await self._execute_and_store(cache_key, context)

    async def invalidate(self, name: str, args: Mapping[str, Any] | None = None) -> None:
        """Drop the cached response of a call, if any."""
        if self._cache is None:
            return
        context = await self._prepare(name, args, None)
        cache_key = fingerprint(name, context.verb.value, context.url, context.payload)
        try:
            await self._cache.invalidate(cache_key)
        except Exception as e:
            logger.warning(f"{name}: cache invalidate failed: {e}")

    async def _prepare(
        self,
        name: str,
        args: Mapping[str, Any] | None,
        idempotency_key: str | None,
    ) -> RequestContext:
        route = self._registry.get(name)
        if route is None:
            raise UnknownOperationError(name)

        args = self._validate_args(name, args)
        resolved = resolve_path(route, args)

        context = RequestContext(
            operation=name,
            verb=route.verb,
            path=resolved.path,
            url=self._join_url(resolved.path),
            payload=resolved.payload,
            extras={"path_params": resolved.path_params},
        )
        if idempotency_key is not None:
            if not isinstance(idempotency_key, str) or not idempotency_key:
                raise TypeError("idempotency_key must be a non-empty string")
            context.idempotency_key = idempotency_key

        return await self._chain.run_request(context, args)

    @staticmethod
    def _validate_args(name: str, args: Mapping[str, Any] | None) -> Mapping[str, Any]:
        if args is None:
            return {}
        if not isinstance(args, Mapping):
            raise TypeError(
                f"Arguments for '{name}' must be a mapping, got {type(args).__name__}"
            )
        for key in args:
            if not isinstance(key, str):
                raise TypeError(f"Argument keys for '{name}' must be strings: {key!r}")
        return args

    def _join_url(self, path: str) -> str:
        return f"{self.config.base_url.rstrip('/')}/{path.lstrip('/')}"

    def _is_cacheable(self, context: RequestContext) -> bool:
        return self._cache is not None and context.verb in self.config.cacheable_verbs

    async def _execute(self, context: RequestContext) -> tuple[Any, httpx.Response]:
        dispatcher = self._get_dispatcher()
        response = await dispatcher.send(context)
        payload = decode_body(response)
        payload = await self._chain.run_response(payload, context, response)
        return payload, response

    async def _execute_and_store(self, cache_key: str, context: RequestContext) -> Any:
        payload, response = await self._execute(context)
        # Delivered 4xx bodies are returned but never memoized.
        if payload is not None and response.is_success:
            await self._cache_set(cache_key, payload)
        return payload

    # Cache access is best-effort: provider failures never fail a call.

    async def _cache_get(self, key: str) -> Any | None:
        try:
            return await self._cache.get(key)
        except Exception as e:
            logger.warning(f"Cache read failed, treating as miss: {e}")
            return None

    async def _cache_set(self, key: str, value: Any) -> None:
        try:
            await self._cache.set(key, value, self.config.cache_ttl)
        except Exception as e:
            logger.warning(f"Cache write failed, ignoring: {e}")

    def _get_dispatcher(self) -> Dispatcher:
        if self._dispatcher is None:
            timeout = self.config.timeout / 1000
            if self._http_client is None:
                self._http_client = httpx.AsyncClient(timeout=httpx.Timeout(timeout))
            self._dispatcher = Dispatcher(
                self._http_client,
                policy=self.config.retry_policy,
                timeout=timeout,
                validate_status=self.config.validate_status,
                sleep=self._sleep,
            )
        return self._dispatcher

    async def close(self) -> None:
        """Close the owned HTTP client. The cache provider is left open."""
        await self._deduplicator.cancel_all()
        if self._http_client is not None and self._owns_http_client:
            await self._http_client.aclose()
            self._http_client = None
            self._dispatcher = None
        logger.debug("Sdk closed")

    async def __aenter__(self) -> "Sdk":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
