"""
Interceptor chain - named, ordered transforms around dispatch.

Request stages:  async (context, raw_args) -> context | None
Response stages: async (payload, context, response) -> payload

Stages run one after another in registration order, each seeing the output
of the previous one. A raising stage aborts the chain.
"""

import inspect
import threading
import uuid
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping, Union

import httpx
from loguru import logger

from stripe_sdk.engine.resolver import FORM_CONTENT_TYPE, JSON_CONTENT_TYPE
from stripe_sdk.engine.routes import HttpVerb


def new_idempotency_key() -> str:
    """32 lowercase hex characters, no separators."""
    return uuid.uuid4().hex


@dataclass
class RequestContext:
    """Per-call state threaded through the request chain and the dispatcher."""

    operation: str
    verb: HttpVerb
    path: str
    url: str
    payload: dict[str, Any] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    content_type: str | None = None
    idempotency_key: str = field(default_factory=new_idempotency_key)
    attempt: int = 0
    extras: dict[str, Any] = field(default_factory=dict)


RequestInterceptor = Callable[
    [RequestContext, Mapping[str, Any]],
    Union[Awaitable[RequestContext | None], RequestContext, None],
]
ResponseInterceptor = Callable[[Any, RequestContext, httpx.Response], Any]


async def _maybe_await(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result


class InterceptorChain:
    """
    Copy-on-write store of named request and response stages.

    Usage:
        chain = InterceptorChain()
        chain.add_request("auth", bearer_auth("sk_test_..."))
        context = await chain.run_request(context, args)
    """

    def __init__(self) -> None:
        self._request: tuple[tuple[str, RequestInterceptor], ...] = ()
        self._response: tuple[tuple[str, ResponseInterceptor], ...] = ()
        self._write_lock = threading.Lock()

    @staticmethod
    def _with_stage(stages: tuple, name: str, fn: Callable) -> tuple:
        if not name:
            raise ValueError("Interceptor name must be non-empty")
        if not callable(fn):
            raise TypeError(f"Interceptor '{name}' is not callable")
        # Re-adding a name keeps its position.
        if any(existing == name for existing, _ in stages):
            return tuple((n, fn if n == name else f) for n, f in stages)
        return stages + ((name, fn),)

    def add_request(self, name: str, fn: RequestInterceptor) -> None:
        with self._write_lock:
            self._request = self._with_stage(self._request, name, fn)
        logger.debug(f"Request interceptor added: {name}")

    def add_response(self, name: str, fn: ResponseInterceptor) -> None:
        with self._write_lock:
            self._response = self._with_stage(self._response, name, fn)
        logger.debug(f"Response interceptor added: {name}")

    def remove_request(self, name: str) -> bool:
        with self._write_lock:
            before = len(self._request)
            self._request = tuple(s for s in self._request if s[0] != name)
            return len(self._request) != before

    def remove_response(self, name: str) -> bool:
        with self._write_lock:
            before = len(self._response)
            self._response = tuple(s for s in self._response if s[0] != name)
            return len(self._response) != before

    def request_stage_names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self._request)

    def response_stage_names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self._response)

    async def run_request(
        self, context: RequestContext, raw_args: Mapping[str, Any]
    ) -> RequestContext:
        for name, stage in self._request:
            result = await _maybe_await(stage(context, raw_args))
            if result is not None:
                if not isinstance(result, RequestContext):
                    raise TypeError(
                        f"Request interceptor '{name}' returned "
                        f"{type(result).__name__}, expected RequestContext"
                    )
                context = result
        return context

    async def run_response(
        self, payload: Any, context: RequestContext, response: httpx.Response
    ) -> Any:
        for _, stage in self._response:
            payload = await _maybe_await(stage(payload, context, response))
        return payload


# Built-in request interceptors


def bearer_auth(api_key: str) -> RequestInterceptor:
    """Set `Authorization: Bearer <api_key>`."""

    async def interceptor(context: RequestContext, raw_args: Mapping[str, Any]):
        context.headers["Authorization"] = f"Bearer {api_key}"
        return context

    return interceptor


def static_header(header: str, value: str) -> RequestInterceptor:
    """Set a fixed header, e.g. the API version."""

    async def interceptor(context: RequestContext, raw_args: Mapping[str, Any]):
        context.headers[header] = value
        return context

    return interceptor


def idempotency_header(header: str = "Idempotency-Key") -> RequestInterceptor:
    """Attach the per-call idempotency key held by the context."""

    async def interceptor(context: RequestContext, raw_args: Mapping[str, Any]):
        context.headers[header] = context.idempotency_key
        return context

    return interceptor


def content_type_by_prefix(
    prefix: str,
    matched: str = JSON_CONTENT_TYPE,
    default: str = FORM_CONTENT_TYPE,
) -> RequestInterceptor:
    """Pick the request encoding from the resolved path."""

    async def interceptor(context: RequestContext, raw_args: Mapping[str, Any]):
        content_type = matched if context.path.startswith(prefix) else default
        context.content_type = content_type
        context.headers["Content-Type"] = content_type
        return context

    return interceptor
