"""
Dispatcher - sends a prepared request with timeout, retry and backoff.

Per invocation:
- PREPARED -> SENT: one attempt bounded by the configured timeout
- SENT -> SUCCEEDED: status accepted by validate_status and not retried
- SENT -> RETRYING -> SENT: retryable failure while attempts remain
- SENT -> FAILED: retries exhausted or a non-retryable failure

The idempotency header set on the context is reused by every attempt.
Cancellation (asyncio.CancelledError) is never caught here.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

import httpx
from loguru import logger

from stripe_sdk.engine.errors import RemoteError, TransportError
from stripe_sdk.engine.interceptors import RequestContext
from stripe_sdk.engine.resolver import encode_body, encode_query


def default_validate_status(status: int) -> bool:
    """4xx bodies are delivered to the caller, who decides what they mean."""
    return 200 <= status < 500


def default_retryable_status(status: int) -> bool:
    return status >= 500


@dataclass
class RetryPolicy:
    """Retry configuration. max_retries == 0 means a single attempt."""

    max_retries: int = 0
    base_delay: float = 0.5  # seconds
    multiplier: float = 2.0
    retryable_status: Callable[[int], bool] = field(
        default=default_retryable_status
    )

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.base_delay < 0 or self.multiplier < 0:
            raise ValueError("base_delay and multiplier must be >= 0")

    def delay(self, retry: int) -> float:
        """Backoff before retry number `retry` (1-based)."""
        return self.base_delay * self.multiplier ** (retry - 1)


def decode_body(response: httpx.Response) -> Any:
    """JSON payload, None for an empty body, text when not JSON."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class Dispatcher:
    """
    Sends RequestContext objects through an httpx.AsyncClient.

    Usage:
        dispatcher = Dispatcher(client, RetryPolicy(max_retries=2), timeout=10.0)
        response = await dispatcher.send(context)
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        policy: RetryPolicy | None = None,
        timeout: float = 10.0,
        validate_status: Callable[[int], bool] = default_validate_status,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._client = client
        self.policy = policy or RetryPolicy()
        self.timeout = timeout
        self._validate_status = validate_status
        self._sleep = sleep

    def build_request(self, context: RequestContext) -> httpx.Request:
        headers = dict(context.headers)
        params = None
        content = None
        if context.verb.sends_body:
            content = encode_body(context.payload, context.content_type)
        elif context.payload:
            params = encode_query(context.payload)

        return self._client.build_request(
            context.verb.value,
            context.url,
            params=params,
            content=content,
            headers=headers,
            timeout=self.timeout,
        )

    async def send(self, context: RequestContext) -> httpx.Response:
        """Send with retries. Returns the delivered response or raises."""
        max_attempts = self.policy.max_retries + 1
        attempt = 0

        while True:
            attempt += 1
            context.attempt = attempt
            try:
                response = await self._attempt(context)
            except TransportError as e:
                if attempt < max_attempts:
                    await self._backoff(context, attempt, f"transport error: {e}")
                    continue
                raise TransportError(
                    "Request failed" if not e.timed_out else "Request timed out",
                    operation=context.operation,
                    attempts=attempt,
                    timed_out=e.timed_out,
                ) from e.__cause__

            status = response.status_code
            retryable = self.policy.retryable_status(status)
            # A retryable status is retried even when validate_status would
            # deliver it; only the last attempt falls through to delivery.
            if retryable and attempt < max_attempts:
                await self._backoff(context, attempt, f"HTTP {status}")
                continue

            if self._validate_status(status):
                logger.debug(
                    f"{context.operation}: HTTP {status} on attempt {attempt}"
                )
                return response

            raise RemoteError(
                status,
                body=decode_body(response),
                operation=context.operation,
                attempts=attempt,
                retryable=retryable,
            )

    async def _attempt(self, context: RequestContext) -> httpx.Response:
        request = self.build_request(context)
        logger.debug(
            f"{context.operation}: {request.method} {request.url} "
            f"(attempt {context.attempt})"
        )
        try:
            return await asyncio.wait_for(
                self._client.send(request), timeout=self.timeout
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as e:
            raise TransportError(
                f"Timed out after {self.timeout}s",
                operation=context.operation,
                attempts=context.attempt,
                timed_out=True,
            ) from e
        except httpx.TransportError as e:
            raise TransportError(
                f"{type(e).__name__}: {e}",
                operation=context.operation,
                attempts=context.attempt,
            ) from e

    async def _backoff(self, context: RequestContext, attempt: int, reason: str) -> None:
        delay = self.policy.delay(attempt)
        logger.warning(
            f"{context.operation}: {reason}, retrying in {delay:.2f}s "
            f"(retry {attempt}/{self.policy.max_retries})"
        )
        await self._sleep(delay)
