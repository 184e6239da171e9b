"""
Engine exceptions.

Every terminal failure carries the operation name, and the dispatch errors
also carry the attempt count and the last status/body seen.
"""

import asyncio
from typing import Any

# Cancellation is not an SdkError so callers never retry it by accident.
CancelledError = asyncio.CancelledError


class SdkError(Exception):
    """Base exception for engine errors."""

    def __init__(self, message: str, operation: str | None = None):
        self.operation = operation
        super().__init__(message)


class ConfigurationError(SdkError):
    """Invalid route registration or engine configuration."""

    pass


class UnknownOperationError(SdkError):
    """Invocation of an operation that was never registered."""

    def __init__(self, operation: str):
        super().__init__(f"Unknown operation '{operation}'", operation=operation)


class MissingPathParameterError(SdkError):
    """A path placeholder has no matching call argument."""

    def __init__(self, operation: str, parameter: str, path_template: str):
        self.parameter = parameter
        self.path_template = path_template
        super().__init__(
            f"Operation '{operation}' requires path parameter '{parameter}' "
            f"for '{path_template}'",
            operation=operation,
        )


class TransportError(SdkError):
    """Timeout or connection failure, after all retries."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        attempts: int = 1,
        timed_out: bool = False,
    ):
        self.attempts = attempts
        self.timed_out = timed_out
        self.status_code = None
        super().__init__(
            f"{message} (operation '{operation}', attempts: {attempts})",
            operation=operation,
        )


class RemoteError(SdkError):
    """Response rejected by the status predicate."""

    def __init__(
        self,
        status_code: int,
        body: Any = None,
        operation: str | None = None,
        attempts: int = 1,
        retryable: bool = False,
    ):
        self.status_code = status_code
        self.body = body
        self.attempts = attempts
        self.retryable = retryable
        preview = str(body)[:200] if body is not None else ""
        super().__init__(
            f"HTTP {status_code} from operation '{operation}' "
            f"after {attempts} attempt(s): {preview}",
            operation=operation,
        )


class CacheProviderError(SdkError):
    """Cache backend failed. Never surfaced to callers of the facade."""

    pass
