"""Shared fixtures: a recording httpx transport and SDK builders."""

import httpx
import pytest

from stripe_sdk import StripeSDKConfig, stripe_sdk
from stripe_sdk.engine import Sdk, SdkConfig

BASE_URL = "https://api.example.com"


class StubTransport:
    """Replays queued responses (or raises queued exceptions) and records requests."""

    def __init__(self, responses=None):
        self.requests: list[httpx.Request] = []
        self._responses = list(responses or [])

    def queue(self, *items) -> None:
        self._responses.extend(items)

    def handler(self, request: httpx.Request):
        self.requests.append(request)
        item = self._responses.pop(0) if self._responses else httpx.Response(200, json={})
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return item(request)
        return item

    @property
    def calls(self) -> int:
        return len(self.requests)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


class SleepRecorder:
    """Drop-in for asyncio.sleep that records backoff delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def stub():
    return StubTransport()


@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def make_sdk(stub, sleeper):
    def factory(**options) -> Sdk:
        options.setdefault("base_url", BASE_URL)
        return Sdk(SdkConfig(**options), http_client=stub.client(), sleep=sleeper)

    return factory


@pytest.fixture
def make_stripe(stub):
    def factory(**options) -> Sdk:
        options.setdefault("api_key", "sk_test_123")
        options.setdefault("retry_base_delay", 0)
        return stripe_sdk(StripeSDKConfig(http_client=stub.client(), **options))

    return factory
