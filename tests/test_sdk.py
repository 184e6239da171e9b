"""Facade behaviour: registration surface, invocation flow and caching."""

import asyncio

import httpx
import pytest

from stripe_sdk.engine import (
    CacheProvider,
    CacheProviderError,
    ConfigurationError,
    MemoryCacheProvider,
    MissingPathParameterError,
    Sdk,
    SdkConfig,
    UnknownOperationError,
)


class BrokenCache(CacheProvider):
    """Cache provider whose every operation fails."""

    def __init__(self):
        self.reads = 0
        self.writes = 0

    async def get(self, key):
        self.reads += 1
        raise CacheProviderError("read failed")

    async def set(self, key, value, ttl=None):
        self.writes += 1
        raise CacheProviderError("write failed")

    async def invalidate(self, key):
        raise CacheProviderError("invalidate failed")


@pytest.mark.asyncio
async def test_unknown_operation(make_sdk, stub):
    sdk = make_sdk()
    with pytest.raises(UnknownOperationError) as exc_info:
        await sdk.invoke("nope", {})
    assert exc_info.value.operation == "nope"
    assert stub.calls == 0


def test_unknown_attribute(make_sdk):
    sdk = make_sdk()
    with pytest.raises(AttributeError):
        sdk.not_registered


@pytest.mark.asyncio
async def test_routes_added_after_construction_become_callable(make_sdk, stub):
    sdk = make_sdk()
    assert "get_customer" not in sdk

    sdk.register("get_customer", "/v1/customers/{customer_id}", "GET")
    stub.queue(httpx.Response(200, json={"id": "cus_1"}))

    assert await sdk.get_customer({"customer_id": "cus_1"}) == {"id": "cus_1"}
    assert "get_customer" in sdk


@pytest.mark.asyncio
async def test_get_leftover_args_become_query(make_sdk, stub):
    sdk = make_sdk()
    sdk.register("get_customer", "/v1/customers/{customer_id}", "GET")

    await sdk.get_customer({"customer_id": "cus_1", "expand": "subscriptions"})

    assert str(stub.last.url) == "https://api.example.com/v1/customers/cus_1?expand=subscriptions"
    assert stub.last.method == "GET"
    assert stub.last.content == b""


@pytest.mark.asyncio
async def test_delete_uses_query(make_sdk, stub):
    sdk = make_sdk()
    sdk.register("delete_customer", "/v1/customers/{customer_id}", "DELETE")

    await sdk.delete_customer({"customer_id": "cus_1", "force": True})

    assert stub.last.method == "DELETE"
    assert stub.last.url.params["force"] == "true"


@pytest.mark.asyncio
async def test_missing_path_parameter_skips_network(make_sdk, stub):
    sdk = make_sdk()
    sdk.register("get_customer", "/v1/customers/{customer_id}", "GET")

    with pytest.raises(MissingPathParameterError):
        await sdk.get_customer({"expand": "subscriptions"})
    assert stub.calls == 0


@pytest.mark.asyncio
async def test_arguments_must_be_a_string_keyed_mapping(make_sdk):
    sdk = make_sdk()
    sdk.register("list_customers", "/v1/customers", "GET")

    with pytest.raises(TypeError):
        await sdk.list_customers([("limit", 3)])
    with pytest.raises(TypeError):
        await sdk.list_customers({1: "x"})


@pytest.mark.asyncio
async def test_interceptor_failure_prevents_dispatch(make_sdk, stub):
    sdk = make_sdk()
    sdk.register("list_customers", "/v1/customers", "GET")

    async def deny(context, raw_args):
        raise PermissionError("no key configured")

    sdk.add_request_interceptor("deny", deny)

    with pytest.raises(PermissionError):
        await sdk.list_customers()
    assert stub.calls == 0


@pytest.mark.asyncio
async def test_response_transformer_runs_first(make_sdk, stub):
    def unwrap(payload, context, response):
        return payload["data"]

    sdk = make_sdk(response_transformer=unwrap)
    sdk.register("list_customers", "/v1/customers", "GET")
    sdk.add_response_interceptor("count", lambda payload, context, response: len(payload))
    stub.queue(httpx.Response(200, json={"data": [{"id": "a"}, {"id": "b"}]}))

    assert await sdk.list_customers() == 2
    assert sdk.response_interceptor_names() == ("response_transformer", "count")


@pytest.mark.asyncio
async def test_non_json_and_empty_bodies(make_sdk, stub):
    sdk = make_sdk()
    sdk.register("ping", "/ping", "GET")
    stub.queue(httpx.Response(200, text="pong"), httpx.Response(204))

    assert await sdk.ping() == "pong"
    assert await sdk.ping() is None


@pytest.mark.asyncio
async def test_cache_hit_skips_transport(make_sdk, stub):
    cache = MemoryCacheProvider()
    sdk = make_sdk(cache_provider=cache)
    sdk.register("get_customer", "/v1/customers/{customer_id}", "GET")
    stub.queue(httpx.Response(200, json={"id": "cus_1", "name": "first"}))

    first = await sdk.get_customer({"customer_id": "cus_1"})
    second = await sdk.get_customer({"customer_id": "cus_1"})

    assert first == second == {"id": "cus_1", "name": "first"}
    assert stub.calls == 1
    assert cache.get_stats().hits == 1


@pytest.mark.asyncio
async def test_cache_key_depends_on_arguments(make_sdk, stub):
    sdk = make_sdk(cache_provider=MemoryCacheProvider())
    sdk.register("get_customer", "/v1/customers/{customer_id}", "GET")

    await sdk.get_customer({"customer_id": "cus_1"})
    await sdk.get_customer({"customer_id": "cus_2"})
    await sdk.get_customer({"customer_id": "cus_1", "expand": "subscriptions"})

    assert stub.calls == 3


@pytest.mark.asyncio
async def test_post_is_not_cached(make_sdk, stub):
    sdk = make_sdk(cache_provider=MemoryCacheProvider())
    sdk.register("create_customer", "/v1/customers", "POST")

    await sdk.create_customer({"email": "a@example.com"})
    await sdk.create_customer({"email": "a@example.com"})

    assert stub.calls == 2


@pytest.mark.asyncio
async def test_cacheable_verbs_configurable(make_sdk, stub):
    sdk = make_sdk(cache_provider=MemoryCacheProvider(), cacheable_verbs={"GET", "post"})
    sdk.register("search", "/v1/search", "POST")

    await sdk.search({"q": "x"})
    await sdk.search({"q": "x"})

    assert stub.calls == 1


@pytest.mark.asyncio
async def test_broken_cache_degrades_to_live_calls(make_sdk, stub):
    cache = BrokenCache()
    sdk = make_sdk(cache_provider=cache)
    sdk.register("get_customer", "/v1/customers/{customer_id}", "GET")
    stub.queue(
        httpx.Response(200, json={"id": "cus_1"}),
        httpx.Response(200, json={"id": "cus_1"}),
    )

    assert await sdk.get_customer({"customer_id": "cus_1"}) == {"id": "cus_1"}
    assert await sdk.get_customer({"customer_id": "cus_1"}) == {"id": "cus_1"}
    assert stub.calls == 2
    assert cache.reads == 2
    assert cache.writes == 2

    # invalidation failures are swallowed too
    await sdk.invalidate("get_customer", {"customer_id": "cus_1"})


@pytest.mark.asyncio
async def test_invalidate_forces_refetch(make_sdk, stub):
    sdk = make_sdk(cache_provider=MemoryCacheProvider())
    sdk.register("get_customer", "/v1/customers/{customer_id}", "GET")

    await sdk.get_customer({"customer_id": "cus_1"})
    await sdk.invalidate("get_customer", {"customer_id": "cus_1"})
    await sdk.get_customer({"customer_id": "cus_1"})

    assert stub.calls == 2


def _slow_response(request):
    async def respond():
        await asyncio.sleep(0.05)
        return httpx.Response(200, json={"id": "cus_1"})

    return respond()


@pytest.mark.asyncio
async def test_concurrent_identical_calls_not_coalesced_by_default(make_sdk, stub):
    sdk = make_sdk(cache_provider=MemoryCacheProvider())
    sdk.register("get_customer", "/v1/customers/{customer_id}", "GET")
    stub.queue(_slow_response, _slow_response)

    await asyncio.gather(
        sdk.get_customer({"customer_id": "cus_1"}),
        sdk.get_customer({"customer_id": "cus_1"}),
    )
    assert stub.calls == 2


@pytest.mark.asyncio
async def test_coalesce_inflight(make_sdk, stub):
    sdk = make_sdk(cache_provider=MemoryCacheProvider(), coalesce_inflight=True)
    sdk.register("get_customer", "/v1/customers/{customer_id}", "GET")
    stub.queue(_slow_response, _slow_response)

    results = await asyncio.gather(
        sdk.get_customer({"customer_id": "cus_1"}),
        sdk.get_customer({"customer_id": "cus_1"}),
    )
    assert results == [{"id": "cus_1"}, {"id": "cus_1"}]
    assert stub.calls == 1


@pytest.mark.parametrize(
    "options",
    [
        {"base_url": ""},
        {"base_url": "https://api.example.com", "timeout": 0},
        {"base_url": "https://api.example.com", "max_retries": -1},
        {"base_url": "https://api.example.com", "cacheable_verbs": {"FETCH"}},
    ],
)
def test_invalid_config(options):
    with pytest.raises(ConfigurationError):
        SdkConfig(**options)


@pytest.mark.asyncio
async def test_close_keeps_injected_client_open(make_sdk, stub):
    sdk = make_sdk()
    sdk.register("ping", "/ping", "GET")
    await sdk.ping()

    client = sdk._http_client
    await sdk.close()
    assert client.is_closed is False


@pytest.mark.asyncio
async def test_owned_client_closed_on_exit():
    async with Sdk(SdkConfig(base_url="https://api.example.com")) as sdk:
        client = sdk._get_dispatcher()._client
    assert client.is_closed is True


@pytest.mark.asyncio
async def test_delivered_client_errors_are_not_cached(make_sdk, stub):
    sdk = make_sdk(cache_provider=MemoryCacheProvider())
    sdk.register("get_customer", "/v1/customers/{customer_id}", "GET")
    stub.queue(
        httpx.Response(404, json={"error": {"code": "resource_missing"}}),
        httpx.Response(200, json={"id": "cus_1"}),
    )

    assert await sdk.get_customer({"customer_id": "cus_1"}) == {
        "error": {"code": "resource_missing"}
    }
    assert await sdk.get_customer({"customer_id": "cus_1"}) == {"id": "cus_1"}
    assert stub.calls == 2


class SlowHandler:
    """Transport handler that signals when a request starts and finishes."""

    def __init__(self, delay: float = 0.2):
        self.delay = delay
        self.started = asyncio.Event()
        self.finished = 0

    def __call__(self, request):
        async def respond():
            self.started.set()
            await asyncio.sleep(self.delay)
            self.finished += 1
            return httpx.Response(200, json={"id": "cus_1"})

        return respond()


@pytest.mark.asyncio
async def test_cancelling_only_coalesced_caller_abandons_request(make_sdk, stub):
    sdk = make_sdk(cache_provider=MemoryCacheProvider(), coalesce_inflight=True)
    sdk.register("get_customer", "/v1/customers/{customer_id}", "GET")
    handler = SlowHandler()
    stub.queue(handler)

    call = asyncio.create_task(sdk.get_customer({"customer_id": "cus_1"}))
    await handler.started.wait()
    call.cancel()

    with pytest.raises(asyncio.CancelledError):
        await call
    await asyncio.sleep(0.3)
    assert handler.finished == 0


@pytest.mark.asyncio
async def test_cancelling_one_coalesced_caller_keeps_shared_request(make_sdk, stub):
    sdk = make_sdk(cache_provider=MemoryCacheProvider(), coalesce_inflight=True)
    sdk.register("get_customer", "/v1/customers/{customer_id}", "GET")
    handler = SlowHandler(delay=0.05)
    stub.queue(handler)

    first = asyncio.create_task(sdk.get_customer({"customer_id": "cus_1"}))
    second = asyncio.create_task(sdk.get_customer({"customer_id": "cus_1"}))
    await handler.started.wait()
    first.cancel()

    assert await second == {"id": "cus_1"}
    with pytest.raises(asyncio.CancelledError):
        await first
    assert stub.calls == 1
    assert handler.finished == 1


@pytest.mark.asyncio
async def test_new_call_after_abandoned_request_starts_fresh(make_sdk, stub):
    sdk = make_sdk(cache_provider=MemoryCacheProvider(), coalesce_inflight=True)
    sdk.register("get_customer", "/v1/customers/{customer_id}", "GET")
    handler = SlowHandler()
    stub.queue(handler)

    call = asyncio.create_task(sdk.get_customer({"customer_id": "cus_1"}))
    await handler.started.wait()
    call.cancel()
    with pytest.raises(asyncio.CancelledError):
        await call

    stub.queue(httpx.Response(200, json={"id": "cus_1", "fresh": True}))
    assert await sdk.get_customer({"customer_id": "cus_1"}) == {"id": "cus_1", "fresh": True}
    assert stub.calls == 2


@pytest.mark.asyncio
async def test_api_version_header_from_config(make_sdk, stub):
    sdk = make_sdk(api_version="2024-06-20")
    sdk.register("get_balance", "/v1/balance", "GET")

    await sdk.get_balance()

    assert stub.last.headers["Stripe-Version"] == "2024-06-20"
    assert sdk.request_interceptor_names() == ("api_version",)


@pytest.mark.asyncio
async def test_api_version_header_name_configurable(make_sdk, stub):
    sdk = make_sdk(api_version="3", api_version_header="X-Api-Version")
    sdk.register("get_balance", "/v1/balance", "GET")

    await sdk.get_balance()

    assert stub.last.headers["X-Api-Version"] == "3"
    assert "Stripe-Version" not in stub.last.headers


@pytest.mark.asyncio
async def test_no_version_header_without_api_version(make_sdk, stub):
    sdk = make_sdk()
    sdk.register("get_balance", "/v1/balance", "GET")

    await sdk.get_balance()

    assert "Stripe-Version" not in stub.last.headers
    assert sdk.request_interceptor_names() == ()
