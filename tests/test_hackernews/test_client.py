"""Tests for the Hacker News fetch client."""

import asyncio

import httpx
import pytest

from src.integrations.hackernews.client import FetchClient
from src.integrations.hackernews.resource import story_resource, top_stories_resource
from src.stories.error_handling import DecodeError, TransportError

BASE_URL = "https://hn.test/v0"


def _client(handler, **options) -> FetchClient:
    return FetchClient(transport=httpx.MockTransport(handler), **options)


@pytest.mark.asyncio
async def test_fetch_decodes_successful_response():
    """Test that a 200 response is decoded with the resource's decoder."""
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=[3, 1, 2])

    async with _client(handler) as client:
        result = await client.fetch(top_stories_resource(BASE_URL))

    assert result == (3, 1, 2)
    assert len(requests) == 1
    assert requests[0].method == "GET"
    assert str(requests[0].url) == f"{BASE_URL}/topstories.json"


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [404, 500, 503])
async def test_fetch_returns_none_on_error_status(status):
    """Test that non-2xx responses collapse to None without retry by default."""
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(status)

    async with _client(handler) as client:
        assert await client.fetch(top_stories_resource(BASE_URL)) is None

    assert calls == 1


@pytest.mark.asyncio
async def test_fetch_returns_none_on_connection_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        assert await client.fetch(story_resource(1, BASE_URL)) is None


@pytest.mark.asyncio
async def test_fetch_returns_none_on_undecodable_payload(caplog: pytest.LogCaptureFixture):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"id": 1})

    async with _client(handler) as client:
        assert await client.fetch(story_resource(1, BASE_URL)) is None

    assert any("DecodeError" in record.message for record in caplog.records)


@pytest.mark.asyncio
async def test_fetch_returns_none_on_deeply_nested_payload():
    """Test that JSON nested past the parser's recursion limit is a decode failure."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"[" * 100_000 + b"]" * 100_000)

    async with _client(handler) as client:
        assert await client.fetch(story_resource(1, BASE_URL)) is None
        with pytest.raises(DecodeError):
            await client.load(top_stories_resource(BASE_URL))


@pytest.mark.asyncio
async def test_load_raises_typed_errors():
    """Test that load() surfaces the error taxonomy fetch() hides."""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("topstories.json"):
            return httpx.Response(200, content=b"<html>")
        return httpx.Response(502)

    async with _client(handler) as client:
        with pytest.raises(DecodeError):
            await client.load(top_stories_resource(BASE_URL))

        with pytest.raises(TransportError) as exc_info:
            await client.load(story_resource(1, BASE_URL))

    assert exc_info.value.status_code == 502
    assert exc_info.value.location == f"{BASE_URL}/item/1.json"


@pytest.mark.asyncio
async def test_transient_errors_are_retried(item_factory):
    responses = [httpx.Response(503), httpx.Response(200, json=item_factory(1))]

    def handler(request: httpx.Request) -> httpx.Response:
        return responses.pop(0)

    async with _client(handler, max_retries=2, retry_delay=0.001) as client:
        story = await client.fetch(story_resource(1, BASE_URL))

    assert story is not None
    assert story.id == 1
    assert responses == []


@pytest.mark.asyncio
async def test_not_found_is_not_retried():
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(404)

    async with _client(handler, max_retries=3, retry_delay=0.001) as client:
        assert await client.fetch(story_resource(1, BASE_URL)) is None

    assert calls == 1


@pytest.mark.asyncio
async def test_retries_are_bounded():
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        raise httpx.ReadTimeout("timed out", request=request)

    async with _client(handler, max_retries=2, retry_delay=0.001) as client:
        assert await client.fetch(story_resource(1, BASE_URL)) is None

    assert calls == 3


@pytest.mark.asyncio
async def test_concurrent_fetches_share_one_request(item_factory):
    """Test that duplicate in-flight requests are coalesced."""
    calls = 0
    release = asyncio.Event()

    async def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        await release.wait()
        return httpx.Response(200, json=item_factory(7))

    async with _client(handler) as client:
        first = asyncio.create_task(client.fetch(story_resource(7, BASE_URL)))
        second = asyncio.create_task(client.fetch(story_resource(7, BASE_URL)))
        await asyncio.sleep(0.01)
        assert client.in_flight_count == 1

        release.set()
        results = await asyncio.gather(first, second)

        assert client.in_flight_count == 0

    assert calls == 1
    assert results[0] == results[1]
    assert results[0].id == 7


@pytest.mark.asyncio
async def test_completed_requests_are_not_cached(item_factory):
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(200, json=item_factory(2))

    async with _client(handler) as client:
        await client.fetch(story_resource(2, BASE_URL))
        await client.fetch(story_resource(2, BASE_URL))

    assert calls == 2


@pytest.mark.asyncio
async def test_injected_http_client_is_not_closed():
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))

    async with FetchClient(http_client) as client:
        assert client.in_flight_count == 0

    assert not http_client.is_closed
    await http_client.aclose()
