import asyncio

import httpx
import pytest

from chan_reader.services.api_client import ApiError, ChanApiClient
from chan_reader.services.retry import RetryPolicy

_FAST_RETRY = RetryPolicy(max_attempts=3, base_delay_seconds=0.0, max_delay_seconds=0.0)


def _client(handler) -> ChanApiClient:
    return ChanApiClient(
        "https://api.test",
        retry_policy=_FAST_RETRY,
        transport=httpx.MockTransport(handler),
    )


def test_fetch_thread_decodes_posts() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(
            200,
            json={"posts": [{"no": 1, "resto": 0, "com": "op"}, {"no": 2, "resto": 1, "com": "&gt;&gt;1"}]},
        )

    posts = asyncio.run(_client(handler).fetch_thread("v", 1))

    assert seen == ["https://api.test/v/thread/1.json"]
    assert [post.no for post in posts] == [1, 2]
    assert posts[1].com == "&gt;&gt;1"


def test_fetch_catalog_flattens_pages() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/g/catalog.json"
        return httpx.Response(
            200,
            json=[
                {"page": 1, "threads": [{"no": 10}, {"no": 11}]},
                {"page": 2},
                {"page": 3, "threads": [{"no": 12}]},
            ],
        )

    threads = asyncio.run(_client(handler).fetch_catalog("g"))
    assert [post.no for post in threads] == [10, 11, 12]


def test_fetch_boards() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"boards": [{"board": "a", "title": "Anime", "ws_board": 1}]})

    boards = asyncio.run(_client(handler).fetch_boards())
    assert boards[0].board == "a"
    assert boards[0].is_work_safe


def test_not_found_is_reported_without_retry() -> None:
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        return httpx.Response(404)

    with pytest.raises(ApiError) as excinfo:
        asyncio.run(_client(handler).fetch_thread("v", 404))

    assert excinfo.value.not_found
    assert str(excinfo.value) == "Thread or board no longer exists (404)"
    assert calls["count"] == 1


def test_transient_status_is_retried() -> None:
    responses = [httpx.Response(503), httpx.Response(200, json={"posts": [{"no": 7}]})]

    def handler(request: httpx.Request) -> httpx.Response:
        return responses.pop(0)

    posts = asyncio.run(_client(handler).fetch_thread("v", 7))
    assert [post.no for post in posts] == [7]
    assert responses == []


def test_exhausted_retries_raise_server_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502)

    with pytest.raises(ApiError) as excinfo:
        asyncio.run(_client(handler).fetch_boards())

    assert excinfo.value.status_code == 502
    assert str(excinfo.value) == "Server error (502)"


def test_network_failure_becomes_api_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ApiError) as excinfo:
        asyncio.run(_client(handler).fetch_boards())

    assert excinfo.value.status_code is None


def test_malformed_payload_becomes_api_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>not json</html>")

    with pytest.raises(ApiError) as excinfo:
        asyncio.run(_client(handler).fetch_thread("v", 1))
    assert str(excinfo.value).startswith("Data processing error")


def test_unexpected_shape_becomes_api_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"threads": []})

    with pytest.raises(ApiError):
        asyncio.run(_client(handler).fetch_thread("v", 1))
