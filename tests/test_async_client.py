"""Asynchronous client against a mocked transport."""

from __future__ import annotations

import json

import httpx
import pytest

from perplexity_client import APICallError, StreamDecodeError, extract_delta

from .fakes import AsyncChunkedStream, EventSink

HELLO_EVENT = {"choices": [{"delta": {"content": "Hello"}}]}
HELLO = b'data: {"choices":[{"delta":{"content":"Hello"}}]}\n'
DONE = b"data: [DONE]\n"


def _stream_reply(stream: AsyncChunkedStream, status: int = 200):
    return lambda request: httpx.Response(status, stream=stream)


@pytest.mark.asyncio()
async def test_non_streaming_call(make_async_client, chat_body) -> None:
    client, handler = make_async_client(lambda request: httpx.Response(200, json={"id": "r1"}))
    async with client:
        assert await client.create_chat_completion(chat_body) == {"id": "r1"}
    assert json.loads(handler.last.content) == chat_body


@pytest.mark.asyncio()
async def test_error_status(make_async_client, chat_body) -> None:
    client, _ = make_async_client(lambda request: httpx.Response(400, content=b"Bad Request"))
    async with client:
        with pytest.raises(APICallError) as excinfo:
            await client.create_chat_completion(chat_body)
    assert excinfo.value.message == "Bad Request"
    assert excinfo.value.status_code == 400


@pytest.mark.asyncio()
async def test_transport_failure(make_async_client, chat_body) -> None:
    def boom(request):
        raise httpx.ConnectError("connection reset", request=request)

    client, _ = make_async_client(boom)
    async with client:
        with pytest.raises(APICallError, match="connection reset") as excinfo:
            await client.create_chat_completion(chat_body)
    assert excinfo.value.status_code == 0


@pytest.mark.asyncio()
async def test_streaming_with_sync_callback(make_async_client, chat_body) -> None:
    stream = AsyncChunkedStream([HELLO[:7], HELLO[7:] + DONE, HELLO])
    client, handler = make_async_client(_stream_reply(stream))
    sink = EventSink()

    async with client:
        result = await client.create_chat_completion(chat_body, stream=True, stream_callback=sink)

    assert result is None
    assert sink.events == [HELLO_EVENT]
    assert json.loads(handler.last.content)["stream"] is True
    assert stream.closed


@pytest.mark.asyncio()
async def test_streaming_with_coroutine_callback(make_async_client, chat_body) -> None:
    stream = AsyncChunkedStream([HELLO, HELLO, DONE])
    client, _ = make_async_client(_stream_reply(stream))
    parts: list[str] = []

    async def on_event(event) -> None:
        parts.append(extract_delta(event))

    async with client:
        await client.call("create_chat_completion", body={**chat_body, "stream": True}, stream_callback=on_event)

    assert parts == ["Hello", "Hello"]


@pytest.mark.asyncio()
async def test_streaming_decode_error(make_async_client, chat_body) -> None:
    stream = AsyncChunkedStream([b"data: invalid_json\n"])
    client, _ = make_async_client(_stream_reply(stream))
    sink = EventSink()

    async with client:
        with pytest.raises(StreamDecodeError):
            await client.create_chat_completion(chat_body, stream=True, stream_callback=sink)

    assert sink.events == []
    assert stream.closed


@pytest.mark.asyncio()
async def test_read_timeout_mid_stream(make_async_client, chat_body) -> None:
    stream = AsyncChunkedStream([HELLO, HELLO], fail_after=1)
    client, _ = make_async_client(_stream_reply(stream))
    sink = EventSink()

    async with client:
        with pytest.raises(APICallError) as excinfo:
            await client.create_chat_completion(chat_body, stream=True, stream_callback=sink)

    assert isinstance(excinfo.value.__cause__, httpx.ReadTimeout)
    assert sink.events == [HELLO_EVENT]
    assert stream.closed


@pytest.mark.asyncio()
async def test_stream_chat_completion_async_generator(make_async_client, chat_body) -> None:
    stream = AsyncChunkedStream([b"\n", HELLO, b": ping\n", DONE])
    client, _ = make_async_client(_stream_reply(stream))

    async with client:
        events = [e async for e in client.stream_chat_completion(chat_body)]

    assert events == [HELLO_EVENT]
    assert stream.closed


@pytest.mark.asyncio()
async def test_call_with_options(make_async_client, chat_body) -> None:
    client, handler = make_async_client(lambda request: httpx.Response(200, json={"ok": True}))
    async with client:
        result = await client.call_with_options(
            "create_chat_completion", None, {**chat_body, "customHeaders": {"X-Id": "1"}}
        )
    assert result == {"ok": True}
    assert json.loads(handler.last.content) == chat_body
    assert handler.last.headers["X-Id"] == "1"


@pytest.mark.asyncio()
async def test_get_async_chat_completion(make_async_client) -> None:
    client, handler = make_async_client(lambda request: httpx.Response(200, json={"id": "abc"}))
    async with client:
        assert await client.get_async_chat_completion("abc") == {"id": "abc"}
    assert handler.last.url.path == "/async/chat/completions/abc"


@pytest.mark.asyncio()
async def test_stream_without_callback_returns_raw_response(make_async_client, chat_body) -> None:
    sse = b'data: {"a":1}\n\ndata: [DONE]\n'
    client, handler = make_async_client(
        lambda request: httpx.Response(200, content=sse, headers={"Content-Type": "text/event-stream"})
    )
    async with client:
        result = await client.call_with_options("create_chat_completion", {}, {**chat_body, "stream": True})
    assert isinstance(result, httpx.Response)
    assert result.content == sse
    assert json.loads(handler.last.content)["stream"] is True
