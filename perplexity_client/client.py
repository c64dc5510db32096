"""HTTP clients for the Perplexity chat completions API.

Every call is a single attempt through httpx: no retries, no backoff. The
caller decides what to do with an APICallError.

Streaming happens only when a callback is supplied and the outgoing body has
``"stream": true``; events are then handed to the callback one by one while
the body is being read. With the flag but no callback the raw response is
returned; otherwise the full body is decoded as JSON.
"""
from __future__ import annotations

import time
from contextlib import asynccontextmanager, contextmanager
from typing import Any, AsyncIterator, Dict, Iterator, Mapping, Optional

import httpx
from pydantic import SecretStr

from .codec import JSONDecodeError, decode_json
from .config import Settings, get_settings
from .endpoints import lookup
from .errors import APICallError, ResponseDecodeError
from .logging_utils import log_error, log_info, log_warning
from .models import STREAM_KEY, split_options
from .request import assemble_request
from .streaming import StreamCallback, adeliver, aiter_stream_events, deliver, iter_stream_events
from .url_builder import build_url


def _elapsed_ms(t0: float) -> int:
    return int((time.perf_counter() - t0) * 1000)


def _transport_error(exc: httpx.HTTPError) -> APICallError:
    log_error("transport_error", error=type(exc).__name__)
    return APICallError(str(exc) or type(exc).__name__, 0)


def _status_error(response: httpx.Response, t0: float) -> APICallError:
    log_warning("api_error", status=response.status_code, latency_ms=_elapsed_ms(t0))
    return APICallError(response.text, response.status_code)


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return decode_json(response.content)
    except JSONDecodeError as e:
        raise ResponseDecodeError(f"JSON decode error: {e}", response.status_code) from e


class _BaseClient:
    """Configuration and request building shared by both clients."""

    def __init__(
        self,
        api_key: str | SecretStr | None = None,
        *,
        origin: Optional[str] = None,
        base_path: Optional[str] = None,
        timeout: float | httpx.Timeout | None = None,
        settings: Optional[Settings] = None,
    ) -> None:
        s = settings or get_settings()
        key = s.api_key if api_key is None else api_key
        self._api_key = key if isinstance(key, SecretStr) else SecretStr(key)
        self._origin = origin or s.origin
        self._base_path = s.base_path if base_path is None else base_path
        self._timeout = timeout if timeout is not None else httpx.Timeout(s.request_timeout, connect=s.connect_timeout)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(origin={self._origin!r}, base_path={self._base_path!r}, api_key={self._api_key!r})"

    def build_request(
        self,
        operation: str,
        parameters: Optional[Mapping[str, Any]] = None,
        body: Optional[Mapping[str, Any]] = None,
        *,
        stream: bool = False,
        custom_headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Request:
        """Resolve ``operation`` and assemble the request without sending it.

        ``stream=True`` adds ``"stream": true`` to the body.
        """
        descriptor = lookup(operation)
        url = build_url(descriptor, parameters, self._origin, self._base_path)
        fields: Dict[str, Any] = dict(body or {})
        if stream:
            fields[STREAM_KEY] = True
        return assemble_request(url, descriptor.method, fields, self._api_key, custom_headers)

    @staticmethod
    def _stream_requested(body: Optional[Mapping[str, Any]], stream: bool) -> bool:
        return stream or (body or {}).get(STREAM_KEY) is True


class PerplexityClient(_BaseClient):
    """Synchronous client over ``httpx.Client``.

    Pass ``transport`` (e.g. ``httpx.MockTransport``) or a ready
    ``http_client`` to control how requests go out. A client created here is
    closed by close() / the context manager; an injected one is not.
    """

    def __init__(
        self,
        api_key: str | SecretStr | None = None,
        *,
        origin: Optional[str] = None,
        base_path: Optional[str] = None,
        timeout: float | httpx.Timeout | None = None,
        transport: Optional[httpx.BaseTransport] = None,
        http_client: Optional[httpx.Client] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        super().__init__(api_key, origin=origin, base_path=base_path, timeout=timeout, settings=settings)
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=self._timeout, transport=transport)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> PerplexityClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ---- transport ----

    def send(self, request: httpx.Request) -> httpx.Response:
        """Send once and return the fully read response; status >= 400 raises."""
        t0 = time.perf_counter()
        log_info("request_sent", method=request.method, url=str(request.url), stream=False)
        try:
            response = self._client.send(request)
        except httpx.HTTPError as e:
            raise _transport_error(e) from e
        if response.status_code >= 400:
            raise _status_error(response, t0)
        log_info("response_received", status=response.status_code, latency_ms=_elapsed_ms(t0))
        return response

    @contextmanager
    def _open_stream(self, request: httpx.Request) -> Iterator[httpx.Response]:
        t0 = time.perf_counter()
        log_info("request_sent", method=request.method, url=str(request.url), stream=True)
        try:
            response = self._client.send(request, stream=True)
        except httpx.HTTPError as e:
            raise _transport_error(e) from e
        try:
            if response.status_code >= 400:
                response.read()
                raise _status_error(response, t0)
            log_info("response_received", status=response.status_code, latency_ms=_elapsed_ms(t0))
            yield response
        except httpx.HTTPError as e:
            raise _transport_error(e) from e
        finally:
            response.close()

    def iter_events(self, request: httpx.Request) -> Iterator[Any]:
        """Send a streaming request and yield its decoded events in order."""
        with self._open_stream(request) as response:
            yield from iter_stream_events(response.iter_bytes())

    # ---- generic entry points ----

    def call_raw(
        self,
        operation: str,
        parameters: Optional[Mapping[str, Any]] = None,
        body: Optional[Mapping[str, Any]] = None,
        *,
        custom_headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        request = self.build_request(operation, parameters, body, custom_headers=custom_headers)
        return self.send(request)

    def call(
        self,
        operation: str,
        parameters: Optional[Mapping[str, Any]] = None,
        body: Optional[Mapping[str, Any]] = None,
        *,
        stream: bool = False,
        custom_headers: Optional[Mapping[str, str]] = None,
        stream_callback: Optional[StreamCallback] = None,
    ) -> Any:
        """Run ``operation``.

        Returns the decoded JSON body, or None when the response was streamed
        into ``stream_callback``. A streamed request without a callback
        returns the raw ``httpx.Response`` holding the event stream.
        """
        request = self.build_request(operation, parameters, body, stream=stream, custom_headers=custom_headers)
        streamed = self._stream_requested(body, stream)
        if streamed and stream_callback is not None:
            events = self.iter_events(request)
            try:
                deliver(events, stream_callback)
            finally:
                events.close()
            return None
        response = self.send(request)
        if streamed:
            return response
        return _decode_body(response)

    def call_with_options(
        self,
        operation: str,
        parameters: Optional[Mapping[str, Any]] = None,
        options: Optional[Mapping[str, Any]] = None,
        stream_callback: Optional[StreamCallback] = None,
    ) -> Any:
        """call() taking one flat options map with reserved ``stream`` / ``customHeaders`` keys."""
        body, transport = split_options(options)
        return self.call(
            operation,
            parameters,
            body,
            stream=transport.stream,
            custom_headers=transport.custom_headers,
            stream_callback=stream_callback,
        )

    # ---- operations ----

    def create_chat_completion(
        self,
        body: Mapping[str, Any],
        *,
        stream: bool = False,
        stream_callback: Optional[StreamCallback] = None,
        custom_headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        return self.call(
            "create_chat_completion",
            body=body,
            stream=stream,
            custom_headers=custom_headers,
            stream_callback=stream_callback,
        )

    def stream_chat_completion(
        self, body: Mapping[str, Any], *, custom_headers: Optional[Mapping[str, str]] = None
    ) -> Iterator[Any]:
        request = self.build_request("create_chat_completion", body=body, stream=True, custom_headers=custom_headers)
        return self.iter_events(request)

    def create_async_chat_completion(
        self, body: Mapping[str, Any], *, custom_headers: Optional[Mapping[str, str]] = None
    ) -> Any:
        return self.call("create_async_chat_completion", body=body, custom_headers=custom_headers)

    def list_async_chat_completions(self, *, custom_headers: Optional[Mapping[str, str]] = None) -> Any:
        return self.call("list_async_chat_completions", custom_headers=custom_headers)

    def get_async_chat_completion(
        self, request_id: str, *, custom_headers: Optional[Mapping[str, str]] = None
    ) -> Any:
        return self.call("get_async_chat_completion", {"request_id": request_id}, custom_headers=custom_headers)


class AsyncPerplexityClient(_BaseClient):
    """Asynchronous client over ``httpx.AsyncClient``.

    The chunk read is the only suspension point of a streamed call; events
    still reach the callback in line order. Callbacks may be plain functions
    or coroutine functions.
    """

    def __init__(
        self,
        api_key: str | SecretStr | None = None,
        *,
        origin: Optional[str] = None,
        base_path: Optional[str] = None,
        timeout: float | httpx.Timeout | None = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        super().__init__(api_key, origin=origin, base_path=base_path, timeout=timeout, settings=settings)
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=self._timeout, transport=transport)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> AsyncPerplexityClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ---- transport ----

    async def send(self, request: httpx.Request) -> httpx.Response:
        t0 = time.perf_counter()
        log_info("request_sent", method=request.method, url=str(request.url), stream=False)
        try:
            response = await self._client.send(request)
        except httpx.HTTPError as e:
            raise _transport_error(e) from e
        if response.status_code >= 400:
            raise _status_error(response, t0)
        log_info("response_received", status=response.status_code, latency_ms=_elapsed_ms(t0))
        return response

    @asynccontextmanager
    async def _open_stream(self, request: httpx.Request) -> AsyncIterator[httpx.Response]:
        t0 = time.perf_counter()
        log_info("request_sent", method=request.method, url=str(request.url), stream=True)
        try:
            response = await self._client.send(request, stream=True)
        except httpx.HTTPError as e:
            raise _transport_error(e) from e
        try:
            if response.status_code >= 400:
                await response.aread()
                raise _status_error(response, t0)
            log_info("response_received", status=response.status_code, latency_ms=_elapsed_ms(t0))
            yield response
        except httpx.HTTPError as e:
            raise _transport_error(e) from e
        finally:
            await response.aclose()

    async def iter_events(self, request: httpx.Request) -> AsyncIterator[Any]:
        async with self._open_stream(request) as response:
            async for event in aiter_stream_events(response.aiter_bytes()):
                yield event

    # ---- generic entry points ----

    async def call_raw(
        self,
        operation: str,
        parameters: Optional[Mapping[str, Any]] = None,
        body: Optional[Mapping[str, Any]] = None,
        *,
        custom_headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        request = self.build_request(operation, parameters, body, custom_headers=custom_headers)
        return await self.send(request)

    async def call(
        self,
        operation: str,
        parameters: Optional[Mapping[str, Any]] = None,
        body: Optional[Mapping[str, Any]] = None,
        *,
        stream: bool = False,
        custom_headers: Optional[Mapping[str, str]] = None,
        stream_callback: Optional[StreamCallback] = None,
    ) -> Any:
        request = self.build_request(operation, parameters, body, stream=stream, custom_headers=custom_headers)
        streamed = self._stream_requested(body, stream)
        if streamed and stream_callback is not None:
            events = self.iter_events(request)
            try:
                await adeliver(events, stream_callback)
            finally:
                await events.aclose()
            return None
        response = await self.send(request)
        if streamed:
            return response
        return _decode_body(response)

    async def call_with_options(
        self,
        operation: str,
        parameters: Optional[Mapping[str, Any]] = None,
        options: Optional[Mapping[str, Any]] = None,
        stream_callback: Optional[StreamCallback] = None,
    ) -> Any:
        body, transport = split_options(options)
        return await self.call(
            operation,
            parameters,
            body,
            stream=transport.stream,
            custom_headers=transport.custom_headers,
            stream_callback=stream_callback,
        )

    # ---- operations ----

    async def create_chat_completion(
        self,
        body: Mapping[str, Any],
        *,
        stream: bool = False,
        stream_callback: Optional[StreamCallback] = None,
        custom_headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        return await self.call(
            "create_chat_completion",
            body=body,
            stream=stream,
            custom_headers=custom_headers,
            stream_callback=stream_callback,
        )

    def stream_chat_completion(
        self, body: Mapping[str, Any], *, custom_headers: Optional[Mapping[str, str]] = None
    ) -> AsyncIterator[Any]:
        request = self.build_request("create_chat_completion", body=body, stream=True, custom_headers=custom_headers)
        return self.iter_events(request)

    async def create_async_chat_completion(
        self, body: Mapping[str, Any], *, custom_headers: Optional[Mapping[str, str]] = None
    ) -> Any:
        return await self.call("create_async_chat_completion", body=body, custom_headers=custom_headers)

    async def list_async_chat_completions(self, *, custom_headers: Optional[Mapping[str, str]] = None) -> Any:
        return await self.call("list_async_chat_completions", custom_headers=custom_headers)

    async def get_async_chat_completion(
        self, request_id: str, *, custom_headers: Optional[Mapping[str, str]] = None
    ) -> Any:
        return await self.call("get_async_chat_completion", {"request_id": request_id}, custom_headers=custom_headers)
