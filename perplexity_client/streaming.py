"""Incremental parser for ``data: ...`` event streams.

The body arrives in arbitrarily sized chunks, so bytes are buffered and only
complete lines are interpreted. Per line (surrounding whitespace stripped):

- empty: skipped
- ``data: [DONE]``: stream finished, nothing after it is processed
- ``data: <json>``: decoded and emitted; bad JSON raises StreamDecodeError
- anything else: ignored

Leftover bytes without a trailing newline when the body ends are discarded.
"""
from __future__ import annotations

import inspect
from typing import Any, AsyncIterable, AsyncIterator, Awaitable, Callable, Iterable, Iterator, Union

from .codec import JSONDecodeError, decode_json
from .errors import StreamDecodeError
from .logging_utils import log_debug, log_warning

SSE_PREFIX = b"data: "
SENTINEL = b"data: [DONE]"
# Stripped from both ends of every line, NUL and vertical tab included
LINE_WHITESPACE = b" \t\n\r\x00\x0b"

StreamCallback = Callable[[Any], Union[None, Awaitable[None]]]


class StreamParser:
    """Line buffer for one streamed response; not reusable across calls."""

    def __init__(self) -> None:
        self._buffer = bytearray()
        self.done = False
        self.events = 0

    def feed(self, chunk: bytes) -> Iterator[Any]:
        """Consume one chunk and yield the events it completes, in order.

        Events are produced lazily so a decode error on a later line surfaces
        only after the earlier lines have been handed out.
        """
        if self.done:
            return
        self._buffer.extend(chunk)
        while True:
            newline_idx = self._buffer.find(b"\n")
            if newline_idx == -1:
                break
            line = bytes(self._buffer[:newline_idx]).strip(LINE_WHITESPACE)
            del self._buffer[: newline_idx + 1]
            if not line:
                continue
            if line == SENTINEL:
                self.done = True
                self._buffer.clear()
                break
            if line.startswith(SSE_PREFIX):
                event = self._decode(line[len(SSE_PREFIX):])
                self.events += 1
                yield event

    def close(self) -> None:
        """Drop whatever partial line is still buffered."""
        if self._buffer:
            log_debug("stream_leftover_discarded", size=len(self._buffer))
            self._buffer.clear()

    def _decode(self, payload: bytes) -> Any:
        try:
            return decode_json(payload)
        except JSONDecodeError as e:
            log_warning("stream_decode_error", error=str(e))
            raise StreamDecodeError(f"JSON decode error: {e}") from e


def iter_stream_events(chunks: Iterable[bytes]) -> Iterator[Any]:
    """Yield decoded events from a byte-chunk iterable; stops at the sentinel."""
    parser = StreamParser()
    try:
        for chunk in chunks:
            yield from parser.feed(chunk)
            if parser.done:
                break
    finally:
        parser.close()
        log_debug("stream_done", events=parser.events, sentinel=parser.done)


async def aiter_stream_events(chunks: AsyncIterable[bytes]) -> AsyncIterator[Any]:
    """Async twin of iter_stream_events."""
    parser = StreamParser()
    try:
        async for chunk in chunks:
            for event in parser.feed(chunk):
                yield event
            if parser.done:
                break
    finally:
        parser.close()
        log_debug("stream_done", events=parser.events, sentinel=parser.done)


def deliver(events: Iterable[Any], callback: StreamCallback) -> int:
    """Call ``callback`` once per event, synchronously and in order."""
    n = 0
    for event in events:
        callback(event)
        n += 1
    return n


async def adeliver(events: AsyncIterable[Any], callback: StreamCallback) -> int:
    """Like deliver(); awaits the callback result when it is awaitable."""
    n = 0
    async for event in events:
        result = callback(event)
        if inspect.isawaitable(result):
            await result
        n += 1
    return n
