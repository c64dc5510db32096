"""Shared fixtures: isolated settings and clients wired to httpx.MockTransport."""

from __future__ import annotations

from typing import Callable

import httpx
import pytest

from perplexity_client import AsyncPerplexityClient, PerplexityClient, Settings

from .fakes import RecordingHandler

API_KEY = "pplx-test-key"
ORIGIN = "example.com"


@pytest.fixture()
def settings() -> Settings:
    """Settings that ignore the developer's environment and .env file."""

    return Settings(_env_file=None, api_key=API_KEY)


@pytest.fixture()
def make_client(settings: Settings) -> Callable[..., tuple[PerplexityClient, RecordingHandler]]:
    """Factory returning a sync client plus the handler that answers it."""

    clients: list[PerplexityClient] = []

    def _make(
        reply: Callable[[httpx.Request], httpx.Response],
        **kwargs,
    ) -> tuple[PerplexityClient, RecordingHandler]:
        handler = RecordingHandler(reply)
        kwargs.setdefault("origin", ORIGIN)
        client = PerplexityClient(
            transport=httpx.MockTransport(handler),
            settings=settings,
            **kwargs,
        )
        clients.append(client)
        return client, handler

    yield _make
    for client in clients:
        client.close()


@pytest.fixture()
def make_async_client(settings: Settings) -> Callable[..., tuple[AsyncPerplexityClient, RecordingHandler]]:
    """Factory returning an async client plus the handler that answers it."""

    def _make(
        reply: Callable[[httpx.Request], httpx.Response],
        **kwargs,
    ) -> tuple[AsyncPerplexityClient, RecordingHandler]:
        handler = RecordingHandler(reply)
        kwargs.setdefault("origin", ORIGIN)
        client = AsyncPerplexityClient(
            transport=httpx.MockTransport(handler),
            settings=settings,
            **kwargs,
        )
        return client, handler

    return _make


@pytest.fixture()
def chat_body() -> dict:
    return {
        "model": "sonar",
        "messages": [{"role": "user", "content": "Test message"}],
    }
