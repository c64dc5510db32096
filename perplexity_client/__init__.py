"""Thin client for the Perplexity chat completions API."""
from __future__ import annotations

from .client import AsyncPerplexityClient, PerplexityClient
from .config import DEFAULT_ORIGIN, Settings, get_settings
from .endpoints import ENDPOINTS, EndpointDescriptor, lookup
from .errors import (
    APICallError,
    ConfigurationError,
    InvalidParameterError,
    PerplexityError,
    ResponseDecodeError,
    SerializationError,
    StreamDecodeError,
)
from .logging import setup_logging
from .models import TransportOptions, extract_delta, split_options
from .request import assemble_request, build_headers
from .streaming import SENTINEL, SSE_PREFIX, StreamParser, iter_stream_events
from .url_builder import build_url

__all__ = [
    "APICallError",
    "AsyncPerplexityClient",
    "ConfigurationError",
    "DEFAULT_ORIGIN",
    "ENDPOINTS",
    "EndpointDescriptor",
    "InvalidParameterError",
    "PerplexityClient",
    "PerplexityError",
    "ResponseDecodeError",
    "SENTINEL",
    "SSE_PREFIX",
    "SerializationError",
    "Settings",
    "StreamDecodeError",
    "StreamParser",
    "TransportOptions",
    "assemble_request",
    "build_headers",
    "build_url",
    "extract_delta",
    "get_settings",
    "iter_stream_events",
    "lookup",
    "setup_logging",
    "split_options",
]
