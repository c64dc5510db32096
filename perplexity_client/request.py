"""Request assembly: default headers, caller overrides and the JSON body."""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

import httpx
from pydantic import SecretStr

from .codec import encode_json

JSON_CONTENT_TYPE = "application/json"


def build_headers(api_key: SecretStr, custom_headers: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Default headers merged with ``custom_headers`` (same key wins)."""
    headers = {
        "Authorization": f"Bearer {api_key.get_secret_value()}",
        "Content-Type": JSON_CONTENT_TYPE,
    }
    headers.update(custom_headers or {})
    return headers


def assemble_request(
    url: httpx.URL | str,
    method: str,
    body_fields: Optional[Mapping[str, Any]],
    api_key: SecretStr,
    extra_headers: Optional[Mapping[str, str]] = None,
) -> httpx.Request:
    """Build the outgoing request.

    An empty ``body_fields`` sends no payload at all. Otherwise the fields are
    JSON-encoded as given; SerializationError propagates if that fails.
    """
    headers = httpx.Headers()
    # Assign one by one so "authorization" replaces "Authorization" instead of adding a second value
    for key, value in build_headers(api_key, extra_headers).items():
        headers[key] = value
    content = encode_json(dict(body_fields)) if body_fields else None
    return httpx.Request(method, url, headers=headers, content=content)
