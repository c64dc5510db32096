"""Pydantic models and helpers shared by the client.

Contains transport options and stream event helpers.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigurationError

STREAM_KEY = "stream"
CUSTOM_HEADERS_KEY = "customHeaders"


class TransportOptions(BaseModel):
    """Per-call options consumed by the client itself, never sent as body.

    - stream: request a streamed response (events go to a callback, or the raw
      response is handed back)
    - custom_headers: headers merged over the defaults (alias customHeaders)
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    stream: bool = Field(default=False)
    custom_headers: Dict[str, str] = Field(default_factory=dict, alias=CUSTOM_HEADERS_KEY)


def split_options(options: Optional[Mapping[str, Any]]) -> Tuple[Dict[str, Any], TransportOptions]:
    """Separate a flat options map into body fields and TransportOptions.

    The reserved ``stream`` and ``customHeaders`` keys are removed from the
    returned body; the input mapping is left untouched. A malformed
    ``customHeaders`` value raises ConfigurationError.
    """
    body = dict(options or {})
    try:
        transport = TransportOptions(
            stream=body.pop(STREAM_KEY, False) is True,
            custom_headers=body.pop(CUSTOM_HEADERS_KEY, None) or {},
        )
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid {CUSTOM_HEADERS_KEY}: headers must map strings to strings ({e.error_count()} error(s))."
        ) from e
    return body, transport


def extract_delta(event: Any) -> str:
    """Return the text carried by one chat completion chunk, or ""."""
    try:
        choice = event["choices"][0]
    except (KeyError, IndexError, TypeError):
        return ""
    if not isinstance(choice, dict):
        return ""
    for key in ("delta", "message"):
        part = choice.get(key)
        if isinstance(part, dict):
            content = part.get("content")
            if isinstance(content, str):
                return content
    return ""
