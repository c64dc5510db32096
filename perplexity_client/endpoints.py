"""Static table of API operations.

Each operation name maps to an HTTP method and a path template whose
``{identifier}`` placeholders are filled from call parameters.
"""
from __future__ import annotations

import re
from types import MappingProxyType
from typing import List, Literal, Mapping

from pydantic import BaseModel, ConfigDict

from .errors import ConfigurationError

PLACEHOLDER_RE = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")

HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]


class EndpointDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    method: HttpMethod
    path: str

    @property
    def placeholders(self) -> List[str]:
        return PLACEHOLDER_RE.findall(self.path)


ENDPOINTS: Mapping[str, EndpointDescriptor] = MappingProxyType(
    {
        # https://docs.perplexity.ai/api-reference/chat-completions-post
        "create_chat_completion": EndpointDescriptor(method="POST", path="/chat/completions"),
        # https://docs.perplexity.ai/api-reference/async-chat-completions-post
        "create_async_chat_completion": EndpointDescriptor(method="POST", path="/async/chat/completions"),
        "list_async_chat_completions": EndpointDescriptor(method="GET", path="/async/chat/completions"),
        "get_async_chat_completion": EndpointDescriptor(method="GET", path="/async/chat/completions/{request_id}"),
    }
)


def lookup(name: str) -> EndpointDescriptor:
    """Return the descriptor registered under ``name``.

    Raises ConfigurationError for unknown names.
    """
    try:
        return ENDPOINTS[name]
    except (KeyError, TypeError):
        raise ConfigurationError(f'Invalid Perplexity API operation "{name}".') from None
