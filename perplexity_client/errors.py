"""Exception hierarchy.

Every failure the client raises is a PerplexityError carrying a message and a
status code (0 when there is no HTTP status). The underlying exception, if
any, is chained as ``__cause__``.
"""
from __future__ import annotations


class PerplexityError(Exception):
    def __init__(self, message: str, status_code: int = 0) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, status_code={self.status_code})"


class ConfigurationError(PerplexityError, ValueError):
    """Unknown operation name or otherwise unusable call setup."""


class InvalidParameterError(ConfigurationError):
    """A path placeholder is missing or its value is not a scalar."""


class SerializationError(PerplexityError, TypeError):
    """Request body could not be JSON-encoded."""


class APICallError(PerplexityError):
    """Transport failure (status_code 0) or HTTP status >= 400."""


class ResponseDecodeError(PerplexityError):
    """Response body is not valid JSON."""


class StreamDecodeError(ResponseDecodeError):
    """A ``data:`` line of a streamed response is not valid JSON."""
