"""JSON encode/decode on top of orjson."""
from __future__ import annotations

from typing import Any

import orjson

from .errors import SerializationError

JSONDecodeError = orjson.JSONDecodeError


def encode_json(value: Any) -> bytes:
    """Serialize ``value`` to UTF-8 JSON bytes.

    Raises SerializationError for anything orjson cannot represent (file
    handles, circular structures, non-string keys, ...). Nothing is dropped.
    """
    try:
        return orjson.dumps(value)
    except orjson.JSONEncodeError as e:
        raise SerializationError(f"JSON encode error: {e}") from e


def decode_json(data: bytes | bytearray | memoryview | str) -> Any:
    """Parse JSON; raises orjson.JSONDecodeError (a ValueError) on bad input."""
    return orjson.loads(data)
