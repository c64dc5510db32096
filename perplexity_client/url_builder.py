"""Absolute URL construction for registered endpoints."""
from __future__ import annotations

from typing import Any, Mapping, Optional
from urllib.parse import quote

import httpx

from .config import DEFAULT_ORIGIN, normalize_base_path, normalize_origin
from .endpoints import PLACEHOLDER_RE, EndpointDescriptor
from .errors import InvalidParameterError

SCHEME = "https"


def _render_scalar(name: str, value: Any) -> str:
    # bool before int/float: bool is an int subclass
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return quote(value, safe="")
    raise InvalidParameterError(
        f'Path parameter "{name}" must be a string, number or boolean, got {type(value).__name__}.'
    )


def replace_path_parameters(path: str, parameters: Optional[Mapping[str, Any]] = None) -> str:
    """Substitute every ``{identifier}`` in ``path``; extra parameters are ignored."""
    params = parameters or {}

    def _sub(m) -> str:
        name = m.group(1)
        if name not in params:
            raise InvalidParameterError(f'Missing path parameter "{name}".')
        return _render_scalar(name, params[name])

    return PLACEHOLDER_RE.sub(_sub, path)


def build_url(
    descriptor: EndpointDescriptor,
    parameters: Optional[Mapping[str, Any]] = None,
    origin: Optional[str] = None,
    base_path: Optional[str] = None,
) -> httpx.URL:
    """Return ``https://<origin><base_path><path>`` for ``descriptor``.

    ``origin`` falls back to DEFAULT_ORIGIN when empty; ``base_path`` to "".
    """
    path = replace_path_parameters(descriptor.path, parameters)
    host = normalize_origin(origin) or DEFAULT_ORIGIN
    prefix = normalize_base_path(base_path)
    return httpx.URL(f"{SCHEME}://{host}{prefix}{path}")
