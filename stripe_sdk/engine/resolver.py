"""Path template resolution and payload encoding."""

import json
from dataclasses import dataclass
from typing import Any, Mapping
from urllib.parse import quote, urlencode

from stripe_sdk.engine.errors import MissingPathParameterError
from stripe_sdk.engine.routes import PLACEHOLDER_RE, Route

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE = "application/json"


@dataclass
class ResolvedPath:
    path: str
    path_params: dict[str, Any]
    payload: dict[str, Any]


def stringify(value: Any) -> str:
    """Form/query representation of a scalar."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def resolve_path(route: Route, args: Mapping[str, Any]) -> ResolvedPath:
    """
    Substitute placeholders from args and return the leftover payload.

    Placeholders are consumed from a working copy of args, so the caller's
    mapping is never mutated.
    """
    remaining = dict(args)
    path_params: dict[str, Any] = {}

    def substitute(match) -> str:
        name = match.group(1)
        if name in path_params:
            return quote(stringify(path_params[name]), safe="")
        if name not in remaining or remaining[name] is None:
            raise MissingPathParameterError(route.name, name, route.path_template)
        value = remaining.pop(name)
        path_params[name] = value
        return quote(stringify(value), safe="")

    path = PLACEHOLDER_RE.sub(substitute, route.path_template)
    return ResolvedPath(path=path, path_params=path_params, payload=remaining)


def flatten_form(payload: Mapping[str, Any], prefix: str = "") -> list[tuple[str, str]]:
    """
    Flatten nested values with bracket notation.

    {"metadata": {"a": 1}, "items": [{"price": "p"}]}
    -> [("metadata[a]", "1"), ("items[0][price]", "p")]
    """
    pairs: list[tuple[str, str]] = []
    for key, value in payload.items():
        name = f"{prefix}[{key}]" if prefix else str(key)
        pairs.extend(_flatten_value(name, value))
    return pairs


def _flatten_value(name: str, value: Any) -> list[tuple[str, str]]:
    if value is None:
        return []
    if isinstance(value, Mapping):
        return flatten_form(value, name)
    if isinstance(value, (list, tuple)):
        pairs: list[tuple[str, str]] = []
        for index, item in enumerate(value):
            pairs.extend(_flatten_value(f"{name}[{index}]", item))
        return pairs
    return [(name, stringify(value))]


def encode_query(payload: Mapping[str, Any]) -> list[tuple[str, str]]:
    return flatten_form(payload)


def encode_body(payload: Mapping[str, Any], content_type: str | None) -> bytes | None:
    """Encode a request body for the negotiated content type."""
    if not payload:
        return None
    if content_type and content_type.split(";")[0].strip() == JSON_CONTENT_TYPE:
        return json.dumps(payload).encode()
    return urlencode(flatten_form(payload)).encode()
