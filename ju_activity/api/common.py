"""
Helpers shared by the resource API modules.

Responsible for:
- Converting snake_case field dicts into the gateway's camelCase JSON bodies
- Building query strings without empty filters
- Turning decoded bodies into models, raising GatewayFailure for malformed ones
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional, TypeVar

from ju_activity.errors import GatewayFailure

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

# Parsers return None for records missing required fields
Parser = Callable[[Mapping[str, Any]], Optional[T]]


def to_camel(name: str) -> str:
    """Convert a snake_case key into camelCase (``student_id`` -> ``studentId``)."""
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def to_payload(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Build a JSON body from snake_case fields, dropping keys whose value is None."""
    return {to_camel(key): value for key, value in fields.items() if value is not None}


def clean_params(filters: Mapping[str, Any] | None) -> dict[str, str] | None:
    """Build query params, dropping None/empty values and rendering booleans the way the gateway parses them."""
    if not filters:
        return None
    params: dict[str, str] = {}
    for key, value in filters.items():
        if value is None or value == "":
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        params[to_camel(key)] = str(value)
    return params or None


def as_list(raw_json: Any) -> list[dict]:
    """Return the list body of a collection response; anything else is treated as empty."""
    if isinstance(raw_json, list):
        return [item for item in raw_json if isinstance(item, dict)]
    return []


def parse_item(parser: Parser[T], raw_json: Any, what: str) -> T:
    """
    Parse a single-object response.

    Raises GatewayFailure when the body is not an object or cannot be mapped,
    so malformed 2xx answers fail like any other gateway error.
    """
    if not isinstance(raw_json, Mapping):
        raise GatewayFailure(f"Unexpected {what} response from backend: expected an object")
    try:
        item = parser(raw_json)
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise GatewayFailure(f"Unexpected {what} response from backend: {exc!r}") from exc
    if item is None:
        raise GatewayFailure(f"Unexpected {what} response from backend: missing required fields")
    return item


def parse_items(parser: Parser[T], raw_json: Any, what: str) -> list[T]:
    """Parse a collection response, skipping records that cannot be mapped."""
    items = []
    for raw in as_list(raw_json):
        try:
            item = parser(raw)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            _LOGGER.warning("Skipping malformed %s %s: %s", what, raw.get("id"), exc)
            continue
        if item is not None:
            items.append(item)
    return items
