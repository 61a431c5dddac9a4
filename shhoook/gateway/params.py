"""Parameter resolution for a matched request.

Builds ONE flat ``name → string`` mapping per request by merging five
sources, lowest precedence first (later sources overwrite earlier ones):

  1. endpoint query defaults
  2. endpoint body defaults
  3. path variables from the URI template
  4. URL query-string parameters (first value of a repeated key)
  5. fields of a JSON object request body

A missing, unreadable, or non-object body contributes nothing — it never
fails the request.

JSON values are coerced to strings per type:

  string  → as is
  number  → canonical decimal: no exponent, no trailing zeros, no trailing "."
            (``1e3`` → ``1000``, ``1.50`` → ``1.5``, ``2.0`` → ``2``);
            beyond float range a normalized exponent form (``1E+400``)
  boolean → ``true`` / ``false``
  other   → compact JSON (``null``, ``[1,2]``, ``{"a":"b"}``); nested
            numbers use the same canonical rendering
"""

from __future__ import annotations

import json
from decimal import Decimal
from typing import Any, Iterable, Mapping

from shhoook.constants import MAX_PLAIN_NUMBER_EXPONENT
from shhoook.endpoints.model import Endpoint

_DECODER = json.JSONDecoder(parse_float=Decimal)


def format_number(value: int | Decimal) -> str:
    """Render a JSON number in canonical decimal form.

    Magnitudes outside float range keep a normalized exponent form
    (``1E+400``) so the rendered length stays proportional to the input.
    """
    if isinstance(value, int):
        return str(value)
    if value.is_zero():
        return "0"
    if abs(value.adjusted()) > MAX_PLAIN_NUMBER_EXPONENT:
        sign, digits, exponent = value.as_tuple()
        significant = "".join(map(str, digits)).rstrip("0")
        exponent += len(digits) - len(significant)
        return str(Decimal((sign, tuple(map(int, significant)), exponent)))
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _compact_json(value: Any) -> str:
    if isinstance(value, dict):
        return "{" + ",".join(
            f"{json.dumps(key, ensure_ascii=False)}:{_compact_json(item)}"
            for key, item in value.items()
        ) + "}"
    if isinstance(value, list):
        return "[" + ",".join(_compact_json(item) for item in value) + "]"
    if isinstance(value, bool) or value is None:
        return json.dumps(value)
    if isinstance(value, (int, Decimal)):
        return format_number(value)
    return json.dumps(value, ensure_ascii=False)


def coerce_json_value(value: Any) -> str:
    """Coerce one decoded JSON value to its parameter string form."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, Decimal)):
        return format_number(value)
    return _compact_json(value)


def decode_json_object(body: bytes) -> dict[str, Any]:
    """Decode the leading JSON object of a request body.

    Only the first JSON value is read (trailing data is ignored). Returns an
    empty dict when the body is empty, not UTF-8, not JSON, or not an object.
    """
    try:
        text = body.decode("utf-8").lstrip()
        if not text:
            return {}
        value, _ = _DECODER.raw_decode(text)
    except (UnicodeDecodeError, ValueError):
        return {}
    return value if isinstance(value, dict) else {}


def resolve_params(
    endpoint: Endpoint,
    path_vars: Mapping[str, str],
    query_items: Iterable[tuple[str, str]],
    body: bytes,
) -> dict[str, str]:
    """Merge all parameter sources for one request.

    Args:
        endpoint:    The matched endpoint (supplies the defaults).
        path_vars:   Captures extracted by the endpoint's matcher.
        query_items: Query-string pairs in request order, repeats allowed.
        body:        Raw request body (may be empty).

    Returns:
        A fresh mapping owned by the caller.
    """
    params: dict[str, str] = {}
    params.update(endpoint.query_defaults)
    params.update(endpoint.body_defaults)
    params.update(path_vars)

    seen: set[str] = set()
    for key, value in query_items:
        if key not in seen:
            seen.add(key)
            params[key] = value

    for key, value in decode_json_object(body).items():
        params[key] = coerce_json_value(value)

    return params
