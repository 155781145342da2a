"""Small text helpers shared across the game model."""

from __future__ import annotations

import dataclasses
import datetime
import enum
import json
import pprint
import unicodedata
from typing import Any

# Characters treated as surrounding whitespace: the ASCII/Latin-1 spaces plus
# every code point carrying the Unicode White_Space property.
_WHITESPACE = (
    "\t\n\v\f\r \u0085\u00a0\u1680"
    "\u2000\u2001\u2002\u2003\u2004\u2005\u2006\u2007\u2008\u2009\u200a"
    "\u2028\u2029\u202f\u205f\u3000"
)

_JSON_PREFIX = "  "
_JSON_INDENT = "  "

_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def trim_space(s: str) -> str:
    """Strip surrounding whitespace, then drop all Unicode format (Cf) characters."""
    stripped = s.strip(_WHITESPACE)
    return "".join(c for c in stripped if unicodedata.category(c) != "Cf")


def normalize_email(s: str) -> str:
    """Return the canonical form of an e-mail address used for comparisons."""
    return trim_space(s).lower()


def _json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, datetime.timedelta):
        return value.total_seconds()
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    raise TypeError(f"{type(value).__name__} is not JSON serializable")


def _escape_html(text: str) -> str:
    return "".join(_HTML_ESCAPES.get(c, c) for c in text)


def pretty(value: Any) -> str:
    """Render a value as indented JSON, falling back to a structural dump."""
    try:
        encoded = json.dumps(
            value,
            indent=_JSON_INDENT,
            ensure_ascii=False,
            allow_nan=False,
            default=_json_default,
        )
    except (TypeError, ValueError):
        return pprint.pformat(value)
    lines = _escape_html(encoded).split("\n")
    return "\n".join([lines[0], *(_JSON_PREFIX + line for line in lines[1:])])