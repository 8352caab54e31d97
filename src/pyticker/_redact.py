"""Helpers for safe debug logging.

Provider requests may carry API keys in query parameters or headers. This
module masks those values before requests are written to DEBUG logs.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

REDACTED = "<redacted>"

# Compared after folding "-" to "_" and lowercasing.
_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "apikey",
        "api_key",
        "appid",
        "token",
        "authorization",
        "cookie",
        "x_mbx_apikey",
    }
)
_SENSITIVE_SUFFIXES = ("_api_key", "_apikey", "_secret")


def _is_sensitive(key: object) -> bool:
    folded = str(key).lower().replace("-", "_")
    return folded in _SENSITIVE_KEYS or folded.endswith(_SENSITIVE_SUFFIXES)


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Return a copy of a JSON-like *value* with secrets masked and long strings cut."""
    if _depth > 10:
        return "<max-depth>"
    if isinstance(value, str):
        return value if len(value) <= max_string else f"{value[:max_string]}…<truncated>"
    if value is None or isinstance(value, (bool, int, float)):
        return value
    depth = _depth + 1
    if isinstance(value, Mapping):
        return {
            str(key): REDACTED if _is_sensitive(key) else redact_for_log(item, max_string=max_string, _depth=depth)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact_for_log(item, max_string=max_string, _depth=depth) for item in value]
    return repr(value)


def redact_url(url: str) -> str:
    """Return *url* with sensitive query parameter values replaced."""
    parts = urlsplit(url)
    if not parts.query:
        return url
    query = [
        (key, REDACTED if _is_sensitive(key) else value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
    ]
    return urlunsplit(parts._replace(query=urlencode(query, safe="<>")))
