"""Normalization helpers.

Centralizes defensive parsing of provider payload values.
"""

from __future__ import annotations

import math
from typing import Any

PLACEHOLDERS = frozenset({"", "--", "NaN", "nan", "null"})


def safe_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str) and value.strip() in PLACEHOLDERS:
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def percent_to_ratio(value: Any) -> float | None:
    """Convert a percentage (``1.5`` meaning +1.5 %) to a ratio (``0.015``)."""
    parsed = safe_float(value)
    if parsed is None:
        return None
    return parsed / 100.0


def change_ratio(last: float | None, reference: float | None) -> float | None:
    """Relative change of *last* against *reference*; ``None`` when undefined."""
    if last is None or reference is None or reference <= 0:
        return None
    return (last - reference) / reference


def is_placeholder(value: Any) -> bool:
    """Return True for values providers use to mean "not available"."""
    if value is None:
        return True
    if isinstance(value, str) and value.strip() in PLACEHOLDERS:
        return True
    return isinstance(value, float) and math.isnan(value)
