"""Normalization helpers.

Centralizes defensive parsing of provider payloads.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime
from typing import Any

# Threshold to distinguish seconds from milliseconds.
_MS_THRESHOLD = 1_000_000_000_000


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def parse_timestamp(value: Any) -> datetime | None:
    """Convert an epoch timestamp (seconds **or** milliseconds) or ISO string to a UTC datetime.

    Returns ``None`` when the value is missing or unparseable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            numeric = safe_float(text)
            if numeric is None:
                return None
            return parse_timestamp(numeric)
        return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)
    numeric = safe_float(value)
    if numeric is None:
        return None
    if numeric >= _MS_THRESHOLD:
        numeric /= 1000.0
    return datetime.fromtimestamp(numeric, tz=UTC)
