"""Coercion of untrusted JSON scalars into numbers and epoch seconds.

Every extractor reads upstream fields through these two helpers; neither one
raises, whatever the input.
"""
from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Optional

# Anything at or above this is an epoch in milliseconds (year 5138 in seconds).
MILLISECONDS_THRESHOLD = 1e11
# 9999-12-31T23:59:59Z, the last second datetime can represent
MAX_TIMESTAMP = 253402300799


def coerce_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
        return number if math.isfinite(number) else None
    if isinstance(value, str) and value.strip():
        try:
            number = float(value.strip())
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def _parse_date(text: str) -> Optional[datetime]:
    text = text.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def coerce_timestamp(value: Any) -> Optional[int]:
    """Return integer epoch seconds, or None when ``value`` is not a time."""
    number = coerce_number(value)
    if number is not None:
        if abs(number) >= MILLISECONDS_THRESHOLD:
            number = number / 1000.0
        seconds = math.floor(number)
        return seconds if 0 <= seconds <= MAX_TIMESTAMP else None

    if isinstance(value, str) and value.strip():
        parsed = _parse_date(value)
        if parsed is None:
            return None
        try:
            seconds = math.floor(parsed.timestamp())
        except (OverflowError, OSError, ValueError):
            return None
        return seconds if 0 <= seconds <= MAX_TIMESTAMP else None

    return None


def iso_date(timestamp: int) -> str:
    """Render epoch seconds as a ``YYYY-MM-DD`` UTC date."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d")


def iso_datetime(timestamp: float) -> str:
    """Render epoch seconds as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    moment = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"
