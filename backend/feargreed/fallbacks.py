"""Deterministic stand-in series served when the upstream API is unavailable.

Nothing here touches the network, the clock or a random source: the same
arguments always give the same series.
"""
from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Dict, List

from .coercion import iso_datetime
from .models import (
    DominancePoint,
    FearGreedPoint,
    FearGreedSnapshot,
    PricePoint,
    RainbowPoint,
    classify_fear_greed,
)

# 2024-01-01T00:00:00Z
FALLBACK_BASE_TIMESTAMP = 1704067200
DAY_SECONDS = 24 * 60 * 60
HOUR_SECONDS = 60 * 60

DEFAULT_DOMINANCE_PERIOD = "1y"

BTC_DOMINANCE_PERIOD_INTERVAL_SECONDS: Dict[str, int] = {
    "24h": HOUR_SECONDS,
    "1w": 6 * HOUR_SECONDS,
    "1m": 12 * HOUR_SECONDS,
    "3m": DAY_SECONDS,
    "6m": DAY_SECONDS,
    "1y": DAY_SECONDS,
    "all": 7 * DAY_SECONDS,
}

BTC_DOMINANCE_PERIOD_POINTS: Dict[str, int] = {
    "24h": 24,
    "1w": 28,
    "1m": 60,
    "3m": 90,
    "6m": 180,
    "1y": 365,
    "all": 520,
}

# (days before base, index value, BTC price)
_FEAR_GREED_CHART_BASE = (
    (11, 75, 95000.0),
    (10, 50, 98000.0),
    (9, 40, 105000.0),
    (8, 30, 110000.0),
    (7, 25, 115000.0),
    (6, 35, 108000.0),
    (5, 45, 112000.0),
    (4, 60, 118000.0),
    (3, 85, 122000.0),
    (2, 70, 125000.0),
    (1, 65, 120000.0),
    (0, 27, 126000.0),
)

RAINBOW_START = datetime(2013, 1, 1, tzinfo=timezone.utc)
RAINBOW_POINTS = 120
RAINBOW_STEP_DAYS = 30


def build_fear_greed_fallback() -> FearGreedSnapshot:
    base = FALLBACK_BASE_TIMESTAMP
    return FearGreedSnapshot(
        name="Fear and Greed Index",
        now=FearGreedPoint(
            timestamp=base,
            value=25,
            value_classification="Extreme Fear",
            update_time=iso_datetime(base),
        ),
        yesterday=FearGreedPoint(
            timestamp=base - DAY_SECONDS,
            value=24,
            value_classification="Extreme Fear",
        ),
        last_week=FearGreedPoint(
            timestamp=base - 7 * DAY_SECONDS,
            value=83,
            value_classification="Extreme Greed",
        ),
    )


def build_fear_greed_chart_fallback() -> List[FearGreedPoint]:
    return [
        FearGreedPoint(
            timestamp=FALLBACK_BASE_TIMESTAMP - offset * DAY_SECONDS,
            value=value,
            value_classification=classify_fear_greed(value),
            price=price,
        )
        for offset, value, price in _FEAR_GREED_CHART_BASE
    ]


def build_price_chart_fallback() -> List[PricePoint]:
    return [
        PricePoint(timestamp=p.timestamp, price=p.price if p.price is not None else 0.0)
        for p in build_fear_greed_chart_fallback()
    ]


def build_btc_dominance_fallback(period: str = DEFAULT_DOMINANCE_PERIOD) -> List[DominancePoint]:
    """Sinusoid around 47% with a 4 point upward drift across the window."""
    if period not in BTC_DOMINANCE_PERIOD_POINTS:
        period = DEFAULT_DOMINANCE_PERIOD
    step = BTC_DOMINANCE_PERIOD_INTERVAL_SECONDS[period]
    total = BTC_DOMINANCE_PERIOD_POINTS[period]

    points = []
    for index in range(total):
        base = 47 + 6 * math.sin(index / 14)
        trend = (index / total) * 4
        points.append(
            DominancePoint(
                timestamp=FALLBACK_BASE_TIMESTAMP - (total - index) * step,
                dominance=round(base + trend, 2),
            )
        )
    return points


def build_rainbow_fallback(coin_id: str = "bitcoin") -> List[RainbowPoint]:
    """Monthly exponential growth curve with a slow multiplicative wobble."""
    points = []
    for i in range(RAINBOW_POINTS):
        date = RAINBOW_START + timedelta(days=i * RAINBOW_STEP_DAYS)
        years = i / 12
        if coin_id == "ethereum":
            base = 50 * math.exp(years * 0.18)
        else:
            base = 100 * math.exp(years * 0.16)
        noise = 1 + 0.15 * math.sin(i / 4)
        points.append(RainbowPoint(date=date.strftime("%Y-%m-%d"), price=round(base * noise, 2)))
    return points
