"""Nearest-timestamp alignment of fear & greed values with BTC prices."""
from __future__ import annotations

import math
from bisect import bisect_left
from dataclasses import replace
from typing import Dict, List, Optional, Sequence

from .models import FearGreedPoint, PricePoint


def nearest_index(timestamps: Sequence[int], target: int) -> Optional[int]:
    """Index of the timestamp closest to ``target`` in an ascending sequence.

    An exact hit wins outright. Otherwise the neighbours either side of the
    insertion point are compared and, on equal distance, the earlier one is
    chosen. Targets outside the range clamp to the first or last element.
    """
    if not timestamps:
        return None
    pos = bisect_left(timestamps, target)
    if pos < len(timestamps) and timestamps[pos] == target:
        return pos
    if pos == 0:
        return 0
    if pos == len(timestamps):
        return len(timestamps) - 1
    before, after = pos - 1, pos
    if abs(timestamps[after] - target) < abs(timestamps[before] - target):
        return after
    return before


def find_nearest_price(prices: Sequence[PricePoint], timestamp: int) -> Optional[float]:
    """``prices`` must already be sorted ascending by timestamp."""
    idx = nearest_index([p.timestamp for p in prices], timestamp)
    return prices[idx].price if idx is not None else None


def _has_price(point: FearGreedPoint) -> bool:
    return isinstance(point.price, (int, float)) and math.isfinite(point.price)


def merge_fear_greed_with_price(
    fear_greed: List[FearGreedPoint],
    prices: List[PricePoint],
) -> List[FearGreedPoint]:
    """Fill in the BTC price of every fear & greed point that lacks one."""
    if not prices:
        return fear_greed

    # later duplicates win
    exact: Dict[int, float] = {p.timestamp: p.price for p in prices}
    ordered = sorted(prices, key=lambda p: p.timestamp)
    timestamps = [p.timestamp for p in ordered]

    merged: List[FearGreedPoint] = []
    for point in fear_greed:
        if _has_price(point):
            merged.append(point)
            continue
        if point.timestamp in exact:
            merged.append(replace(point, price=exact[point.timestamp]))
            continue
        idx = nearest_index(timestamps, point.timestamp)
        merged.append(replace(point, price=ordered[idx].price if idx is not None else None))
    return merged
