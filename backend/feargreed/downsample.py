from __future__ import annotations

import math
from typing import List, Sequence

MAX_SPARKLINE_POINTS = 60


def downsample(prices: Sequence[float], target_count: int = MAX_SPARKLINE_POINTS) -> List[float]:
    """Uniformly resample ``prices`` down to ``target_count`` values.

    The first sample is always ``prices[0]`` and the last is always
    ``prices[-1]``, even when rounding of the uniform step would land
    elsewhere.
    """
    if len(prices) <= target_count:
        return list(prices)
    if target_count <= 0:
        return []
    if target_count == 1:
        return [prices[-1]]

    last = len(prices) - 1
    step = last / (target_count - 1)
    sampled: List[float] = []
    for i in range(target_count):
        # half-up rounding; round() would bank to even
        idx = last if i == target_count - 1 else int(math.floor(i * step + 0.5))
        sampled.append(prices[min(idx, last)])

    if sampled[-1] != prices[last]:
        sampled[-1] = prices[last]
    return sampled
