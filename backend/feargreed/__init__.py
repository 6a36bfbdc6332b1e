"""Crypto market-sentiment data core: CoinStats fetch, normalization, fallbacks."""

from .client import CoinStatsClient
from .errors import FearGreedError, MissingApiKeyError, UpstreamError
from .models import (
    CoinPage,
    CoinRecord,
    DominancePoint,
    DomainResult,
    FearGreedPoint,
    FearGreedSnapshot,
    MarketOverview,
    PageMeta,
    PricePoint,
    RainbowPoint,
)
from .services import (
    get_btc_dominance,
    get_coins,
    get_fear_greed_chart,
    get_fear_greed_now,
    get_market_overview,
    get_rainbow,
)

__version__ = "0.1.0"

__all__ = [
    "CoinStatsClient",
    "FearGreedError",
    "MissingApiKeyError",
    "UpstreamError",
    "CoinPage",
    "CoinRecord",
    "DominancePoint",
    "DomainResult",
    "FearGreedPoint",
    "FearGreedSnapshot",
    "MarketOverview",
    "PageMeta",
    "PricePoint",
    "RainbowPoint",
    "get_btc_dominance",
    "get_coins",
    "get_fear_greed_chart",
    "get_fear_greed_now",
    "get_market_overview",
    "get_rainbow",
]
