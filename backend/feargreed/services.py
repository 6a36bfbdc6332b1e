"""Per-domain "get series" operations.

Each operation fetches through the injected ``fetch_json`` collaborator,
normalizes the payload and returns a :class:`DomainResult`: live data, or the
deterministic fallback plus the reason it was served. This is the one layer
that catches upstream exceptions; everything below it lets them propagate.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

from . import coins as coin_list
from .client import FetchJson
from .coercion import coerce_number, iso_datetime
from .config import DEFAULT_CONFIG, config_value
from .errors import UpstreamError
from .extractors import (
    build_fear_greed_snapshot,
    extract_btc_dominance_points,
    extract_fear_greed_chart_points,
    extract_fear_greed_now,
    extract_price_chart_points,
    extract_rainbow_points,
    snapshot_name,
)
from .fallbacks import (
    BTC_DOMINANCE_PERIOD_POINTS,
    DEFAULT_DOMINANCE_PERIOD,
    build_btc_dominance_fallback,
    build_fear_greed_chart_fallback,
    build_fear_greed_fallback,
    build_price_chart_fallback,
    build_rainbow_fallback,
)
from .market import extract_market_overview
from .merge import merge_fear_greed_with_price
from .models import (
    CoinPage,
    DominancePoint,
    DomainResult,
    FearGreedPoint,
    FearGreedSnapshot,
    MarketOverview,
    PageMeta,
    RainbowPoint,
)

logger = logging.getLogger(__name__)

FEAR_GREED_PATH = "/insights/fear-and-greed"
FEAR_GREED_CHART_PATH = "/insights/fear-and-greed/chart"
BTC_CHART_PATH = "/coins/bitcoin/charts"
BTC_DOMINANCE_PATH = "/insights/btc-dominance"
RAINBOW_PATH = "/insights/rainbow-chart/{coin_id}"
COINS_PATH = "/coins"
COIN_CHARTS_PATH = "/coins/charts"
MARKETS_PATH = "/markets"

CHART_PERIODS = ("24h", "1w", "1m", "3m", "6m", "1y", "all")
CHART_PERIOD_ALIASES = {
    "7d": "1w",
    "30d": "1m",
    "60d": "3m",
    "90d": "3m",
    "180d": "6m",
    "365d": "1y",
    "12m": "1y",
}
DEFAULT_CHART_PERIOD = "1m"

RAINBOW_COINS = ("bitcoin", "ethereum")
DEFAULT_RAINBOW_COIN = "bitcoin"


def _error_message(e: BaseException) -> str:
    return str(e) or e.__class__.__name__


def _log_fetch_failure(e: BaseException, msg: str, *args: Any) -> None:
    # rate limits and 5xx are transient upstream conditions
    if isinstance(e, UpstreamError) and e.recoverable:
        logger.warning(msg, *args)
    else:
        logger.error(msg, *args)


def _fetched_at() -> str:
    return iso_datetime(time.time())


def _positive_int(value: Any, default: int) -> int:
    number = coerce_number(value)
    if number is None or number <= 0:
        return default
    return max(1, int(number))


# ----------------------------
# Parameter normalization
# ----------------------------


def normalize_coin_chart_period(value: Optional[str]) -> str:
    period = (value or "").lower()
    if period in CHART_PERIODS:
        return period
    return CHART_PERIOD_ALIASES.get(period, DEFAULT_CHART_PERIOD)


def normalize_dominance_period(value: Optional[str]) -> str:
    return value if value in BTC_DOMINANCE_PERIOD_POINTS else DEFAULT_DOMINANCE_PERIOD


def normalize_rainbow_coin(value: Optional[str]) -> str:
    return value if value in RAINBOW_COINS else DEFAULT_RAINBOW_COIN


# ----------------------------
# Fear & greed
# ----------------------------


async def get_fear_greed_now(fetch_json: FetchJson) -> DomainResult[FearGreedSnapshot]:
    try:
        raw = await fetch_json(FEAR_GREED_PATH, None)
    except Exception as e:
        _log_fetch_failure(e, "Failed to fetch fear and greed data: %s", e)
        return DomainResult.fallback(build_fear_greed_fallback(), _error_message(e))

    snapshot = build_fear_greed_snapshot(extract_fear_greed_now(raw), snapshot_name(raw))
    if snapshot is None:
        logger.warning("Empty fear and greed response, serving fallback")
        return DomainResult.fallback(build_fear_greed_fallback(), "Empty fear and greed response")

    logger.info(
        "Fear & Greed Index: %s (%s)", snapshot.now.value, snapshot.now.value_classification
    )
    return DomainResult.live(snapshot)


async def get_fear_greed_chart(fetch_json: FetchJson, period: str = "1y") -> DomainResult[List[FearGreedPoint]]:
    """Historical index merged with BTC price.

    A failed price fetch does not fail the chart: the fallback price series
    is merged instead and the error lands in ``meta["priceFallback"]``.
    """
    period = period or "1y"
    price_period = normalize_coin_chart_period(period)

    try:
        raw = await fetch_json(FEAR_GREED_CHART_PATH, {"period": period})
    except Exception as e:
        _log_fetch_failure(e, "Failed to fetch fear and greed chart data: %s", e)
        return DomainResult.fallback(build_fear_greed_chart_fallback(), _error_message(e))

    points = extract_fear_greed_chart_points(raw)
    if not points:
        logger.warning("Empty fear and greed chart response, serving fallback")
        return DomainResult.fallback(build_fear_greed_chart_fallback(), "Empty fear and greed chart response")

    meta: Dict[str, Any] = {}
    try:
        price_raw = await fetch_json(BTC_CHART_PATH, {"period": price_period, "currency": "USD"})
        prices = extract_price_chart_points(price_raw)
    except Exception as e:
        logger.warning("BTC price chart unavailable, merging fallback prices: %s", e)
        meta["priceFallback"] = _error_message(e)
        prices = build_price_chart_fallback()

    return DomainResult.live(merge_fear_greed_with_price(points, prices), **meta)


# ----------------------------
# BTC dominance / rainbow
# ----------------------------


async def get_btc_dominance(fetch_json: FetchJson, period: str = DEFAULT_DOMINANCE_PERIOD) -> DomainResult[List[DominancePoint]]:
    period = normalize_dominance_period(period)
    try:
        raw = await fetch_json(BTC_DOMINANCE_PATH, {"type": period})
    except Exception as e:
        _log_fetch_failure(e, "Failed to fetch BTC dominance data: %s", e)
        return DomainResult.fallback(
            build_btc_dominance_fallback(period), _error_message(e), period=period, fetchedAt=_fetched_at()
        )

    points = extract_btc_dominance_points(raw)
    if not points:
        logger.warning("Empty dominance response for period %s, serving fallback", period)
        return DomainResult.fallback(
            build_btc_dominance_fallback(period), "Empty dominance response", period=period, fetchedAt=_fetched_at()
        )
    return DomainResult.live(points, period=period, fetchedAt=_fetched_at())


async def get_rainbow(fetch_json: FetchJson, coin_id: str = DEFAULT_RAINBOW_COIN) -> DomainResult[List[RainbowPoint]]:
    coin_id = normalize_rainbow_coin(coin_id)
    try:
        raw = await fetch_json(RAINBOW_PATH.format(coin_id=coin_id), None)
    except Exception as e:
        _log_fetch_failure(e, "Failed to fetch rainbow data for %s: %s", coin_id, e)
        return DomainResult.fallback(
            build_rainbow_fallback(coin_id), _error_message(e), coinId=coin_id, fetchedAt=_fetched_at()
        )

    points = extract_rainbow_points(raw)
    if not points:
        logger.warning("Empty rainbow response for %s, serving fallback", coin_id)
        return DomainResult.fallback(
            build_rainbow_fallback(coin_id), "Empty rainbow response", coinId=coin_id, fetchedAt=_fetched_at()
        )
    return DomainResult.live(points, coinId=coin_id, fetchedAt=_fetched_at())


# ----------------------------
# Coins / market overview
# ----------------------------


async def get_coins(
    fetch_json: FetchJson,
    limit: Any = 10,
    page: Any = 1,
    currency: Optional[str] = "USD",
    sort_by: Optional[str] = "marketCap",
    sort_dir: Optional[str] = "desc",
    config: Optional[Dict[str, Any]] = None,
) -> DomainResult[CoinPage]:
    """Coin table page with sparklines.

    There is no synthetic coin list: on failure the fallback is an empty
    page carrying the requested page/limit.
    """
    config = config if config is not None else DEFAULT_CONFIG
    limit = _positive_int(limit, int(config_value(config, "coins.default_limit", 10)))
    page = _positive_int(page, 1)
    currency = (currency or "USD").upper()

    base_params = {
        "currency": currency,
        "sortBy": sort_by or "marketCap",
        "sortDir": sort_dir or "desc",
        "priceChange1d": True,
        "priceChange1w": True,
        "priceChange1h": True,
    }

    async def fetch_page(page_no: int, page_limit: int) -> Any:
        return await fetch_json(COINS_PATH, {**base_params, "limit": page_limit, "page": page_no})

    async def fetch_charts(batch: List[str]) -> Any:
        return await fetch_json(COIN_CHARTS_PATH, {
            "coinIds": ",".join(batch),
            "period": config_value(config, "coins.sparkline_period", "1w"),
            "interval": config_value(config, "coins.sparkline_interval", "1h"),
            "currency": currency.lower(),
        })

    try:
        coin_page = await coin_list.aggregate_coins(
            fetch_page,
            desired_count=limit,
            max_extra_page_fetches=int(config_value(config, "coins.max_additional_page_fetches", 5)),
            start_page=page,
        )
    except Exception as e:
        _log_fetch_failure(e, "Failed to fetch CoinStats coin data: %s", e)
        empty = CoinPage(coins=[], meta=PageMeta(page=page, limit=limit, has_previous_page=page > 1, has_next_page=False))
        return DomainResult.fallback(empty, _error_message(e), currency=currency)

    sparklines = await coin_list.fetch_sparklines(
        fetch_charts,
        [c.id for c in coin_page.coins],
        batch_size=int(config_value(config, "coins.sparkline_batch_size", coin_list.SPARKLINE_BATCH_SIZE)),
        max_points=int(config_value(config, "coins.sparkline_max_points", 60)),
    )
    coin_list.enrich_with_sparklines(coin_page.coins, sparklines)
    logger.info("Coins page %d: %d coins, %d sparklines", page, len(coin_page.coins), len(sparklines))
    return DomainResult.live(coin_page, currency=currency)


async def get_market_overview(fetch_json: FetchJson, currency: Optional[str] = "USD") -> DomainResult[MarketOverview]:
    currency = (currency or "USD").upper()
    try:
        raw = await fetch_json(MARKETS_PATH, {"currency": currency})
    except Exception as e:
        _log_fetch_failure(e, "Failed to fetch CoinStats market overview: %s", e)
        return DomainResult.fallback(MarketOverview(), _error_message(e), currency=currency)

    overview = extract_market_overview(raw)
    if overview.is_empty():
        return DomainResult.fallback(overview, "Empty market overview response", currency=currency)
    return DomainResult.live(overview, currency=currency)
