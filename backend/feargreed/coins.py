"""Paginated coin-list aggregation and batched sparkline enrichment.

Pages are fetched one after another because each page's ``meta`` decides
whether another one is worth asking for. Coins are deduplicated by identity
key across pages. Sparkline batches are independent of each other and are
fetched concurrently; a failed batch only costs its own coins their
sparklines.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, Set

from .coercion import coerce_number
from .downsample import MAX_SPARKLINE_POINTS, downsample
from .extractors import collect_candidate_arrays, extract_price_chart_points, first_number, first_text, key
from .models import CoinPage, CoinRecord, PageMeta

logger = logging.getLogger(__name__)

FetchPage = Callable[[int, int], Awaitable[Any]]
FetchCharts = Callable[[List[str]], Awaitable[Any]]

SPARKLINE_BATCH_SIZE = 20
MAX_ADDITIONAL_PAGE_FETCHES = 5

COIN_LIST_SOURCES = (
    key("result"),
    key("result", "coins"),
    key("coins"),
    key("data"),
)

SPARKLINE_ID_FIELDS = ("id", "coinId", "coin")
SPARKLINE_NESTED_KEYS = ("data", "points", "prices", "values", "series")
SPARKLINE_COLLECTIONS = ("data", "charts", "points", "prices")


# ----------------------------
# Coin list envelope
# ----------------------------


def coin_from_raw(raw: Dict[str, Any]) -> CoinRecord:
    coin_id = raw.get("id")
    return CoinRecord(
        id=coin_id if isinstance(coin_id, str) and coin_id else None,
        symbol=first_text(raw, ("symbol",)),
        name=first_text(raw, ("name",)),
        rank=first_number(raw, ("rank", "market_cap_rank")),
        market_cap=first_number(raw, ("marketCap", "market_cap")),
        price=first_number(raw, ("price", "current_price")),
        raw=dict(raw),
    )


def extract_coins(payload: Any) -> List[CoinRecord]:
    """Coins from the first recognised list in a coin-list envelope."""
    arrays = collect_candidate_arrays(payload, COIN_LIST_SOURCES)
    if not arrays:
        return []
    return [coin_from_raw(item) for item in arrays[0] if isinstance(item, dict)]


def _as_bool(value: Any) -> Optional[bool]:
    return value if isinstance(value, bool) else None


def _as_int(value: Any) -> Optional[int]:
    number = coerce_number(value)
    return int(number) if number is not None else None


def extract_page_meta(payload: Any) -> Optional[PageMeta]:
    if not isinstance(payload, dict):
        return None
    raw = payload.get("meta")
    if not isinstance(raw, dict):
        result = payload.get("result")
        raw = result.get("meta") if isinstance(result, dict) else None
    if not isinstance(raw, dict):
        return None
    return PageMeta(
        page=_as_int(raw.get("page")),
        limit=_as_int(raw.get("limit")),
        item_count=_as_int(raw.get("itemCount")),
        page_count=_as_int(raw.get("pageCount")),
        has_previous_page=_as_bool(raw.get("hasPreviousPage")),
        has_next_page=_as_bool(raw.get("hasNextPage")),
    )


# ----------------------------
# Identity / dedup
# ----------------------------


def coin_identity_key(coin: CoinRecord) -> str:
    """``id`` when present, else ``SYMBOL:rank``.

    Two different assets sharing both symbol and rank would collide; upstream
    data has not been seen to do that.
    """
    if coin.id:
        return coin.id
    symbol = coin.symbol.upper() if coin.symbol else "unknown"
    if coin.rank is None:
        rank = "nr"
    elif float(coin.rank).is_integer():
        rank = str(int(coin.rank))
    else:
        rank = str(coin.rank)
    return f"{symbol}:{rank}"


def dedupe_coins(coins: Iterable[CoinRecord]) -> List[CoinRecord]:
    unique: List[CoinRecord] = []
    append_unique_coins(unique, coins)
    return unique


def append_unique_coins(target: List[CoinRecord], coins: Iterable[CoinRecord]) -> int:
    """Append the coins whose identity is not in ``target`` yet; return how many."""
    seen = {coin_identity_key(c) for c in target}
    added = 0
    for coin in coins:
        ident = coin_identity_key(coin)
        if ident in seen:
            continue
        seen.add(ident)
        target.append(coin)
        added += 1
    return added


def should_attempt_additional_fetch(meta: Optional[PageMeta], current: int, desired: int) -> bool:
    if current >= desired:
        return False
    if meta is not None and meta.has_next_page is not None:
        return meta.has_next_page
    return True


def build_page_meta(source: Optional[PageMeta], page: int, limit: int, has_additional: bool) -> PageMeta:
    if source is None:
        return PageMeta(page=page, limit=limit, has_previous_page=page > 1, has_next_page=has_additional)
    return PageMeta(
        page=page,
        limit=limit,
        item_count=source.item_count,
        page_count=source.page_count,
        has_previous_page=source.has_previous_page if source.has_previous_page is not None else page > 1,
        has_next_page=source.has_next_page if source.has_next_page is not None else has_additional,
    )


# ----------------------------
# Pagination
# ----------------------------


async def aggregate_coins(
    fetch_page: FetchPage,
    desired_count: int,
    max_extra_page_fetches: int = MAX_ADDITIONAL_PAGE_FETCHES,
    page_size: Optional[int] = None,
    start_page: int = 1,
) -> CoinPage:
    """Accumulate ``desired_count`` unique coins starting at ``start_page``.

    A failure on the first page propagates. A failure on a later page stops
    pagination and keeps what was accumulated.
    """
    limit = page_size or desired_count

    initial = await fetch_page(start_page, limit)
    coins = dedupe_coins(extract_coins(initial))
    latest_meta = extract_page_meta(initial)

    page = start_page
    extra = 0
    while (
        len(coins) < desired_count
        and extra < max_extra_page_fetches
        and should_attempt_additional_fetch(latest_meta, len(coins), desired_count)
    ):
        page += 1
        extra += 1
        try:
            payload = await fetch_page(page, limit)
        except Exception as e:
            logger.warning("Coin page %d fetch failed, keeping %d coins: %s", page, len(coins), e)
            break

        next_coins = extract_coins(payload)
        latest_meta = extract_page_meta(payload) or latest_meta
        if not next_coins:
            logger.debug("Coin page %d returned no coins", page)
            break
        if append_unique_coins(coins, next_coins) == 0:
            logger.debug("Coin page %d added no unseen coins, stopping", page)
            break

    has_additional = len(coins) > desired_count
    meta = build_page_meta(latest_meta, start_page, desired_count, has_additional)
    logger.debug("Aggregated %d coins over %d extra page(s)", len(coins), extra)
    return CoinPage(coins=coins[:desired_count], meta=meta)


# ----------------------------
# Sparklines
# ----------------------------


def _chart_prices(record: Dict[str, Any]) -> List[float]:
    chart_source: Any = record
    for name in ("chart", "charts"):
        if record.get(name) is not None:
            chart_source = record[name]
            break
    points = extract_price_chart_points(chart_source)
    if not points:
        for name in SPARKLINE_NESTED_KEYS:
            candidate = record.get(name)
            if not candidate:
                continue
            points = extract_price_chart_points(candidate)
            if points:
                break
    return [p.price for p in points]


def populate_sparkline_batch(
    target: Dict[str, List[float]],
    raw: Any,
    expected_ids: Set[str],
    max_points: int = MAX_SPARKLINE_POINTS,
) -> None:
    """Map coin id -> downsampled prices for every chart found in ``raw``."""

    def process(item: Any, fallback_id: Optional[str] = None) -> None:
        if not isinstance(item, dict):
            return
        coin_id = first_text(item, SPARKLINE_ID_FIELDS) or fallback_id
        if not coin_id or coin_id not in expected_ids:
            return
        prices = _chart_prices(item)
        if prices:
            target[coin_id] = downsample(prices, max_points)

    def process_collection(value: Any) -> None:
        if isinstance(value, list):
            for item in value:
                process(item)
        elif isinstance(value, dict):
            for entry_key, entry in value.items():
                process(entry, entry_key if entry_key in expected_ids else None)

    if isinstance(raw, list):
        process_collection(raw)
        return
    if not isinstance(raw, dict):
        return

    process_collection(raw.get("result"))
    for name in SPARKLINE_COLLECTIONS:
        process_collection(raw.get(name))
    for entry_key, entry in raw.items():
        if entry_key in expected_ids:
            process(entry, entry_key)


async def fetch_sparklines(
    fetch_charts: FetchCharts,
    coin_ids: Sequence[Optional[str]],
    batch_size: int = SPARKLINE_BATCH_SIZE,
    max_points: int = MAX_SPARKLINE_POINTS,
) -> Dict[str, List[float]]:
    ids = [i for i in coin_ids if i]
    if not ids:
        return {}
    batch_size = max(1, batch_size)
    batches = [ids[i:i + batch_size] for i in range(0, len(ids), batch_size)]
    expected = set(ids)

    results = await asyncio.gather(*(fetch_charts(batch) for batch in batches), return_exceptions=True)

    sparklines: Dict[str, List[float]] = {}
    for batch, result in zip(batches, results):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            logger.warning("Failed to fetch sparkline batch for ids [%s]: %s", ", ".join(batch), result)
            continue
        populate_sparkline_batch(sparklines, result, expected, max_points)
    return sparklines


def enrich_with_sparklines(coins: List[CoinRecord], sparklines: Dict[str, List[float]]) -> List[CoinRecord]:
    for coin in coins:
        coin.sparkline = list(sparklines.get(coin.id, [])) if coin.id else []
    return coins
