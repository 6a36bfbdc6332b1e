"""
Response contracts for the per-domain series payloads.

These Pydantic models define the JSON shape an HTTP or CLI boundary hands to
chart consumers, so every domain result is validated/shaped the same way.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Literal

from pydantic import BaseModel, ConfigDict, Field

from .models import DomainResult


class PayloadMeta(BaseModel):
    """Provenance metadata; ``error`` is set whenever fallback data is served."""

    model_config = ConfigDict(extra="allow")

    error: str | None = None
    priceFallback: str | None = None
    fetchedAt: str | None = None
    period: str | None = None
    coinId: str | None = None
    currency: str | None = None


class FearGreedPointModel(BaseModel):
    model_config = ConfigDict(extra="allow")

    timestamp: int
    value: int | float
    value_classification: str | None = None
    price: int | float | None = None
    update_time: str | None = None


class FearGreedNowPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    now: FearGreedPointModel
    yesterday: FearGreedPointModel
    lastWeek: FearGreedPointModel
    source: Literal["live", "fallback"]
    meta: PayloadMeta = Field(default_factory=PayloadMeta)


class FearGreedChartPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    points: List[FearGreedPointModel]
    source: Literal["live", "fallback"]
    meta: PayloadMeta = Field(default_factory=PayloadMeta)


class DominancePointModel(BaseModel):
    timestamp: int
    dominance: int | float


class BtcDominancePayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    points: List[DominancePointModel]
    source: Literal["live", "fallback"]
    meta: PayloadMeta = Field(default_factory=PayloadMeta)


class RainbowPointModel(BaseModel):
    date: str
    price: int | float


class RainbowPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    points: List[RainbowPointModel]
    source: Literal["live", "fallback"]
    meta: PayloadMeta = Field(default_factory=PayloadMeta)


class CoinsMeta(PayloadMeta):
    page: int | None = None
    limit: int | None = None
    itemCount: int | None = None
    pageCount: int | None = None
    hasPreviousPage: bool | None = None
    hasNextPage: bool | None = None


class CoinsPayload(BaseModel):
    """Coin rows keep every upstream field, plus ``sparkline``."""

    model_config = ConfigDict(extra="allow")

    coins: List[Dict[str, Any]]
    source: Literal["live", "fallback"]
    meta: CoinsMeta = Field(default_factory=CoinsMeta)


class MarketOverviewPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    marketCap: int | float | None = None
    marketCapChange24h: int | float | None = None
    volume24h: int | float | None = None
    volumeChange24h: int | float | None = None
    bitcoinDominance: int | float | None = None
    bitcoinDominanceChange24h: int | float | None = None
    updatedAt: int | float | None = None
    source: Literal["live", "fallback"]
    upstreamSource: str | None = None
    meta: PayloadMeta = Field(default_factory=PayloadMeta)


# ----------------------------
# DomainResult -> payload
# ----------------------------


def _meta(result: DomainResult) -> Dict[str, Any]:
    meta = dict(result.meta)
    if result.error is not None:
        meta["error"] = result.error
    return meta


def fear_greed_now_payload(result: DomainResult) -> FearGreedNowPayload:
    return FearGreedNowPayload.model_validate(
        {**result.data.to_dict(), "source": result.source, "meta": _meta(result)}
    )


def _points_payload(model: type, result: DomainResult) -> BaseModel:
    return model.model_validate({
        "points": [p.to_dict() for p in result.data],
        "source": result.source,
        "meta": _meta(result),
    })


def fear_greed_chart_payload(result: DomainResult) -> FearGreedChartPayload:
    return _points_payload(FearGreedChartPayload, result)


def btc_dominance_payload(result: DomainResult) -> BtcDominancePayload:
    return _points_payload(BtcDominancePayload, result)


def rainbow_payload(result: DomainResult) -> RainbowPayload:
    return _points_payload(RainbowPayload, result)


def coins_payload(result: DomainResult) -> CoinsPayload:
    page = result.data.to_dict()
    return CoinsPayload.model_validate({
        "coins": page["coins"],
        "source": result.source,
        "meta": {**page["meta"], **_meta(result)},
    })


def market_overview_payload(result: DomainResult) -> MarketOverviewPayload:
    overview = result.data.to_dict()
    upstream_source = overview.pop("source")
    return MarketOverviewPayload.model_validate({
        **overview,
        "upstreamSource": upstream_source,
        "source": result.source,
        "meta": _meta(result),
    })


PAYLOAD_BUILDERS: Dict[str, Callable[[DomainResult], BaseModel]] = {
    "fear-greed": fear_greed_now_payload,
    "fear-greed-chart": fear_greed_chart_payload,
    "btc-dominance": btc_dominance_payload,
    "rainbow": rainbow_payload,
    "coins": coins_payload,
    "markets": market_overview_payload,
}


def build_payload(domain: str, result: DomainResult) -> BaseModel:
    try:
        builder = PAYLOAD_BUILDERS[domain]
    except KeyError:
        raise ValueError(f"Unknown domain: {domain}") from None
    return builder(result)


def payload_json(payload: BaseModel) -> Dict[str, Any]:
    """JSON-ready dict; unset optional fields are dropped, explicit nulls kept."""
    return payload.model_dump(mode="json", exclude_unset=True)


__all__ = [
    "PayloadMeta",
    "FearGreedNowPayload",
    "FearGreedChartPayload",
    "BtcDominancePayload",
    "RainbowPayload",
    "CoinsPayload",
    "MarketOverviewPayload",
    "PAYLOAD_BUILDERS",
    "build_payload",
    "payload_json",
]
