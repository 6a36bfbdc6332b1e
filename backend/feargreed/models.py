from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Generic, List, Literal, Optional, TypeVar

Source = Literal["live", "fallback"]

T = TypeVar("T")


def classify_fear_greed(value: float) -> str:
    """Bucket a 0-100 index value into its upstream label."""
    if value <= 25:
        return "Extreme Fear"
    if value <= 45:
        return "Fear"
    if value <= 55:
        return "Neutral"
    if value <= 75:
        return "Greed"
    return "Extreme Greed"


@dataclass(frozen=True)
class FearGreedPoint:
    timestamp: int               # epoch seconds
    value: float                 # 0..100
    value_classification: Optional[str] = None
    price: Optional[float] = None
    update_time: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "timestamp": self.timestamp,
            "value": self.value,
            "value_classification": self.value_classification,
            "price": self.price,
        }
        if self.update_time is not None:
            out["update_time"] = self.update_time
        return out


@dataclass(frozen=True)
class PricePoint:
    timestamp: int
    price: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class DominancePoint:
    timestamp: int
    dominance: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RainbowPoint:
    date: str                    # ISO-8601 date as sent upstream
    price: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class FearGreedSnapshot:
    name: str
    now: FearGreedPoint
    yesterday: FearGreedPoint
    last_week: FearGreedPoint

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "now": self.now.to_dict(),
            "yesterday": self.yesterday.to_dict(),
            "lastWeek": self.last_week.to_dict(),
        }


@dataclass
class CoinRecord:
    """One row of the coin table.

    ``raw`` keeps the upstream record untouched so every field the API sent
    survives serialization; the typed attributes are the ones the core reads.
    """

    id: Optional[str]
    symbol: Optional[str] = None
    name: Optional[str] = None
    rank: Optional[float] = None
    market_cap: Optional[float] = None
    price: Optional[float] = None
    sparkline: List[float] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        out = dict(self.raw)
        out.setdefault("id", self.id)
        out.setdefault("symbol", self.symbol)
        out["sparkline"] = list(self.sparkline)
        return out


@dataclass
class PageMeta:
    page: Optional[int] = None
    limit: Optional[int] = None
    item_count: Optional[int] = None
    page_count: Optional[int] = None
    has_previous_page: Optional[bool] = None
    has_next_page: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        fields = {
            "page": self.page,
            "limit": self.limit,
            "itemCount": self.item_count,
            "pageCount": self.page_count,
            "hasPreviousPage": self.has_previous_page,
            "hasNextPage": self.has_next_page,
        }
        return {k: v for k, v in fields.items() if v is not None}


@dataclass
class CoinPage:
    coins: List[CoinRecord]
    meta: PageMeta

    def to_dict(self) -> Dict[str, Any]:
        return {"coins": [c.to_dict() for c in self.coins], "meta": self.meta.to_dict()}


@dataclass(frozen=True)
class MarketOverview:
    market_cap: Optional[float] = None
    market_cap_change_24h: Optional[float] = None
    volume_24h: Optional[float] = None
    volume_change_24h: Optional[float] = None
    bitcoin_dominance: Optional[float] = None
    bitcoin_dominance_change_24h: Optional[float] = None
    updated_at: Optional[float] = None
    source: Optional[str] = None

    def is_empty(self) -> bool:
        return all(v is None for k, v in asdict(self).items() if k != "source")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "marketCap": self.market_cap,
            "marketCapChange24h": self.market_cap_change_24h,
            "volume24h": self.volume_24h,
            "volumeChange24h": self.volume_change_24h,
            "bitcoinDominance": self.bitcoin_dominance,
            "bitcoinDominanceChange24h": self.bitcoin_dominance_change_24h,
            "updatedAt": self.updated_at,
            "source": self.source,
        }


@dataclass
class DomainResult(Generic[T]):
    """Live data, or the fallback served in its place and the reason why."""

    data: T
    source: Source = "live"
    error: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_live(self) -> bool:
        return self.source == "live"

    @classmethod
    def live(cls, data: T, **meta: Any) -> "DomainResult[T]":
        return cls(data=data, source="live", meta=dict(meta))

    @classmethod
    def fallback(cls, data: T, error: str, **meta: Any) -> "DomainResult[T]":
        return cls(data=data, source="fallback", error=error, meta=dict(meta))
